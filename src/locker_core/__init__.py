"""Digital locker storage engine."""

from .config import LockerConfig, load_config
from .schemas import FileRecord, User
from .service import LockerService
from .session import LockerSession

__all__ = [
    "FileRecord",
    "LockerConfig",
    "LockerService",
    "LockerSession",
    "User",
    "load_config",
]
