from __future__ import annotations

import logging
from pathlib import Path

from locker_core.errors import AuthenticationError
from locker_core.schemas import FileRecord, User
from locker_core.service import LockerService

logger = logging.getLogger(__name__)


class LockerSession:
    """Holds the authenticated user for one interactive run."""

    def __init__(self, service: LockerService) -> None:
        self.service = service
        self.current_user: User | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.current_user is not None

    def login(self, username: str, password: str) -> User:
        self.current_user = None
        self.current_user = self.service.authenticate(username, password)
        return self.current_user

    def logout(self) -> None:
        if self.current_user is not None:
            logger.info("user logged out username=%s", self.current_user.username)
        self.current_user = None

    def require_user(self) -> User:
        if self.current_user is None:
            raise AuthenticationError("not logged in")
        return self.current_user

    def upload(self, source_path: str | Path) -> FileRecord:
        return self.service.upload(self.require_user(), source_path)

    def download(self, file_id: str, destination_dir: str | Path) -> int:
        return self.service.download(self.require_user(), file_id, destination_dir)

    def list_files(self) -> list[FileRecord]:
        return self.service.list_files(self.require_user())
