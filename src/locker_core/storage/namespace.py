from __future__ import annotations

import re
from pathlib import Path

from locker_core.errors import InvalidInputError
from locker_core.schemas import FIELD_DELIMITER, User, is_single_path_segment

USERS_FILENAME = "users.txt"
METADATA_SUFFIX = "_files.txt"

# No dots or separators: a user directory can never shadow users.txt or a *_files.txt log.
USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]{0,63}$")

_FORBIDDEN_NAME_CHARS = {FIELD_DELIMITER, "\r", "\n"}


def validate_username(username: str) -> str:
    if not username or not username.strip():
        raise InvalidInputError("username must not be empty")
    if not USERNAME_PATTERN.fullmatch(username):
        raise InvalidInputError(
            "username must start with a letter or digit and contain only "
            "letters, digits, '_' or '-' (max 64 characters)"
        )
    return username


def validate_original_name(name: str) -> str:
    if not name or not name.strip():
        raise InvalidInputError("file name must not be empty")
    bad = sorted(char for char in _FORBIDDEN_NAME_CHARS if char in name)
    if bad:
        raise InvalidInputError(f"file name contains reserved characters: {bad!r}")
    return name


class NamespaceResolver:
    """Maps a user to their private blob directory and metadata log under one base dir."""

    def __init__(self, base_dir: str | Path) -> None:
        self.base_dir = Path(base_dir)

    @property
    def users_file(self) -> Path:
        return self.base_dir / USERS_FILENAME

    def user_directory(self, user: User) -> Path:
        return self.base_dir / validate_username(user.username)

    def metadata_location(self, user: User) -> Path:
        return self.base_dir / f"{validate_username(user.username)}{METADATA_SUFFIX}"

    def blob_path(self, user: User, stored_name: str) -> Path:
        if not is_single_path_segment(stored_name):
            raise InvalidInputError(f"stored name is not a single path segment: {stored_name!r}")
        return self.user_directory(user) / stored_name
