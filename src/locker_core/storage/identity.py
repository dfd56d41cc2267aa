from __future__ import annotations

import fcntl
import logging
import os
from collections.abc import Iterator
from pathlib import Path

from locker_core.errors import CorruptRecordError, StorageIOError
from locker_core.schemas import User, format_user_line, parse_user_line

logger = logging.getLogger(__name__)


class IdentityStore:
    """Line-per-user credential file with an atomic check-and-append create."""

    def __init__(self, users_file: str | Path) -> None:
        self.users_file = Path(users_file)
        try:
            self.users_file.parent.mkdir(parents=True, exist_ok=True)
            self.users_file.touch(exist_ok=True)
        except OSError as exc:
            raise StorageIOError(f"cannot initialise user store {self.users_file}: {exc}") from exc

    def find(self, username: str) -> User | None:
        try:
            with self.users_file.open("r", encoding="utf-8") as fp:
                lines = fp.readlines()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageIOError(f"cannot read user store {self.users_file}: {exc}") from exc
        return self._scan(lines, username)

    def create(self, username: str, credential_digest: str) -> bool:
        user = User(username=username, credential_digest=credential_digest)
        try:
            with self.users_file.open("a+", encoding="utf-8") as fp:
                fcntl.flock(fp.fileno(), fcntl.LOCK_EX)
                try:
                    fp.seek(0)
                    content = fp.read()
                    if self._scan(content.splitlines(), username) is not None:
                        logger.info("identity create rejected username=%s reason=exists", username)
                        return False

                    if content and not content.endswith("\n"):
                        fp.write("\n")
                    fp.write(format_user_line(user) + "\n")
                    fp.flush()
                    os.fsync(fp.fileno())
                finally:
                    fcntl.flock(fp.fileno(), fcntl.LOCK_UN)
        except OSError as exc:
            raise StorageIOError(f"cannot write user store {self.users_file}: {exc}") from exc

        logger.info("identity created username=%s", username)
        return True

    def list_users(self) -> list[User]:
        try:
            with self.users_file.open("r", encoding="utf-8") as fp:
                lines = fp.readlines()
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise StorageIOError(f"cannot read user store {self.users_file}: {exc}") from exc
        return list(self._iter_users(lines))

    def _scan(self, lines: list[str], username: str) -> User | None:
        for user in self._iter_users(lines):
            if user.username == username:
                return user
        return None

    def _iter_users(self, lines: list[str]) -> Iterator[User]:
        for line_no, raw_line in enumerate(lines, start=1):
            if not raw_line.strip():
                continue
            try:
                yield parse_user_line(raw_line)
            except CorruptRecordError as exc:
                # Digest never logged.
                logger.warning(
                    "corrupt user line skipped file=%s line=%d reason=%s",
                    self.users_file,
                    line_no,
                    exc,
                )
