from __future__ import annotations

import logging
import shutil
import uuid
from pathlib import Path

from locker_core.config import LockerConfig
from locker_core.errors import (
    AuthenticationError,
    BlobMissingError,
    DuplicateIdentityError,
    InvalidInputError,
    NamespaceCreationError,
    RecordNotFoundError,
    StorageIOError,
)
from locker_core.hashing import Hasher, build_hasher
from locker_core.schemas import FileRecord, User, now_timestamp
from locker_core.storage import (
    IdentityStore,
    MetadataStore,
    NamespaceResolver,
    validate_original_name,
    validate_username,
)

logger = logging.getLogger(__name__)


class LockerService:
    """Registration, authentication and per-user file operations over one data directory.

    The service holds no session state; every file operation takes the
    authenticated ``User`` explicitly and only ever resolves records inside
    that user's namespace.
    """

    def __init__(self, data_dir: str | Path, *, hasher: Hasher) -> None:
        self.data_dir = Path(data_dir)
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageIOError(f"cannot create data directory {self.data_dir}: {exc}") from exc

        self.hasher = hasher
        self.resolver = NamespaceResolver(self.data_dir)
        self.identities = IdentityStore(self.resolver.users_file)
        self.metadata = MetadataStore(self.resolver)

    @classmethod
    def from_config(cls, config: LockerConfig) -> LockerService:
        return cls(config.data_dir, hasher=build_hasher(config.hasher))

    def register(self, username: str, password: str) -> User:
        validate_username(username)
        if not password or not password.strip():
            raise InvalidInputError("password must not be empty")

        digest = self.hasher.hash(password)
        if not self.identities.create(username, digest):
            raise DuplicateIdentityError(username)

        user = User(username=username, credential_digest=digest)
        try:
            self.resolver.user_directory(user).mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.error("namespace creation failed username=%s error=%s", username, exc)
            raise NamespaceCreationError(username, str(exc)) from exc

        logger.info("user registered username=%s", username)
        return user

    def authenticate(self, username: str, password: str) -> User:
        user = self.identities.find(username) if username else None
        if user is None or not self.hasher.verify(password, user.credential_digest):
            logger.info("authentication failed")
            raise AuthenticationError()

        logger.info("user authenticated username=%s", username)
        return user

    def upload(self, user: User, source_path: str | Path) -> FileRecord:
        source = Path(source_path)
        if not source.is_file():
            raise InvalidInputError(
                f"source file does not exist or is not a regular file: {source}"
            )
        original_name = validate_original_name(source.name)

        user_dir = self.resolver.user_directory(user)
        try:
            user_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageIOError(
                f"cannot create storage directory for {user.username}: {exc}"
            ) from exc

        stored_name = f"{uuid.uuid4()}_{original_name}"
        blob_path = self.resolver.blob_path(user, stored_name)
        try:
            shutil.copyfile(source, blob_path)
            size_bytes = blob_path.stat().st_size
        except OSError as exc:
            self._discard_blob(user, blob_path, reason="copy_failed")
            raise StorageIOError(f"cannot store {original_name}: {exc}") from exc

        record = FileRecord(
            id=str(uuid.uuid4()),
            original_name=original_name,
            stored_name=stored_name,
            upload_timestamp=now_timestamp(),
            size_bytes=size_bytes,
        )
        try:
            self.metadata.append(user, record)
        except StorageIOError:
            self._discard_blob(user, blob_path, reason="metadata_failed")
            raise

        logger.info(
            "file uploaded user=%s file_id=%s size_bytes=%d",
            user.username,
            record.id,
            record.size_bytes,
        )
        return record

    def download(self, user: User, file_id: str, destination_dir: str | Path) -> int:
        record = self.metadata.find_by_id(user, file_id)
        if record is None:
            raise RecordNotFoundError(file_id)

        destination = Path(destination_dir)
        if not destination.is_dir():
            raise InvalidInputError(
                f"destination does not exist or is not a directory: {destination}"
            )

        blob_path = self.resolver.blob_path(user, record.stored_name)
        if not blob_path.is_file():
            logger.warning(
                "stored blob missing user=%s file_id=%s stored_name=%s",
                user.username,
                file_id,
                record.stored_name,
            )
            raise BlobMissingError(file_id, record.stored_name)

        target = destination / record.original_name
        try:
            shutil.copyfile(blob_path, target)
            bytes_written = target.stat().st_size
        except OSError as exc:
            raise StorageIOError(f"cannot write {target}: {exc}") from exc

        logger.info(
            "file downloaded user=%s file_id=%s bytes=%d",
            user.username,
            file_id,
            bytes_written,
        )
        return bytes_written

    def list_files(self, user: User) -> list[FileRecord]:
        return self.metadata.list(user)

    def _discard_blob(self, user: User, blob_path: Path, *, reason: str) -> None:
        try:
            blob_path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning(
                "orphan blob left behind user=%s stored_name=%s reason=%s error=%s",
                user.username,
                blob_path.name,
                reason,
                exc,
            )
            return
        logger.warning(
            "partial upload discarded user=%s stored_name=%s reason=%s",
            user.username,
            blob_path.name,
            reason,
        )
