from __future__ import annotations


class LockerError(Exception):
    """Base class for every failure the locker reports to its callers."""


class InvalidInputError(LockerError, ValueError):
    """Empty or malformed input rejected before it reaches a store."""


class DuplicateIdentityError(LockerError):
    def __init__(self, username: str) -> None:
        super().__init__(f"username already exists: {username}")
        self.username = username


class AuthenticationError(LockerError):
    def __init__(self, message: str = "invalid username or password") -> None:
        super().__init__(message)


class RecordNotFoundError(LockerError):
    def __init__(self, file_id: str) -> None:
        super().__init__(f"file with id {file_id} not found in your locker")
        self.file_id = file_id


class IntegrityError(LockerError):
    """Metadata and blob storage disagree."""


class BlobMissingError(IntegrityError):
    def __init__(self, file_id: str, stored_name: str) -> None:
        super().__init__(f"stored content missing for file id {file_id}")
        self.file_id = file_id
        self.stored_name = stored_name


class StorageIOError(LockerError, OSError):
    """Underlying read, write or copy failure."""


class NamespaceCreationError(StorageIOError):
    """Identity was persisted but the user's storage directory could not be created."""

    def __init__(self, username: str, reason: str) -> None:
        super().__init__(
            f"user {username} was registered but the storage directory could not be created: "
            f"{reason}"
        )
        self.username = username


class CorruptRecordError(LockerError, ValueError):
    """A persisted line does not parse into its record shape."""
