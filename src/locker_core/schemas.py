from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from locker_core.errors import CorruptRecordError

FIELD_DELIMITER = "|"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

_USER_FIELD_COUNT = 2
_RECORD_FIELD_COUNT = 5


def now_timestamp() -> str:
    return datetime.now().strftime(TIMESTAMP_FORMAT)


class DTOBase(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class User(DTOBase):
    username: str = Field(min_length=1)
    credential_digest: str = Field(min_length=1)


class FileRecord(DTOBase):
    id: str = Field(min_length=1)
    original_name: str = Field(min_length=1)
    stored_name: str = Field(min_length=1)
    upload_timestamp: str = Field(min_length=1)
    size_bytes: int = Field(ge=0)


def is_single_path_segment(name: str) -> bool:
    return bool(name) and name not in {".", ".."} and "/" not in name and "\\" not in name


def format_user_line(user: User) -> str:
    return FIELD_DELIMITER.join([user.username, user.credential_digest])


def parse_user_line(line: str) -> User:
    parts = line.rstrip("\r\n").split(FIELD_DELIMITER)
    if len(parts) != _USER_FIELD_COUNT:
        raise CorruptRecordError(
            f"expected {_USER_FIELD_COUNT} fields in user line, got {len(parts)}"
        )
    try:
        return User(username=parts[0], credential_digest=parts[1])
    except ValidationError as exc:
        raise CorruptRecordError(f"invalid user line: {exc.errors()[0]['msg']}") from exc


def format_record_line(record: FileRecord) -> str:
    return FIELD_DELIMITER.join(
        [
            record.id,
            record.original_name,
            record.stored_name,
            record.upload_timestamp,
            str(record.size_bytes),
        ]
    )


def parse_record_line(line: str) -> FileRecord:
    parts = line.rstrip("\r\n").split(FIELD_DELIMITER)
    if len(parts) != _RECORD_FIELD_COUNT:
        raise CorruptRecordError(
            f"expected {_RECORD_FIELD_COUNT} fields in file record line, got {len(parts)}"
        )

    file_id, original_name, stored_name, upload_timestamp, size_raw = parts
    for name in (original_name, stored_name):
        if not is_single_path_segment(name):
            raise CorruptRecordError(f"file name is not a single path segment: {name!r}")

    try:
        size_bytes = int(size_raw.strip())
    except ValueError as exc:
        raise CorruptRecordError(f"invalid size value: {size_raw!r}") from exc

    try:
        return FileRecord(
            id=file_id,
            original_name=original_name,
            stored_name=stored_name,
            upload_timestamp=upload_timestamp,
            size_bytes=size_bytes,
        )
    except ValidationError as exc:
        raise CorruptRecordError(f"invalid file record line: {exc.errors()[0]['msg']}") from exc
