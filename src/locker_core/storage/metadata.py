from __future__ import annotations

import logging
import os
from pathlib import Path

from locker_core.errors import CorruptRecordError, StorageIOError
from locker_core.schemas import FileRecord, User, format_record_line, parse_record_line

from .namespace import NamespaceResolver

logger = logging.getLogger(__name__)


class MetadataStore:
    """Per-user append-only log of file records.

    Records are read top-to-bottom, so ``list`` returns insertion order. Lines
    that fail to parse are logged and skipped. ``update`` and ``remove`` rewrite
    the whole log through a temporary file and an atomic rename; lines that were
    already corrupt are not carried into the rewritten log.
    """

    def __init__(self, resolver: NamespaceResolver) -> None:
        self.resolver = resolver

    def list(self, user: User) -> list[FileRecord]:
        path = self.resolver.metadata_location(user)
        try:
            with path.open("r", encoding="utf-8") as fp:
                lines = fp.readlines()
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise StorageIOError(f"cannot read metadata for {user.username}: {exc}") from exc

        records: list[FileRecord] = []
        for line_no, raw_line in enumerate(lines, start=1):
            if not raw_line.strip():
                continue
            try:
                records.append(parse_record_line(raw_line))
            except CorruptRecordError as exc:
                logger.warning(
                    "corrupt metadata line skipped user=%s line=%d reason=%s",
                    user.username,
                    line_no,
                    exc,
                )
        return records

    def append(self, user: User, record: FileRecord) -> None:
        path = self.resolver.metadata_location(user)
        try:
            with path.open("a+b") as fp:
                line = format_record_line(record) + "\n"
                if fp.seek(0, os.SEEK_END) > 0:
                    fp.seek(-1, os.SEEK_END)
                    if fp.read(1) != b"\n":
                        line = "\n" + line
                fp.write(line.encode("utf-8"))
                fp.flush()
                os.fsync(fp.fileno())
        except OSError as exc:
            raise StorageIOError(f"cannot append metadata for {user.username}: {exc}") from exc

    def find_by_id(self, user: User, file_id: str) -> FileRecord | None:
        for record in self.list(user):
            if record.id == file_id:
                return record
        return None

    def update(self, user: User, record: FileRecord) -> bool:
        current = self.list(user)
        replaced = False
        updated: list[FileRecord] = []
        for existing in current:
            if not replaced and existing.id == record.id:
                updated.append(record)
                replaced = True
            else:
                updated.append(existing)

        if not replaced:
            return False
        self._rewrite(user, updated)
        return True

    def remove(self, user: User, file_id: str) -> bool:
        current = self.list(user)
        remaining = [record for record in current if record.id != file_id]
        if len(remaining) == len(current):
            return False
        self._rewrite(user, remaining)
        return True

    def _rewrite(self, user: User, records: list[FileRecord]) -> None:
        path = self.resolver.metadata_location(user)
        tmp = path.with_suffix(".tmp")
        try:
            with tmp.open("w", encoding="utf-8") as fp:
                for record in records:
                    fp.write(format_record_line(record) + "\n")
                fp.flush()
                os.fsync(fp.fileno())
            os.replace(tmp, path)
        except OSError as exc:
            tmp.unlink(missing_ok=True)
            raise StorageIOError(f"cannot rewrite metadata for {user.username}: {exc}") from exc
        logger.info("metadata rewritten user=%s records=%d", user.username, len(records))
