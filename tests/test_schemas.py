from __future__ import annotations

import pytest
from pydantic import ValidationError

from locker_core.errors import CorruptRecordError
from locker_core.schemas import (
    FileRecord,
    User,
    format_record_line,
    format_user_line,
    parse_record_line,
    parse_user_line,
)


def test_record_line_matches_persisted_layout() -> None:
    record = FileRecord(
        id="f-1",
        original_name="notes.txt",
        stored_name="abc_notes.txt",
        upload_timestamp="2026-10-18 09:30:00",
        size_bytes=42,
    )

    line = format_record_line(record)

    assert line == "f-1|notes.txt|abc_notes.txt|2026-10-18 09:30:00|42"
    assert parse_record_line(line + "\n") == record


def test_user_line_parses_two_fields() -> None:
    user = parse_user_line("alice|deadbeef\n")

    assert user == User(username="alice", credential_digest="deadbeef")
    assert format_user_line(user) == "alice|deadbeef"


@pytest.mark.parametrize(
    "line",
    [
        "only|four|fields|here",
        "f-1|a.txt|x_a.txt|2026-10-18 09:30:00|42|extra",
        "f-1|a.txt|x_a.txt|2026-10-18 09:30:00|forty-two",
        "f-1|a.txt|x_a.txt|2026-10-18 09:30:00|-1",
        "|a.txt|x_a.txt|2026-10-18 09:30:00|1",
        "f-1|../escaped.txt|x_a.txt|2026-10-18 09:30:00|4",
        "f-1|a.txt|../../users.txt|2026-10-18 09:30:00|4",
        "f-1|sub\\a.txt|x_a.txt|2026-10-18 09:30:00|4",
        "f-1|..|x_a.txt|2026-10-18 09:30:00|4",
    ],
)
def test_parse_record_line_rejects_malformed(line: str) -> None:
    with pytest.raises(CorruptRecordError):
        parse_record_line(line)


@pytest.mark.parametrize("line", ["alice", "alice|digest|extra", "|digest", "alice|"])
def test_parse_user_line_rejects_malformed(line: str) -> None:
    with pytest.raises(CorruptRecordError):
        parse_user_line(line)


def test_file_record_rejects_unknown_fields_and_negative_size() -> None:
    with pytest.raises(ValidationError):
        FileRecord(
            id="f-1",
            original_name="a.txt",
            stored_name="x_a.txt",
            upload_timestamp="2026-10-18 09:30:00",
            size_bytes=-5,
        )

    with pytest.raises(ValidationError):
        User(username="alice", credential_digest="x", role="admin")
