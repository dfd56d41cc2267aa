from __future__ import annotations

import json

from typer.testing import CliRunner

from digital_locker.cli import app, render_file_table
from locker_core.schemas import FileRecord


def _fast_config(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "data_dir": str(tmp_path / "data"),
                "hasher": {"time_cost": 1, "memory_cost_kib": 8, "parallelism": 1},
            }
        ),
        encoding="utf-8",
    )
    return path


def test_cli_help() -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["--help"])

    assert result.exit_code == 0
    assert "Usage:" in result.output
    assert "menu" in result.output


def test_cli_init_creates_data_dir(tmp_path) -> None:
    runner = CliRunner()
    data_dir = tmp_path / "locker-data"

    result = runner.invoke(app, ["init", "--data-dir", str(data_dir)])

    assert result.exit_code == 0
    assert (data_dir / "users.txt").exists()


def test_cli_init_fails_when_data_dir_uncreatable(tmp_path) -> None:
    runner = CliRunner()
    blocker = tmp_path / "blocker"
    blocker.write_text("file", encoding="utf-8")

    result = runner.invoke(app, ["init", "--data-dir", str(blocker / "data")])

    assert result.exit_code == 1


def test_cli_one_shot_commands_round_trip(tmp_path) -> None:
    runner = CliRunner()
    config = str(_fast_config(tmp_path))
    source = tmp_path / "notes.txt"
    source.write_bytes(b"n" * 42)
    out_dir = tmp_path / "out"
    out_dir.mkdir()
    creds = ["--username", "alice", "--password", "secret123", "--config", config]

    registered = runner.invoke(app, ["register", *creds])
    assert registered.exit_code == 0
    assert "registered alice" in registered.output

    duplicate = runner.invoke(
        app,
        ["register", "--username", "alice", "--password", "x", "--config", config],
    )
    assert duplicate.exit_code == 1

    uploaded = runner.invoke(app, ["upload", str(source), *creds])
    assert uploaded.exit_code == 0
    assert "size=42" in uploaded.output
    file_id = uploaded.output.split("id=", 1)[1].split()[0]

    listed = runner.invoke(app, ["list", *creds])
    assert listed.exit_code == 0
    assert file_id in listed.output
    assert "notes.txt" in listed.output

    downloaded = runner.invoke(app, ["download", file_id, "--dest", str(out_dir), *creds])
    assert downloaded.exit_code == 0
    assert (out_dir / "notes.txt").read_bytes() == b"n" * 42


def test_cli_rejects_wrong_password(tmp_path) -> None:
    runner = CliRunner()
    config = str(_fast_config(tmp_path))
    runner.invoke(
        app,
        ["register", "--username", "alice", "--password", "secret123", "--config", config],
    )

    result = runner.invoke(
        app,
        ["list", "--username", "alice", "--password", "wrong", "--config", config],
    )

    assert result.exit_code == 1
    assert "invalid username or password" in result.output


def test_cli_menu_session(tmp_path) -> None:
    runner = CliRunner()
    config = str(_fast_config(tmp_path))
    source = tmp_path / "notes.txt"
    source.write_bytes(b"menu payload")
    keystrokes = "\n".join(
        [
            "2", "alice", "secret123",
            "1", "alice", "wrong",
            "1", "alice", "secret123",
            "1", str(source),
            "3",
            "9",
            "4",
            "3",
        ]
    )

    result = runner.invoke(app, ["menu", "--config", config], input=keystrokes + "\n")

    assert result.exit_code == 0
    assert "Registration successful" in result.output
    assert "invalid username or password" in result.output
    assert "Login successful! Welcome, alice." in result.output
    assert "File uploaded successfully" in result.output
    assert "notes.txt" in result.output
    assert "Invalid choice" in result.output
    assert "Logged out successfully." in result.output
    assert "Goodbye" in result.output


def test_render_file_table() -> None:
    assert render_file_table([]) == "Your locker is empty. No files to display."

    table = render_file_table(
        [
            FileRecord(
                id="f-1",
                original_name="notes.txt",
                stored_name="t_notes.txt",
                upload_timestamp="2026-10-18 09:30:00",
                size_bytes=42,
            )
        ]
    )
    lines = table.splitlines()

    assert lines[0].startswith("id ")
    assert "notes.txt" in lines[2]
    assert lines[2].rstrip().endswith("42")
