from __future__ import annotations

import logging
from pathlib import Path

import typer

from locker_core import LockerConfig, LockerService, LockerSession, load_config
from locker_core.errors import LockerError, StorageIOError
from locker_core.schemas import FileRecord

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

app = typer.Typer(help="Digital Locker CLI")

_LOGIN_MENU = ("1. Login", "2. Register", "3. Exit")
_USER_MENU = ("1. Upload File", "2. Download File", "3. List Files", "4. Logout")

_CONFIG_OPTION = typer.Option(
    None,
    "--config",
    help="Config file path (JSON or YAML).",
    exists=True,
    dir_okay=False,
    readable=True,
)
_DATA_DIR_OPTION = typer.Option(
    None,
    "--data-dir",
    help="Data directory holding users.txt and per-user storage (overrides config).",
)
_USERNAME_OPTION = typer.Option(..., "--username", "-u", help="Locker username.")
_PASSWORD_OPTION = typer.Option(
    ...,
    "--password",
    prompt=True,
    hide_input=True,
    help="Locker password (prompted when omitted).",
)


@app.command()
def init(
    config_path: Path | None = _CONFIG_OPTION,
    data_dir: Path | None = _DATA_DIR_OPTION,
) -> None:
    """Create the data directory and an empty user store."""
    service = _build_service(config_path, data_dir)
    typer.echo(f"data directory ready: {service.data_dir}")


@app.command()
def register(
    username: str = _USERNAME_OPTION,
    password: str = typer.Option(
        ...,
        "--password",
        prompt=True,
        hide_input=True,
        confirmation_prompt=True,
        help="Password for the new user (prompted when omitted).",
    ),
    config_path: Path | None = _CONFIG_OPTION,
    data_dir: Path | None = _DATA_DIR_OPTION,
) -> None:
    """Register a new user."""
    service = _build_service(config_path, data_dir)
    try:
        user = service.register(username, password)
    except LockerError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(f"registered {user.username}")


@app.command()
def upload(
    source: Path = typer.Argument(..., help="File to store in the locker."),
    username: str = _USERNAME_OPTION,
    password: str = _PASSWORD_OPTION,
    config_path: Path | None = _CONFIG_OPTION,
    data_dir: Path | None = _DATA_DIR_OPTION,
) -> None:
    """Upload one file into the user's locker."""
    session = _login(config_path, data_dir, username, password)
    try:
        record = session.upload(source)
    except LockerError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(f"uploaded id={record.id} name={record.original_name} size={record.size_bytes}")


@app.command()
def download(
    file_id: str = typer.Argument(..., help="File id as shown by the list command."),
    destination: Path = typer.Option(
        Path("."),
        "--dest",
        help="Existing directory to write the file into.",
    ),
    username: str = _USERNAME_OPTION,
    password: str = _PASSWORD_OPTION,
    config_path: Path | None = _CONFIG_OPTION,
    data_dir: Path | None = _DATA_DIR_OPTION,
) -> None:
    """Download one file by id."""
    session = _login(config_path, data_dir, username, password)
    try:
        written = session.download(file_id, destination)
    except LockerError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(f"downloaded bytes={written} dest={destination}")


@app.command("list")
def list_files(
    username: str = _USERNAME_OPTION,
    password: str = _PASSWORD_OPTION,
    config_path: Path | None = _CONFIG_OPTION,
    data_dir: Path | None = _DATA_DIR_OPTION,
) -> None:
    """List the user's stored files."""
    session = _login(config_path, data_dir, username, password)
    try:
        records = session.list_files()
    except LockerError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(render_file_table(records))


@app.command()
def menu(
    config_path: Path | None = _CONFIG_OPTION,
    data_dir: Path | None = _DATA_DIR_OPTION,
) -> None:
    """Interactive locker menu."""
    session = LockerSession(_build_service(config_path, data_dir))

    while True:
        if session.current_user is None:
            if not _run_login_menu(session):
                typer.echo("Exiting Digital Locker. Goodbye!")
                return
        else:
            _run_user_menu(session)


def _run_login_menu(session: LockerSession) -> bool:
    typer.echo("\n--- Digital Locker ---")
    typer.echo("\n".join(_LOGIN_MENU))
    choice = typer.prompt("Enter your choice", default="", show_default=False).strip()

    if choice == "1":
        username = typer.prompt("Username")
        password = typer.prompt("Password", hide_input=True)
        try:
            user = session.login(username, password)
        except LockerError as exc:
            typer.echo(str(exc), err=True)
        else:
            typer.echo(f"Login successful! Welcome, {user.username}.")
    elif choice == "2":
        username = typer.prompt("Desired username")
        password = typer.prompt("Desired password", hide_input=True)
        try:
            session.service.register(username, password)
        except LockerError as exc:
            typer.echo(str(exc), err=True)
        else:
            typer.echo("Registration successful! You can now log in.")
    elif choice == "3":
        return False
    else:
        typer.echo("Invalid choice. Please try again.")
    return True


def _run_user_menu(session: LockerSession) -> None:
    user = session.require_user()
    typer.echo(f"\n--- Welcome, {user.username} ---")
    typer.echo("\n".join(_USER_MENU))
    choice = typer.prompt("Enter your choice", default="", show_default=False).strip()

    try:
        if choice == "1":
            source = Path(typer.prompt("Path of the file to upload"))
            record = session.upload(source)
            typer.echo(f"File uploaded successfully! id={record.id}")
        elif choice == "2":
            typer.echo(render_file_table(session.list_files()))
            file_id = typer.prompt("File id to download").strip()
            destination = Path(typer.prompt("Destination directory"))
            written = session.download(file_id, destination)
            typer.echo(f"File downloaded successfully! bytes={written}")
        elif choice == "3":
            typer.echo(render_file_table(session.list_files()))
        elif choice == "4":
            session.logout()
            typer.echo("Logged out successfully.")
        else:
            typer.echo("Invalid choice. Please try again.")
    except LockerError as exc:
        typer.echo(str(exc), err=True)


def render_file_table(records: list[FileRecord]) -> str:
    if not records:
        return "Your locker is empty. No files to display."

    headers = ("id", "original name", "upload date", "size (bytes)")
    rows = [
        (
            record.id,
            _truncate(record.original_name, limit=40),
            record.upload_timestamp,
            str(record.size_bytes),
        )
        for record in records
    ]

    widths = [
        max(len(headers[column]), *(len(row[column]) for row in rows))
        for column in range(len(headers))
    ]

    def _line(values: tuple[str, str, str, str]) -> str:
        return " | ".join(
            value.ljust(widths[index]) for index, value in enumerate(values)
        )

    divider = "-+-".join("-" * width for width in widths)
    body = [_line(headers), divider]
    body.extend(_line(row) for row in rows)
    return "\n".join(body)


def _truncate(text: str, *, limit: int) -> str:
    if len(text) <= limit:
        return text
    return f"{text[: limit - 3]}..."


def _resolve_config(config_path: Path | None, data_dir: Path | None) -> LockerConfig:
    try:
        config = load_config(config_path) if config_path is not None else LockerConfig()
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc

    if data_dir is not None:
        config = config.model_copy(update={"data_dir": str(data_dir)})
    config.apply_logging()
    return config


def _build_service(config_path: Path | None, data_dir: Path | None) -> LockerService:
    config = _resolve_config(config_path, data_dir)
    try:
        return LockerService.from_config(config)
    except StorageIOError as exc:
        logging.error("startup failed data_dir=%s error=%s", config.data_dir, exc)
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc


def _login(
    config_path: Path | None,
    data_dir: Path | None,
    username: str,
    password: str,
) -> LockerSession:
    session = LockerSession(_build_service(config_path, data_dir))
    try:
        session.login(username, password)
    except LockerError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc
    return session


def main() -> None:
    """CLI entrypoint."""
    app()


if __name__ == "__main__":
    main()
