from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer
from alembic import command
from alembic.config import Config

from paper_vault.app.core.logging import setup_logging
from paper_vault.db.engine import DBEngine
from paper_vault.db.settings import DBSettings, get_db_settings
from paper_vault.papers.service import PaperService
from paper_vault.papers.settings import get_storage_settings
from paper_vault.papers.storage import DocumentStore
from paper_vault.security.passwords import hash_password

app = typer.Typer(no_args_is_help=True, add_completion=False, help="paper-vault maintenance commands")

ALEMBIC_DIR = "migrations"


def _db_settings(database_url: Optional[str]) -> DBSettings:
    if database_url:
        return DBSettings(database_url=database_url)
    return get_db_settings()


def _load_config(project_root: Path, database_url: Optional[str]) -> Config:
    cfg = Config()
    cfg.set_main_option("script_location", str(project_root / ALEMBIC_DIR))
    cfg.set_main_option("sqlalchemy.url", _db_settings(database_url).resolved_database_url)
    # env.py uses the app's logging setup instead of an ini file
    cfg.attributes["configure_logger"] = False
    return cfg


def _engine(database_url: Optional[str]) -> DBEngine:
    # models must be imported so their tables register on Base.metadata
    from paper_vault.papers import models  # noqa: F401

    return DBEngine(_db_settings(database_url))


async def _run_on_engine(database_url: Optional[str], action: str) -> None:
    engine = _engine(database_url)
    try:
        await getattr(engine, action)()
    finally:
        await engine.dispose()


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, envvar="LOG_LEVEL", help="Logging level"),
):
    setup_logging(level=log_level)


@app.command("create-tables")
def create_tables(
    database_url: Optional[str] = typer.Option(None, help="Override DB_DATABASE_URL / DATABASE_URL"),
):
    """Create every table straight from the models (no migration history)."""
    asyncio.run(_run_on_engine(database_url, "create_all"))
    typer.echo("Tables created")


@app.command("drop-tables")
def drop_tables(
    database_url: Optional[str] = typer.Option(None, help="Override DB_DATABASE_URL / DATABASE_URL"),
    yes: bool = typer.Option(False, "--yes", help="Skip the confirmation prompt"),
):
    if not yes:
        typer.confirm("Drop all paper-vault tables?", abort=True)
    asyncio.run(_run_on_engine(database_url, "drop_all"))
    typer.echo("Tables dropped")


@app.command("upgrade")
def upgrade(
    revision: str = typer.Argument("head"),
    project_root: Path = typer.Option(Path.cwd(), help="Directory containing migrations/"),
    database_url: Optional[str] = typer.Option(None, help="Override DB_DATABASE_URL / DATABASE_URL"),
):
    cfg = _load_config(project_root.resolve(), database_url)
    command.upgrade(cfg, revision)


@app.command("downgrade")
def downgrade(
    revision: str = typer.Argument("-1"),
    project_root: Path = typer.Option(Path.cwd(), help="Directory containing migrations/"),
    database_url: Optional[str] = typer.Option(None, help="Override DB_DATABASE_URL / DATABASE_URL"),
):
    cfg = _load_config(project_root.resolve(), database_url)
    command.downgrade(cfg, revision)


@app.command("hash-password")
def hash_password_cmd(
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True),
):
    """Print a hash suitable for AUTH_ADMIN_PASSWORD_HASH."""
    try:
        typer.echo(hash_password(password))
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="password") from exc


async def _check_storage(database_url: Optional[str], root_dir: Optional[str]):
    settings = get_storage_settings()
    store = DocumentStore.from_settings(settings) if root_dir is None else DocumentStore(
        root_dir,
        max_bytes=settings.max_upload_bytes,
        allowed_content_types=settings.allowed_content_types,
        chunk_size=settings.chunk_size,
    )
    engine = _engine(database_url)
    try:
        return await PaperService(engine, store).check_storage()
    finally:
        await engine.dispose()


@app.command("check-storage")
def check_storage(
    database_url: Optional[str] = typer.Option(None, help="Override DB_DATABASE_URL / DATABASE_URL"),
    root_dir: Optional[str] = typer.Option(None, help="Override STORAGE_ROOT_DIR"),
):
    """Report files without rows and rows without files. Nothing is changed."""
    report = asyncio.run(_check_storage(database_url, root_dir))
    for name in report.orphaned_files:
        typer.echo(f"orphaned file: {name}")
    for paper_id, path in sorted(report.missing_files.items()):
        typer.echo(f"missing file: {path} (paper {paper_id})")
    if not report.consistent:
        raise typer.Exit(code=1)
    typer.echo("Storage is consistent")


if __name__ == "__main__":
    app()
