"""Helpers shared by the semindex commands."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import typer
from rich.console import Console

from semindex.cli.errors import err_config
from semindex.config import ConfigError, SemindexConfig, load_config
from semindex.db.connection import Database
from semindex.db.schema import initialize
from semindex.log import configure_logging

console = Console()


def setup(project_dir: Path, log_level: str | None = None) -> SemindexConfig:
    """Load config for *project_dir* and configure logging, or exit 1."""
    try:
        cfg = load_config(project_dir)
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)
    configure_logging(
        level=log_level or cfg.logging.level,
        json_format=cfg.logging.format == "json",
    )
    return cfg


def open_db(db_path: Path) -> sqlite3.Connection:
    conn = Database(db_path).connect()
    initialize(conn)
    return conn
