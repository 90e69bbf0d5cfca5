"""semindex clear — delete chunks and/or embeddings.

Deleting a chunk deletes its embeddings (foreign-key cascade).

Usage:
  semindex clear --yes                     # everything
  semindex clear --embeddings-only         # keep chunks, force re-embedding
  semindex clear --file src/api/users.ts   # one file's chunks
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape

from semindex.cli.common import console, open_db, setup
from semindex.cli.errors import err_no_db
from semindex.config import DEFAULT_DB_NAME
from semindex.db.repository import Repository


def clear_cmd(
    root: Annotated[
        Path,
        typer.Option("--root", "-r", help="Project root (for config and default --db)."),
    ] = Path("."),
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Index database (default: <root>/.semindex.db)."),
    ] = None,
    embeddings_only: Annotated[
        bool,
        typer.Option("--embeddings-only", help="Delete embeddings but keep chunks."),
    ] = False,
    model: Annotated[
        str | None,
        typer.Option("--model", help="With --embeddings-only: only this model's vectors."),
    ] = None,
    file: Annotated[
        str | None,
        typer.Option("--file", "-f", help="Only chunks of this project-relative file."),
    ] = None,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
) -> None:
    """Delete indexed chunks or embeddings."""
    root = root.resolve()
    setup(root)
    db_path = db if db is not None else root / DEFAULT_DB_NAME
    if not db_path.exists():
        console.print(err_no_db(str(db_path)))
        raise typer.Exit(1)

    if embeddings_only:
        what = f"embeddings for '{model}'" if model else "all embeddings"
    elif file:
        what = f"chunks of '{file}'"
    else:
        what = "all chunks and embeddings"

    if not yes and not typer.confirm(f"Delete {what}?", default=False):
        console.print("[dim]Cancelled.[/]")
        raise typer.Exit(0)

    conn = open_db(db_path)
    try:
        repo = Repository(conn)
        if embeddings_only:
            removed = repo.clear_embeddings(model)
            console.print(f"[green]✓[/] Removed {removed} embedding(s).")
        elif file:
            removed = repo.delete_chunks_by_file(Path(file).as_posix())
            console.print(f"[green]✓[/] Removed {removed} chunk(s) of {escape(file)}.")
        else:
            removed = repo.clear_chunks()
            console.print(f"[green]✓[/] Removed {removed} chunk(s).")
    finally:
        conn.close()
