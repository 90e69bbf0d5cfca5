"""semindex status — index overview: chunk and embedding counts, heuristics."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape
from rich.panel import Panel

from semindex.cli.common import console, open_db, setup
from semindex.config import DEFAULT_DB_NAME, SemindexConfig
from semindex.db.repository import Repository


def status_cmd(
    root: Annotated[
        Path,
        typer.Option("--root", "-r", help="Project root (for config and default --db)."),
    ] = Path("."),
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Index database (default: <root>/.semindex.db)."),
    ] = None,
) -> None:
    """Show index statistics and the active configuration."""
    root = root.resolve()
    cfg = setup(root)
    db_path = db if db is not None else root / DEFAULT_DB_NAME

    if not db_path.exists():
        console.print(
            Panel(
                "[yellow]No index found.[/]\n"
                "  Run:  semindex index <paths> --root <project>",
                title="[bold]Index[/]",
                expand=False,
            )
        )
    else:
        conn = open_db(db_path)
        try:
            repo = Repository(conn)
            _show_index_panel(db_path, repo, cfg)
        finally:
            conn.close()

    _show_config_panel(root, cfg)


def _show_index_panel(db_path: Path, repo: Repository, cfg: SemindexConfig) -> None:
    stats = repo.stats()
    size_mb = db_path.stat().st_size / (1024 * 1024)
    lines = [
        f"Database:   {escape(str(db_path))} ({size_mb:.1f} MB)",
        f"Chunks:     [bold]{stats['total_chunks']:,}[/]  |  "
        f"Embeddings: [bold]{stats['total_embeddings']:,}[/]  |  "
        f"Avg size: [bold]{stats['average_chunk_size']}[/] chars",
    ]
    models = repo.list_models()
    for model in models:
        marker = "[green]✓[/]" if model == cfg.embedding.model else "[dim]·[/]"
        lines.append(f"  {marker} {escape(model)}")
    if not models:
        lines.append("[dim]No embeddings yet. Run: semindex index <paths> --embed[/]")
    console.print(Panel("\n".join(lines), title="[bold]Index[/]", expand=False))


def _show_config_panel(root: Path, cfg: SemindexConfig) -> None:
    heuristics = cfg.heuristics_path(root)
    h_status = "[green]✓[/]" if heuristics.exists() else "[dim](built-in rules)[/]"
    lines = [
        f"Embedding model: {escape(cfg.embedding.model)}",
        f"Heuristics:      {escape(str(heuristics))} {h_status}",
        f"Max chunk size:  {cfg.chunking.max_chunk_size} chars",
        f"Bundles:         {', '.join(escape(b) for b in cfg.bundles) or '[dim](none)[/]'}",
    ]
    console.print(Panel("\n".join(lines), title="[bold]Configuration[/]", expand=False))
