"""semindex search — similarity search over embedded chunks.

The query is embedded with the configured model and compared against every
stored vector for that model. ``--text`` skips embeddings and matches chunk
names and purposes instead.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table

from semindex.cli.common import console, open_db, setup
from semindex.cli.errors import err_embedding, err_no_db, err_no_embeddings
from semindex.config import DEFAULT_DB_NAME
from semindex.db.repository import Repository
from semindex.search.embeddings import EmbeddingError, LiteLLMBackend
from semindex.search.vector_store import SearchResult, VectorStore


def search_cmd(
    query: Annotated[str, typer.Argument(help="What the code you are looking for does.")],
    root: Annotated[
        Path,
        typer.Option("--root", "-r", help="Project root (for config and default --db)."),
    ] = Path("."),
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Index database (default: <root>/.semindex.db)."),
    ] = None,
    limit: Annotated[
        int | None,
        typer.Option("--limit", "-n", min=1, help="Maximum results (default: search.limit)."),
    ] = None,
    threshold: Annotated[
        float | None,
        typer.Option(
            "--threshold",
            "-t",
            min=-1.0,
            max=1.0,
            help="Minimum cosine similarity (default: search.threshold).",
        ),
    ] = None,
    text: Annotated[
        bool,
        typer.Option("--text", help="Match names and purposes instead of embeddings."),
    ] = False,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print results as JSON."),
    ] = False,
) -> None:
    """Find chunks whose meaning is closest to QUERY."""
    root = root.resolve()
    cfg = setup(root)
    db_path = db if db is not None else root / DEFAULT_DB_NAME
    if not db_path.exists():
        console.print(err_no_db(str(db_path)))
        raise typer.Exit(1)

    conn = open_db(db_path)
    try:
        repo = Repository(conn)
        if text:
            results = [SearchResult(chunk=c, similarity=0.0) for c in repo.search_chunks_by_text(query)]
            results = results[: limit or cfg.search.limit]
        else:
            model = cfg.embedding.model
            if model not in repo.list_models():
                console.print(err_no_embeddings(model))
                raise typer.Exit(1)
            store = VectorStore(
                repo,
                LiteLLMBackend(model),
                max_input_chars=cfg.embedding.max_input_chars,
                batch_size=cfg.search.batch_size,
            )
            try:
                results = asyncio.run(
                    store.search(
                        query,
                        limit=limit or cfg.search.limit,
                        threshold=cfg.search.threshold if threshold is None else threshold,
                    )
                )
            except EmbeddingError as exc:
                console.print(err_embedding(str(exc), model))
                raise typer.Exit(1)
    finally:
        conn.close()

    if as_json:
        typer.echo(json.dumps([r.to_dict() for r in results], indent=2))
        return
    _print_results(results, show_similarity=not text)


def _print_results(results: list[SearchResult], *, show_similarity: bool) -> None:
    if not results:
        console.print("[dim]No matching chunks.[/]")
        return

    table = Table(show_lines=False)
    if show_similarity:
        table.add_column("Score", justify="right", style="bold")
    table.add_column("Name", style="cyan")
    table.add_column("Location")
    table.add_column("Purpose", style="dim")
    table.add_column("Complexity", justify="right")
    for result in results:
        chunk = result.chunk
        row = [
            escape(chunk.name),
            escape(f"{chunk.file_path}:{chunk.start_line}"),
            escape(chunk.purpose),
            f"{chunk.complexity.score} ({chunk.complexity.level})",
        ]
        if show_similarity:
            row.insert(0, f"{result.similarity:.3f}")
        table.add_row(*row)
    console.print(table)
