"""semindex index — extract, classify and store chunks (optionally embed).

File selection is the caller's job: pass paths (directories are expanded to
the supported files beneath them, hidden directories excluded) or pipe a
pre-filtered list with --stdin, e.g. ``git ls-files | semindex index --stdin``.

Re-indexing a file upserts its chunks by id and prunes the file's chunks
that no longer exist; unchanged chunks keep their embeddings.
"""

from __future__ import annotations

import asyncio
import sys
from collections import defaultdict
from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table

from semindex.cli.common import console, open_db, setup
from semindex.cli.errors import err_embedding, err_no_paths, warn_skipped_files
from semindex.config import DEFAULT_DB_NAME
from semindex.db.repository import Repository
from semindex.extract.languages import language_for_path
from semindex.extract.splitter import ExtractionResult, SemanticSplitter
from semindex.heuristics.manager import HeuristicsManager
from semindex.search.embeddings import EmbeddingError, LiteLLMBackend
from semindex.search.vector_store import VectorStore


def index_cmd(
    paths: Annotated[
        list[str] | None,
        typer.Argument(help="Files or directories, relative to --root."),
    ] = None,
    root: Annotated[
        Path,
        typer.Option("--root", "-r", help="Project root the paths are relative to."),
    ] = Path("."),
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Index database (default: <root>/.semindex.db)."),
    ] = None,
    embed: Annotated[
        bool,
        typer.Option("--embed", help="Generate embeddings for chunks that have none."),
    ] = False,
    stdin: Annotated[
        bool,
        typer.Option("--stdin", help="Read newline-separated paths from standard input."),
    ] = False,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="Override logging.level for this run."),
    ] = None,
) -> None:
    """Index source files into the semantic chunk store."""
    root = root.resolve()
    cfg = setup(root, log_level)

    requested = list(paths or [])
    if stdin:
        requested.extend(line.strip() for line in sys.stdin if line.strip())
    files = _expand_paths(root, requested)
    if not files:
        console.print(err_no_paths())
        raise typer.Exit(1)

    splitter = SemanticSplitter(
        HeuristicsManager(cfg.heuristics_path(root)),
        max_chunk_size=cfg.chunking.max_chunk_size,
        min_function_size=cfg.chunking.min_function_size,
        min_structure_size=cfg.chunking.min_structure_size,
        max_file_size=cfg.chunking.max_file_size,
        include_context=cfg.chunking.include_context,
    )
    result = splitter.extract(root, files, cfg.bundles)

    db_path = db if db is not None else root / DEFAULT_DB_NAME
    conn = open_db(db_path)
    try:
        repo = Repository(conn)
        written = repo.upsert_chunks(result.chunks)
        pruned = _prune(repo, files, result)

        generated = 0
        if embed:
            store = VectorStore(
                repo,
                LiteLLMBackend(cfg.embedding.model),
                max_input_chars=cfg.embedding.max_input_chars,
                batch_size=cfg.embedding.batch_size,
            )
            try:
                generated = asyncio.run(store.embed_chunks(result.chunks))
            except EmbeddingError as exc:
                console.print(err_embedding(str(exc), cfg.embedding.model))
                raise typer.Exit(1)
    finally:
        conn.close()

    _print_summary(result, written, pruned, generated if embed else None, db_path)


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _expand_paths(root: Path, requested: list[str]) -> list[str]:
    """Project-relative POSIX paths, directories expanded, order preserved."""
    files: list[str] = []
    seen: set[str] = set()
    for raw in requested:
        target = (root / raw) if not Path(raw).is_absolute() else Path(raw)
        if target.is_dir():
            candidates = sorted(
                p
                for p in target.rglob("*")
                if p.is_file()
                and language_for_path(p.name) is not None
                and not any(part.startswith(".") for part in p.relative_to(root).parts[:-1])
            )
        else:
            candidates = [target]
        for path in candidates:
            try:
                rel = path.resolve().relative_to(root).as_posix()
            except ValueError:
                rel = Path(raw).as_posix()
            if rel not in seen:
                seen.add(rel)
                files.append(rel)
    return files


def _prune(repo: Repository, files: list[str], result: ExtractionResult) -> int:
    """Remove stale chunks of files that were extracted in this run."""
    skipped = {s.path for s in result.skipped}
    ids_by_file: dict[str, list[str]] = defaultdict(list)
    for chunk in result.chunks:
        ids_by_file[chunk.file_path].append(chunk.id)
    return sum(
        repo.prune_file(path, ids_by_file.get(path, []))
        for path in files
        if path not in skipped
    )


def _print_summary(
    result: ExtractionResult,
    written: int,
    pruned: int,
    generated: int | None,
    db_path: Path,
) -> None:
    summary = result.summary()
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Files", str(summary["total_files"]))
    table.add_row("Chunks", str(summary["total_chunks"]))
    table.add_row("Average size", f"{summary['average_size']} chars")
    table.add_row("Written", str(written))
    if pruned:
        table.add_row("Pruned", str(pruned))
    if generated is not None:
        table.add_row("Embedded", str(generated))
    table.add_row("Skipped", str(summary["skipped_files"]))
    console.print(table)

    if result.skipped:
        skipped = Table(title="Skipped files", show_lines=False)
        skipped.add_column("File")
        skipped.add_column("Reason", style="yellow")
        skipped.add_column("Detail", style="dim")
        for skip in result.skipped:
            skipped.add_row(escape(skip.path), skip.reason, escape(skip.detail))
        console.print(skipped)
        console.print(warn_skipped_files(len(result.skipped)))

    console.print(f"[green]✓[/] Index written to [bold]{escape(str(db_path))}[/]")
