"""semindex rich error messages — actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from semindex.cli.errors import err_no_db
    console.print(err_no_db(".semindex.db"))
    raise typer.Exit(1)
"""

from __future__ import annotations

from rich.markup import escape


def err_no_db(db_path: str = ".semindex.db") -> str:
    """No index database at *db_path*."""
    return (
        f"[red]Error:[/] No index found at '{escape(db_path)}'.\n"
        "  Run:  semindex index <paths> --root <project>"
    )


def err_no_paths() -> str:
    return (
        "[red]Error:[/] No files to index.\n"
        "  Pass file or directory paths, or pipe a file list with --stdin:\n"
        "    git ls-files | semindex index --stdin"
    )


def err_config(message: str) -> str:
    """Invalid or forbidden configuration value."""
    return (
        f"[red]Error:[/] Invalid configuration.\n"
        f"  {escape(message)}\n"
        "  Fix semindex.yaml (or ~/.semindex/config.yaml) and retry."
    )


def err_embedding(message: str, model: str) -> str:
    """Embedding backend failed or is not configured."""
    hint = "  Check the model name and your network connection."
    if "API key" in message:
        hint = "  Export the provider's API key, e.g.:  export OPENAI_API_KEY=sk-..."
    return (
        f"[red]Error:[/] Embedding with '{escape(model)}' failed.\n"
        f"  {escape(message)}\n"
        f"{hint}"
    )


def err_no_embeddings(model: str) -> str:
    """Search requested but nothing is embedded under *model*."""
    return (
        f"[yellow]No embeddings for model '{escape(model)}'.[/]\n"
        "  Run:  semindex index <paths> --embed\n"
        "  Or search by name/purpose with:  semindex search <query> --text"
    )


def err_heuristics_invalid(path: str, message: str) -> str:
    """Heuristics file failed validation."""
    return (
        f"[red]Error:[/] Heuristics file '{escape(path)}' is invalid.\n"
        f"  {escape(message)}\n"
        "  The built-in rule set is used until the file is fixed.\n"
        "  Start from the defaults with:  semindex heuristics init"
    )


def err_file_exists(path: str) -> str:
    return (
        f"[red]Error:[/] '{escape(path)}' already exists.\n"
        "  Use --force to overwrite it."
    )


def warn_skipped_files(count: int) -> str:
    """Shown after an index run that skipped files."""
    return (
        f"[yellow]⚠[/] {count} file(s) contributed no chunks (see table above).\n"
        "  Unsupported and oversized files are expected; parse errors usually mean\n"
        "  the file has syntax errors."
    )
