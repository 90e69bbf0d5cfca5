"""semindex CLI entry point."""

from __future__ import annotations

import importlib.metadata
from typing import Annotated

import typer

from semindex.cli.clear import clear_cmd
from semindex.cli.heuristics import heuristics_app
from semindex.cli.index import index_cmd
from semindex.cli.search import search_cmd
from semindex.cli.status import status_cmd


def _installed_version() -> str:
    try:
        return importlib.metadata.version("semindex")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"semindex {_installed_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="semindex",
    help=(
        "semindex — semantic code indexing.\n\n"
        "  semindex index    Extract and classify function-level chunks.\n"
        "  semindex search   Find code by what it does."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """semindex — semantic code indexing."""


app.command("index")(index_cmd)
app.command("search")(search_cmd)
app.command("status")(status_cmd)
app.command("clear")(clear_cmd)
app.add_typer(heuristics_app, name="heuristics")


@app.command("version")
def version_cmd() -> None:
    """Show the installed semindex version."""
    typer.echo(f"semindex {_installed_version()}")


if __name__ == "__main__":
    app()
