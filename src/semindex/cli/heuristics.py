"""semindex heuristics CLI commands.

Commands:
  semindex heuristics validate [PATH]   — check a rule file without indexing
  semindex heuristics init [PATH]       — write the built-in rules as a starting point
  semindex heuristics suggest FILE...   — show bundle suggestions for files
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich.markup import escape
from rich.table import Table

from semindex.cli.common import console, setup
from semindex.cli.errors import err_file_exists, err_heuristics_invalid
from semindex.heuristics.defaults import default_heuristics
from semindex.heuristics.manager import HeuristicsManager, read_heuristics_file
from semindex.heuristics.rules import HeuristicsConfigError, parse_config

heuristics_app = typer.Typer(
    name="heuristics",
    help="Inspect and manage classification rules.",
    add_completion=False,
)

_ROOT_OPTION = typer.Option("--root", "-r", help="Project root (for config).")


def _resolve(root: Path, path: Path | None) -> Path:
    cfg = setup(root)
    return path if path is not None else cfg.heuristics_path(root)


@heuristics_app.command("validate")
def heuristics_validate_cmd(
    path: Annotated[
        Path | None,
        typer.Argument(help="Rule file (default: heuristics.path from config)."),
    ] = None,
    root: Annotated[Path, _ROOT_OPTION] = Path("."),
) -> None:
    """Validate a heuristics file; exit 1 if it would fall back to built-in rules."""
    target = _resolve(root.resolve(), path)
    if not target.exists():
        console.print(err_heuristics_invalid(str(target), "File not found."))
        raise typer.Exit(1)

    try:
        config = parse_config(read_heuristics_file(target))
    except (OSError, yaml.YAMLError, HeuristicsConfigError) as exc:
        console.print(err_heuristics_invalid(str(target), str(exc)))
        raise typer.Exit(1)

    invalid = config.invalid_conditions()
    console.print(
        f"[green]✓[/] {escape(str(target))} (version {escape(config.version)}): "
        f"{len(config.purpose_rules)} purpose, {len(config.domain_rules)} domain, "
        f"{len(config.pattern_rules)} pattern, {len(config.bundle_rules)} bundle rules, "
        f"{len(config.clusters)} clusters"
    )
    if invalid:
        table = Table(title="Invalid conditions (evaluated as false)")
        table.add_column("Rule", style="bold")
        table.add_column("Problem", style="yellow")
        for rule_name, cond in invalid:
            table.add_row(escape(rule_name), escape(cond.reason))
        console.print(table)
        raise typer.Exit(1)


@heuristics_app.command("init")
def heuristics_init_cmd(
    path: Annotated[
        Path | None,
        typer.Argument(help="Where to write (default: heuristics.path from config)."),
    ] = None,
    root: Annotated[Path, _ROOT_OPTION] = Path("."),
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite an existing file."),
    ] = False,
) -> None:
    """Write the built-in rule set to a file for editing."""
    target = _resolve(root.resolve(), path)
    if target.exists() and not force:
        console.print(err_file_exists(str(target)))
        raise typer.Exit(1)
    HeuristicsManager(target).save(default_heuristics())
    console.print(f"[green]✓[/] Wrote built-in heuristics to [bold]{escape(str(target))}[/]")


@heuristics_app.command("suggest")
def heuristics_suggest_cmd(
    files: Annotated[list[str], typer.Argument(help="Project-relative file paths.")],
    root: Annotated[Path, _ROOT_OPTION] = Path("."),
) -> None:
    """Show which bundles each file would be suggested for."""
    root = root.resolve()
    manager = HeuristicsManager(_resolve(root, None))
    table = Table(show_header=True, header_style="bold")
    table.add_column("File")
    table.add_column("Bundles", style="cyan")
    for file in files:
        bundles = manager.suggest_bundles_for_file(file)
        table.add_row(escape(file), escape(", ".join(bundles)) or "[dim](none)[/]")
    console.print(table)
