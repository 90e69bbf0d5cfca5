"""Tests for the semindex heuristics sub-commands."""

from __future__ import annotations

from pathlib import Path

import yaml
from typer.testing import CliRunner

from semindex.cli.main import app
from semindex.heuristics.defaults import default_heuristics

runner = CliRunner()


def test_init_writes_defaults(project: Path) -> None:
    result = runner.invoke(app, ["heuristics", "init", "--root", str(project)])
    assert result.exit_code == 0, result.output
    written = yaml.safe_load((project / "heuristics.yaml").read_text(encoding="utf-8"))
    assert written == default_heuristics()


def test_init_refuses_to_overwrite(project: Path) -> None:
    (project / "heuristics.yaml").write_text("keep: me\n", encoding="utf-8")
    result = runner.invoke(app, ["heuristics", "init", "--root", str(project)])
    assert result.exit_code == 1
    assert "--force" in result.output
    assert (project / "heuristics.yaml").read_text(encoding="utf-8") == "keep: me\n"


def test_init_force(project: Path) -> None:
    (project / "heuristics.yaml").write_text("keep: me\n", encoding="utf-8")
    result = runner.invoke(app, ["heuristics", "init", "--root", str(project), "--force"])
    assert result.exit_code == 0, result.output


def test_validate_defaults(project: Path, monkeypatch) -> None:
    monkeypatch.chdir(project)
    runner.invoke(app, ["heuristics", "init"])
    result = runner.invoke(app, ["heuristics", "validate", "heuristics.yaml"])
    assert result.exit_code == 0, result.output
    assert "15 purpose" in result.output


def test_validate_missing_file(project: Path) -> None:
    result = runner.invoke(app, ["heuristics", "validate", "--root", str(project)])
    assert result.exit_code == 1
    assert "File not found" in result.output


def test_validate_missing_section(project: Path) -> None:
    path = project / "rules.yaml"
    path.write_text("version: '1'\npurpose: {}\n", encoding="utf-8")
    result = runner.invoke(app, ["heuristics", "validate", str(path), "--root", str(project)])
    assert result.exit_code == 1
    assert "Missing required section" in result.output


def test_validate_malformed_bundle_fallback(project: Path, monkeypatch) -> None:
    monkeypatch.chdir(project)
    doc = default_heuristics()
    doc["bundles"]["fallback"]["default"] = ["shared"]
    Path("rules.yaml").write_text(yaml.safe_dump(doc), encoding="utf-8")
    result = runner.invoke(app, ["heuristics", "validate", "rules.yaml"])
    assert result.exit_code == 1
    assert "default must be a mapping" in result.output


def test_validate_reports_invalid_conditions(project: Path) -> None:
    doc = default_heuristics()
    doc["purpose"]["patterns"]["react_hook"]["conditions"].append({"name_sounds_like": "use"})
    path = project / "heuristics.yaml"
    path.write_text(yaml.safe_dump(doc), encoding="utf-8")
    result = runner.invoke(app, ["heuristics", "validate", "--root", str(project)])
    assert result.exit_code == 1
    assert "react_hook" in result.output


def test_suggest(project: Path) -> None:
    result = runner.invoke(
        app,
        ["heuristics", "suggest", "web/src/App.tsx", "docs/guide.md", "--root", str(project)],
    )
    assert result.exit_code == 0, result.output
    assert "frontend" in result.output
    assert "docs" in result.output
