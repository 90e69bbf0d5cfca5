"""Fixtures for CLI tests: an isolated project directory."""

from __future__ import annotations

from pathlib import Path

import pytest

USERS_TS = """\
import { db } from './db';

export function getUser(id: string) {
  if (!id) { return null; }
  return db.users[id] || db.fallback(id);
}
"""


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("semindex.config._GLOBAL_CONFIG_PATH", tmp_path / "global" / "config.yaml")
    for name in ("SEMINDEX_EMBEDDING_MODEL", "SEMINDEX_HEURISTICS_PATH", "SEMINDEX_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A tiny project: one TypeScript module and one unsupported file."""
    root = tmp_path / "project"
    (root / "src").mkdir(parents=True)
    (root / "src" / "users.ts").write_text(USERS_TS, encoding="utf-8")
    (root / "notes.txt").write_text("not indexed\n", encoding="utf-8")
    return root
