"""Tests for the semindex config loader."""

from __future__ import annotations

import warnings
from pathlib import Path

import pytest
import yaml

from semindex.config import (
    ChunkingCfg,
    ConfigError,
    SemindexConfig,
    load_config,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_yaml(path: Path, data: dict) -> None:
    path.write_text(yaml.dump(data), encoding="utf-8")


@pytest.fixture
def no_global(tmp_path: Path) -> Path:
    return tmp_path / "nonexistent" / "config.yaml"


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("SEMINDEX_EMBEDDING_MODEL", "SEMINDEX_HEURISTICS_PATH", "SEMINDEX_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


# ---------------------------------------------------------------------------
# Defaults — no config files present
# ---------------------------------------------------------------------------


def test_load_config_defaults_no_files(tmp_path: Path, no_global: Path) -> None:
    """No config files → all hardcoded defaults."""
    cfg = load_config(project_dir=tmp_path, global_config_path=no_global)

    assert cfg.chunking == ChunkingCfg()
    assert cfg.chunking.max_chunk_size == 3_000
    assert cfg.chunking.max_file_size == 200_000
    assert cfg.embedding.model == "openai/text-embedding-3-small"
    assert cfg.embedding.max_input_chars == 8_192
    assert cfg.search.limit == 10
    assert cfg.search.threshold == 0.5
    assert cfg.heuristics.path == "heuristics.yaml"
    assert cfg.logging.level == "INFO"
    assert cfg.logging.format == "console"
    assert cfg.bundles == {}


def test_heuristics_path_resolves_relative_to_project(tmp_path: Path) -> None:
    cfg = SemindexConfig()
    assert cfg.heuristics_path(tmp_path) == tmp_path / "heuristics.yaml"
    cfg.heuristics.path = str(tmp_path / "elsewhere.yaml")
    assert cfg.heuristics_path(Path("/unused")) == tmp_path / "elsewhere.yaml"


# ---------------------------------------------------------------------------
# Global and project layers
# ---------------------------------------------------------------------------


def test_load_config_global_overrides_defaults(tmp_path: Path) -> None:
    """Global config overrides hardcoded defaults."""
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"embedding": {"model": "voyage/voyage-code-3"}})

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.embedding.model == "voyage/voyage-code-3"
    # Other defaults unchanged
    assert cfg.embedding.batch_size == 100


def test_load_config_global_empty_file(tmp_path: Path) -> None:
    """Empty global config file → defaults (no crash)."""
    global_cfg = tmp_path / "config.yaml"
    global_cfg.write_text("", encoding="utf-8")

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.embedding.model == "openai/text-embedding-3-small"


def test_load_config_project_overrides_global(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"search": {"limit": 5, "threshold": 0.3}})
    _write_yaml(tmp_path / "semindex.yaml", {"search": {"limit": 20}})

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.search.limit == 20
    # deep merge keeps the global threshold
    assert cfg.search.threshold == 0.3


def test_load_config_chunking_and_bundles(tmp_path: Path, no_global: Path) -> None:
    _write_yaml(
        tmp_path / "semindex.yaml",
        {
            "chunking": {"max_chunk_size": 1500, "include_context": False},
            "bundles": {"frontend": ["web/**/*.tsx"], "server": "src/**/*.rs"},
        },
    )
    cfg = load_config(project_dir=tmp_path, global_config_path=no_global)
    assert cfg.chunking.max_chunk_size == 1500
    assert cfg.chunking.include_context is False
    assert cfg.chunking.min_function_size == 40
    assert cfg.bundles == {"frontend": ["web/**/*.tsx"], "server": ["src/**/*.rs"]}


def test_load_config_logging_section(tmp_path: Path, no_global: Path) -> None:
    _write_yaml(tmp_path / "semindex.yaml", {"logging": {"level": "debug", "format": "JSON"}})
    cfg = load_config(project_dir=tmp_path, global_config_path=no_global)
    assert cfg.logging.level == "DEBUG"
    assert cfg.logging.format == "json"


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "data",
    [
        {"chunking": {"max_chunk_size": 0}},
        {"chunking": {"min_function_size": -1}},
        {"embedding": {"batch_size": "many"}},
        {"search": {"threshold": 1.5}},
        {"search": {"threshold": "high"}},
        {"search": {"limit": 0}},
        {"logging": {"format": "xml"}},
        {"bundles": ["web/**"]},
        {"bundles": {"frontend": 3}},
    ],
)
def test_invalid_values_raise(tmp_path: Path, no_global: Path, data: dict) -> None:
    _write_yaml(tmp_path / "semindex.yaml", data)
    with pytest.raises(ConfigError):
        load_config(project_dir=tmp_path, global_config_path=no_global)


def test_invalid_yaml_raises(tmp_path: Path, no_global: Path) -> None:
    (tmp_path / "semindex.yaml").write_text("search: [unclosed", encoding="utf-8")
    with pytest.raises(ConfigError, match="not valid YAML"):
        load_config(project_dir=tmp_path, global_config_path=no_global)


def test_non_mapping_yaml_raises(tmp_path: Path, no_global: Path) -> None:
    (tmp_path / "semindex.yaml").write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="mapping"):
        load_config(project_dir=tmp_path, global_config_path=no_global)


@pytest.mark.parametrize("bad_key", ["api_key", "openai_api_key", "token", "client_secret", "password"])
def test_global_config_rejects_api_key_fields(tmp_path: Path, bad_key: str) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"embedding": {bad_key: "sk-123"}})
    with pytest.raises(ConfigError, match="forbidden key"):
        load_config(project_dir=tmp_path, global_config_path=global_cfg)


def test_batch_size_is_not_an_api_key(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"embedding": {"batch_size": 50}})
    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.embedding.batch_size == 50


def test_unknown_top_level_key_warns(tmp_path: Path, no_global: Path) -> None:
    _write_yaml(tmp_path / "semindex.yaml", {"retrieval": {"top_k": 3}})
    with warnings.catch_warnings(record=True) as w:
        warnings.simplefilter("always")
        load_config(project_dir=tmp_path, global_config_path=no_global)
    assert any("retrieval" in str(warning.message) for warning in w)


# ---------------------------------------------------------------------------
# Environment overrides
# ---------------------------------------------------------------------------


def test_env_var_embedding_model_override(
    tmp_path: Path, no_global: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _write_yaml(tmp_path / "semindex.yaml", {"embedding": {"model": "openai/text-embedding-3-small"}})
    monkeypatch.setenv("SEMINDEX_EMBEDDING_MODEL", "openai/text-embedding-3-large")
    cfg = load_config(project_dir=tmp_path, global_config_path=no_global)
    assert cfg.embedding.model == "openai/text-embedding-3-large"


def test_env_var_heuristics_and_log_level(
    tmp_path: Path, no_global: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("SEMINDEX_HEURISTICS_PATH", "rules/custom.yaml")
    monkeypatch.setenv("SEMINDEX_LOG_LEVEL", "warning")
    cfg = load_config(project_dir=tmp_path, global_config_path=no_global)
    assert cfg.heuristics_path(tmp_path) == tmp_path / "rules" / "custom.yaml"
    assert cfg.logging.level == "WARNING"
