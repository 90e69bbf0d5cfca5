"""semindex configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site — not in this module)
  2. Environment variables  (SEMINDEX_EMBEDDING_MODEL, SEMINDEX_HEURISTICS_PATH,
     SEMINDEX_LOG_LEVEL)
  3. Per-project semindex.yaml  (next to .semindex.db)
  4. Global ~/.semindex/config.yaml  (model defaults only — no API keys)
  5. Hardcoded defaults

Global config must never contain API keys; use environment variables instead.
All YAML reads use yaml.safe_load() — never yaml.load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".semindex"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "semindex.yaml"

DEFAULT_DB_NAME: str = ".semindex.db"

# Fields that suggest an API key — forbidden in global config.
# Does NOT match legitimate config keys like max_tokens or batch_size.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"  # api_key, api-key, api_secret, apikey
    r"|_token$"                  # github_token, access_token (suffix)
    r"|^token$"                  # exactly "token"
    r"|_secret$"                 # client_secret (suffix)
    r"|^secret$"                 # exactly "secret"
    r"|passw(?:ord|d)"           # password, passwd
    r"|credential",              # credential, credentials
    re.IGNORECASE,
)

# Known top-level sections — unknown keys produce a warning
_KNOWN_SECTIONS: frozenset[str] = frozenset(
    ["chunking", "embedding", "search", "heuristics", "logging", "bundles"]
)

_LOG_FORMATS: frozenset[str] = frozenset(["console", "json"])


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class ChunkingCfg:
    """Extraction limits (semindex.yaml: chunking:).

    Attributes:
        max_chunk_size: Ceiling for a chunk's assembled code, in characters.
        min_function_size: Function units must be longer than this.
        min_structure_size: Structure units must be at least this long.
        max_file_size: Files with more characters are skipped.
        include_context: Prepend relevant imports/types to each chunk.
    """

    max_chunk_size: int = 3_000
    min_function_size: int = 40
    min_structure_size: int = 20
    max_file_size: int = 200_000
    include_context: bool = True


@dataclass
class EmbeddingCfg:
    """Embedding model configuration (semindex.yaml: embedding:)."""

    model: str = "openai/text-embedding-3-small"
    max_input_chars: int = 8_192
    batch_size: int = 100


@dataclass
class SearchCfg:
    """Similarity search defaults (semindex.yaml: search:)."""

    limit: int = 10
    threshold: float = 0.5
    batch_size: int = 100


@dataclass
class HeuristicsCfg:
    """Heuristics rule file (semindex.yaml: heuristics:).

    ``path`` is resolved against the project directory when relative.
    """

    path: str = "heuristics.yaml"


@dataclass
class LoggingCfg:
    level: str = "INFO"
    format: str = "console"  # console | json


@dataclass
class SemindexConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    chunking: ChunkingCfg = field(default_factory=ChunkingCfg)
    embedding: EmbeddingCfg = field(default_factory=EmbeddingCfg)
    search: SearchCfg = field(default_factory=SearchCfg)
    heuristics: HeuristicsCfg = field(default_factory=HeuristicsCfg)
    logging: LoggingCfg = field(default_factory=LoggingCfg)
    bundles: dict[str, list[str]] = field(default_factory=dict)

    def heuristics_path(self, project_dir: Path) -> Path:
        path = Path(self.heuristics.path).expanduser()
        return path if path.is_absolute() else project_dir / path


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigError if *data* contains any API-key-like key names."""

    def _scan(obj: Any, path: str) -> None:
        if isinstance(obj, dict):
            for k, v in obj.items():
                full = f"{path}.{k}" if path else k
                if _API_KEY_RE.search(str(k)):
                    raise ConfigError(
                        f"Global config '{source}' contains a forbidden key '{full}'.\n"
                        f"  API keys must be set via environment variables, not config files.\n"
                        f"  Remove '{full}' from {source.name} and use:\n"
                        f"    export {str(k).upper().replace('-', '_')}=<value>"
                    )
                _scan(v, full)

    _scan(data, "")


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}' — ignored.",
                UserWarning,
                stacklevel=4,
            )


def _positive(value: Any, name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from exc
    if number < 1:
        raise ConfigError(f"{name} must be >= 1, got {number}")
    return number


def _non_negative(value: Any, name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from exc
    if number < 0:
        raise ConfigError(f"{name} must be >= 0, got {number}")
    return number


def _threshold(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"search.threshold must be a number, got {value!r}") from exc
    if not -1.0 <= number <= 1.0:
        raise ConfigError(f"search.threshold must be within [-1, 1], got {number}")
    return number


def _parse_bundles(raw: Any) -> dict[str, list[str]]:
    if not isinstance(raw, dict):
        raise ConfigError("bundles must map a bundle name to a list of glob patterns")
    bundles: dict[str, list[str]] = {}
    for name, patterns in raw.items():
        if isinstance(patterns, str):
            patterns = [patterns]
        if not isinstance(patterns, list):
            raise ConfigError(f"bundles.{name} must be a list of glob patterns")
        bundles[str(name)] = [str(p) for p in patterns]
    return bundles


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _cfg_from_dict(data: dict[str, Any]) -> SemindexConfig:
    """Build a *SemindexConfig* from a merged raw YAML dict."""
    cfg = SemindexConfig()

    if "chunking" in data:
        c = data["chunking"] or {}
        cfg.chunking = ChunkingCfg(
            max_chunk_size=_positive(
                c.get("max_chunk_size", cfg.chunking.max_chunk_size), "chunking.max_chunk_size"
            ),
            min_function_size=_non_negative(
                c.get("min_function_size", cfg.chunking.min_function_size),
                "chunking.min_function_size",
            ),
            min_structure_size=_non_negative(
                c.get("min_structure_size", cfg.chunking.min_structure_size),
                "chunking.min_structure_size",
            ),
            max_file_size=_positive(
                c.get("max_file_size", cfg.chunking.max_file_size), "chunking.max_file_size"
            ),
            include_context=bool(c.get("include_context", cfg.chunking.include_context)),
        )

    if "embedding" in data:
        e = data["embedding"] or {}
        cfg.embedding = EmbeddingCfg(
            model=str(e.get("model", cfg.embedding.model)),
            max_input_chars=_positive(
                e.get("max_input_chars", cfg.embedding.max_input_chars),
                "embedding.max_input_chars",
            ),
            batch_size=_positive(
                e.get("batch_size", cfg.embedding.batch_size), "embedding.batch_size"
            ),
        )

    if "search" in data:
        s = data["search"] or {}
        cfg.search = SearchCfg(
            limit=_positive(s.get("limit", cfg.search.limit), "search.limit"),
            threshold=_threshold(s.get("threshold", cfg.search.threshold)),
            batch_size=_positive(s.get("batch_size", cfg.search.batch_size), "search.batch_size"),
        )

    if "heuristics" in data:
        h = data["heuristics"] or {}
        cfg.heuristics = HeuristicsCfg(path=str(h.get("path", cfg.heuristics.path)))

    if "logging" in data:
        lg = data["logging"] or {}
        fmt = str(lg.get("format", cfg.logging.format)).lower()
        if fmt not in _LOG_FORMATS:
            raise ConfigError(f"logging.format must be 'console' or 'json', got '{fmt}'")
        cfg.logging = LoggingCfg(level=str(lg.get("level", cfg.logging.level)).upper(), format=fmt)

    if "bundles" in data:
        cfg.bundles = _parse_bundles(data["bundles"] or {})

    return cfg


def _apply_env_overrides(cfg: SemindexConfig) -> SemindexConfig:
    """Apply SEMINDEX_* environment variable overrides (layer 2)."""
    if model := os.environ.get("SEMINDEX_EMBEDDING_MODEL"):
        cfg.embedding.model = model
    if path := os.environ.get("SEMINDEX_HEURISTICS_PATH"):
        cfg.heuristics.path = path
    if level := os.environ.get("SEMINDEX_LOG_LEVEL"):
        cfg.logging.level = level.upper()
    return cfg


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config file '{path}' is not valid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config file '{path}' must contain a mapping at the top level")
    return data


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> SemindexConfig:
    """Load and return a merged *SemindexConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *semindex.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Raises:
        ConfigError: If global config contains API-key-like fields, or a
            value is out of range.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    # Layer 1: global config
    if global_path.exists():
        raw_global = _read_yaml(global_path)
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    # Layer 2: per-project config
    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = _read_yaml(project_cfg_path)
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _cfg_from_dict(merged)

    # Layer 3: env var overrides
    return _apply_env_overrides(cfg)
