"""HeuristicsManager — owns the active rule set and classifies units.

The active ``HeuristicsConfig`` is immutable and replaced wholesale on
reload, so readers always see one consistent snapshot. Loading and swapping
are serialised by a lock. Watching the file is left to the caller, who
calls ``reload()`` (or polls ``reload_if_changed()``).
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from semindex.heuristics.conditions import RuleContext
from semindex.heuristics.defaults import default_heuristics
from semindex.heuristics.rules import (
    FirstMatch,
    HeuristicsConfig,
    HeuristicsConfigError,
    MatchAll,
    dedupe,
    parse_config,
)
from semindex.log import get_logger

log = get_logger(__name__)


@dataclass
class Classification:
    purpose: str
    confidence: float
    business_domain: list[str] = field(default_factory=list)
    technical_patterns: list[str] = field(default_factory=list)


def read_heuristics_file(path: Path) -> Any:
    """Read a heuristics document (YAML, which also covers JSON)."""
    return yaml.safe_load(path.read_text(encoding="utf-8"))


class HeuristicsManager:
    """Loads, validates and applies heuristic rules.

    Args:
        config_path: YAML/JSON heuristics file. ``None`` means the built-in
            rule set only.
    """

    def __init__(self, config_path: Path | None = None) -> None:
        self.config_path = config_path
        self._lock = threading.Lock()
        self._config: HeuristicsConfig | None = None
        self._mtime_ns: int | None = None
        self._bundle_cache: dict[str, list[str]] = {}
        self.using_fallback = False

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @property
    def config(self) -> HeuristicsConfig:
        """The active rule set, loading it on first access."""
        current = self._config
        if current is None:
            return self.load()
        return current

    def load(self) -> HeuristicsConfig:
        """(Re)load the rule file, falling back to the built-in rules on error.

        Never raises: a missing, unreadable or invalid file logs and installs
        the default rule set.
        """
        with self._lock:
            path = self.config_path
            if path is None or not path.exists():
                self._swap(parse_config(default_heuristics()), fallback=True, mtime_ns=None)
                log.info("heuristics_fallback", path=str(path) if path else None, reason="missing")
                return self._config  # type: ignore[return-value]

            try:
                mtime_ns = path.stat().st_mtime_ns
                parsed = parse_config(read_heuristics_file(path))
            except (OSError, yaml.YAMLError, HeuristicsConfigError) as exc:
                self._swap(parse_config(default_heuristics()), fallback=True, mtime_ns=None)
                log.warning("heuristics_fallback", path=str(path), reason=str(exc))
                return self._config  # type: ignore[return-value]

            self._swap(parsed, fallback=False, mtime_ns=mtime_ns)
            for rule_name, cond in parsed.invalid_conditions():
                log.warning("condition_invalid", rule=rule_name, reason=cond.reason)
            log.info("heuristics_loaded", path=str(path), version=parsed.version)
            return parsed

    def reload(self) -> HeuristicsConfig:
        return self.load()

    def reload_if_changed(self) -> bool:
        """Reload when the file's mtime differs from the last load.

        Returns:
            True if a reload happened.
        """
        path = self.config_path
        if path is None:
            return False
        try:
            mtime_ns: int | None = path.stat().st_mtime_ns
        except OSError:
            mtime_ns = None
        if self._config is not None and mtime_ns == self._mtime_ns:
            return False
        self.load()
        return True

    def save(self, raw: dict[str, Any]) -> HeuristicsConfig:
        """Validate *raw*, write it to ``config_path`` and make it active.

        Raises:
            HeuristicsConfigError: If *raw* is invalid (nothing is written).
            ValueError: If the manager has no ``config_path``.
        """
        if self.config_path is None:
            raise ValueError("HeuristicsManager has no config_path to save to")
        parsed = parse_config(raw)
        with self._lock:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            self.config_path.write_text(
                yaml.safe_dump(raw, sort_keys=False, allow_unicode=True), encoding="utf-8"
            )
            self._swap(parsed, fallback=False, mtime_ns=self.config_path.stat().st_mtime_ns)
        log.info("heuristics_loaded", path=str(self.config_path), version=parsed.version)
        return parsed

    def _swap(self, config: HeuristicsConfig, *, fallback: bool, mtime_ns: int | None) -> None:
        self._bundle_cache = {}
        self._config = config
        self._mtime_ns = mtime_ns
        self.using_fallback = fallback

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def determine_purpose(self, ctx: RuleContext) -> tuple[str, float]:
        config = self.config
        rule = FirstMatch.resolve(config.purpose_rules, ctx)
        if rule is None:
            return config.purpose_fallback, config.purpose_fallback_confidence
        return rule.output, rule.confidence

    def infer_business_domains(self, ctx: RuleContext) -> list[str]:
        return MatchAll.resolve(self.config.domain_rules, ctx)

    def infer_technical_patterns(self, ctx: RuleContext) -> list[str]:
        return MatchAll.resolve(self.config.pattern_rules, ctx)

    def classify(self, ctx: RuleContext) -> Classification:
        """Purpose, business domains and technical patterns for one unit."""
        purpose, confidence = self.determine_purpose(ctx)
        return Classification(
            purpose=purpose,
            confidence=confidence,
            business_domain=self.infer_business_domains(ctx),
            technical_patterns=self.infer_technical_patterns(ctx),
        )

    def suggest_bundles_for_file(self, file_path: str) -> list[str]:
        """Bundles a file probably belongs to, based on its path alone."""
        cached = self._bundle_cache.get(file_path)
        if cached is not None:
            return list(cached)

        config = self.config
        ctx = RuleContext.for_file(file_path)
        suggestions: list[str] = []
        for rule in config.bundle_rules:
            if rule.matches(ctx):
                suggestions.extend(rule.outputs)
                suggestions.extend(MatchAll.resolve(rule.sub_rules, ctx))

        if not suggestions:
            if config.web_fallback is not None and config.web_fallback.matches(ctx):
                suggestions.extend(config.web_fallback.outputs)
            else:
                suggestions.extend(config.default_bundles)

        result = dedupe(suggestions)
        self._bundle_cache[file_path] = result
        return list(result)

    def semantic_type_mapping(self) -> dict[str, int]:
        """Flatten clusters into ``{semantic type: cluster id}``."""
        mapping: dict[str, int] = {}
        for types, cluster_id in self.config.clusters.values():
            for semantic_type in types:
                mapping[semantic_type] = cluster_id
        return mapping
