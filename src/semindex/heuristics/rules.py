"""Rule model and the two resolution strategies.

Every rule carries an explicit combinator (``match: all`` or ``match: any``)
over its conditions. Purpose labels resolve with ``FirstMatch`` (ordered
scan, stop at the first hit); domain tags, pattern tags and bundle
suggestions resolve with ``MatchAll`` (every hit contributes, outputs are
de-duplicated in first-seen order).
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from semindex.heuristics.conditions import (
    Condition,
    InvalidCondition,
    RuleContext,
    parse_condition,
    safe_evaluate,
)

MATCH_ALL = "all"
MATCH_ANY = "any"

REQUIRED_SECTIONS = ("purpose", "bundles", "semantic_types")


class HeuristicsConfigError(ValueError):
    """Raised when a heuristics document is structurally invalid."""


@dataclass(frozen=True)
class Rule:
    """A named list of conditions with an explicit combinator and an output.

    Attributes:
        name: Key of the rule in its section.
        conditions: Conditions evaluated in order.
        match: ``all`` (AND) or ``any`` (OR). A rule with no conditions
            never matches.
        outputs: Labels produced when the rule matches.
        confidence: Optional score attached to the outputs.
    """

    name: str
    conditions: tuple[Condition, ...]
    match: str = MATCH_ANY
    outputs: tuple[str, ...] = ()
    confidence: float = 1.0

    def matches(self, ctx: RuleContext) -> bool:
        if not self.conditions:
            return False
        results = (safe_evaluate(c, ctx) for c in self.conditions)
        return all(results) if self.match == MATCH_ALL else any(results)

    @property
    def output(self) -> str:
        return self.outputs[0] if self.outputs else ""


@dataclass(frozen=True)
class BundleRule(Rule):
    """A bundle rule; sub-rules refine the suggestion (e.g. ``ui-components``)."""

    sub_rules: tuple[Rule, ...] = ()


class FirstMatch:
    """Ordered scan; the first matching rule wins."""

    @staticmethod
    def resolve(rules: Sequence[Rule], ctx: RuleContext) -> Rule | None:
        for rule in rules:
            if rule.matches(ctx):
                return rule
        return None


class MatchAll:
    """Every matching rule contributes its outputs, de-duplicated in order."""

    @staticmethod
    def resolve(rules: Sequence[Rule], ctx: RuleContext) -> list[str]:
        return dedupe(out for rule in rules if rule.matches(ctx) for out in rule.outputs)


def dedupe(values: Iterable[str]) -> list[str]:
    seen: dict[str, None] = {}
    for value in values:
        seen.setdefault(value, None)
    return list(seen)


@dataclass(frozen=True)
class HeuristicsConfig:
    """Parsed, validated heuristics document."""

    version: str
    purpose_rules: tuple[Rule, ...]
    purpose_fallback: str
    purpose_fallback_confidence: float
    domain_rules: tuple[Rule, ...]
    pattern_rules: tuple[Rule, ...]
    bundle_rules: tuple[BundleRule, ...]
    web_fallback: Rule | None
    default_bundles: tuple[str, ...]
    clusters: dict[str, tuple[list[str], int]] = field(default_factory=dict)
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def invalid_conditions(self) -> list[tuple[str, InvalidCondition]]:
        """(rule name, condition) for every condition that failed to parse."""
        rules: list[Rule] = [
            *self.purpose_rules,
            *self.domain_rules,
            *self.pattern_rules,
            *self.bundle_rules,
            *(sub for b in self.bundle_rules for sub in b.sub_rules),
        ]
        if self.web_fallback is not None:
            rules.append(self.web_fallback)
        return [
            (rule.name, cond)
            for rule in rules
            for cond in rule.conditions
            if isinstance(cond, InvalidCondition)
        ]


# ------------------------------------------------------------------
# Parsing
# ------------------------------------------------------------------


def parse_config(raw: Any) -> HeuristicsConfig:
    """Validate and parse a heuristics document.

    Malformed *conditions* are kept as ``InvalidCondition`` (evaluated as
    False at runtime); malformed *sections* raise.

    Raises:
        HeuristicsConfigError: If the document is not a mapping, a required
            section is missing, or a section has the wrong shape.
    """
    if not isinstance(raw, dict):
        raise HeuristicsConfigError("Heuristics config must be a mapping")
    missing = [s for s in REQUIRED_SECTIONS if s not in raw]
    if missing:
        raise HeuristicsConfigError(f"Missing required section(s): {', '.join(missing)}")

    purpose = _section(raw, "purpose")
    fallback = purpose.get("fallback") or {}
    if not isinstance(fallback, dict):
        raise HeuristicsConfigError("purpose.fallback must be a mapping")

    purpose_rules = tuple(
        _rule(f"purpose.{name}", name, body, outputs=[body.get("purpose")])
        for name, body in _patterns(purpose, "purpose").items()
    )

    domain_rules = _tag_rules(raw, "domains")
    pattern_rules = _tag_rules(raw, "patterns")

    bundles = _section(raw, "bundles")
    bundle_rules = tuple(
        _bundle_rule(name, body) for name, body in _patterns(bundles, "bundles").items()
    )
    bundle_fallback = bundles.get("fallback") or {}
    if not isinstance(bundle_fallback, dict):
        raise HeuristicsConfigError("bundles.fallback must be a mapping")
    web = bundle_fallback.get("web")
    if web is not None and not isinstance(web, dict):
        raise HeuristicsConfigError("bundles.fallback.web must be a mapping")
    web_fallback = (
        _rule("bundles.fallback.web", "web", web, outputs=[web.get("bundle")])
        if web is not None
        else None
    )
    default = bundle_fallback.get("default") or {}
    if not isinstance(default, dict):
        raise HeuristicsConfigError("bundles.fallback.default must be a mapping")
    default_list = default.get("bundles") or []
    if not isinstance(default_list, list):
        raise HeuristicsConfigError("bundles.fallback.default.bundles must be a list")
    default_bundles = tuple(str(b) for b in default_list)

    semantic = _section(raw, "semantic_types")
    clusters_raw = semantic.get("clusters") or {}
    if not isinstance(clusters_raw, dict):
        raise HeuristicsConfigError("semantic_types.clusters must be a mapping")
    clusters: dict[str, tuple[list[str], int]] = {}
    for name, body in clusters_raw.items():
        if not isinstance(body, dict) or not isinstance(body.get("types", []), list):
            raise HeuristicsConfigError(f"semantic_types.clusters.{name} is malformed")
        try:
            cluster_id = int(body.get("cluster_id", 0))
        except (TypeError, ValueError) as exc:
            raise HeuristicsConfigError(
                f"semantic_types.clusters.{name}.cluster_id must be an integer"
            ) from exc
        clusters[str(name)] = ([str(t) for t in body.get("types", [])], cluster_id)

    return HeuristicsConfig(
        version=str(raw.get("version", "1.0.0")),
        purpose_rules=purpose_rules,
        purpose_fallback=str(fallback.get("purpose", "Utility function")),
        purpose_fallback_confidence=_confidence(fallback.get("confidence", 0.5), "purpose.fallback"),
        domain_rules=domain_rules,
        pattern_rules=pattern_rules,
        bundle_rules=bundle_rules,
        web_fallback=web_fallback,
        default_bundles=default_bundles,
        clusters=clusters,
        raw=raw,
    )


def _section(raw: dict[str, Any], key: str) -> dict[str, Any]:
    section = raw.get(key)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise HeuristicsConfigError(f"Section '{key}' must be a mapping")
    return section


def _patterns(section: dict[str, Any], where: str) -> dict[str, dict[str, Any]]:
    patterns = section.get("patterns") or {}
    if not isinstance(patterns, dict):
        raise HeuristicsConfigError(f"{where}.patterns must be a mapping")
    for name, body in patterns.items():
        if not isinstance(body, dict):
            raise HeuristicsConfigError(f"{where}.patterns.{name} must be a mapping")
    return patterns


def _tag_rules(raw: dict[str, Any], key: str) -> tuple[Rule, ...]:
    section = _section(raw, key)
    rules = []
    for name, body in _patterns(section, key).items():
        tags = body.get("tags") or [name]
        if not isinstance(tags, list):
            raise HeuristicsConfigError(f"{key}.patterns.{name}.tags must be a list")
        rules.append(_rule(f"{key}.{name}", name, body, outputs=tags))
    return tuple(rules)


def _bundle_rule(name: str, body: dict[str, Any]) -> BundleRule:
    base = _rule(f"bundles.{name}", name, body, outputs=[body.get("bundle", name)])
    subs = body.get("sub_patterns") or {}
    if not isinstance(subs, dict):
        raise HeuristicsConfigError(f"bundles.patterns.{name}.sub_patterns must be a mapping")
    sub_rules = []
    for sub_name, sub_body in subs.items():
        if not isinstance(sub_body, dict):
            raise HeuristicsConfigError(f"bundles.patterns.{name}.sub_patterns.{sub_name} is malformed")
        sub_rules.append(
            _rule(
                f"bundles.{name}.{sub_name}",
                sub_name,
                sub_body,
                outputs=[sub_body.get("bundle", sub_name)],
            )
        )
    return BundleRule(
        name=base.name,
        conditions=base.conditions,
        match=base.match,
        outputs=base.outputs,
        confidence=base.confidence,
        sub_rules=tuple(sub_rules),
    )


def _rule(where: str, name: str, body: dict[str, Any], outputs: list[Any]) -> Rule:
    match = body.get("match", MATCH_ANY)
    if match not in (MATCH_ALL, MATCH_ANY):
        raise HeuristicsConfigError(f"{where}.match must be 'all' or 'any', got {match!r}")
    conditions = body.get("conditions") or []
    if not isinstance(conditions, list):
        raise HeuristicsConfigError(f"{where}.conditions must be a list")
    if any(o is None for o in outputs):
        raise HeuristicsConfigError(f"{where} has no output label")
    return Rule(
        name=str(name),
        conditions=tuple(parse_condition(c) for c in conditions),
        match=match,
        outputs=tuple(str(o) for o in outputs),
        confidence=_confidence(body.get("confidence", 1.0), where),
    )


def _confidence(value: Any, where: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise HeuristicsConfigError(f"{where}.confidence must be a number") from exc
