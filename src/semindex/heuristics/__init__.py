from semindex.heuristics.conditions import RuleContext, parse_condition
from semindex.heuristics.defaults import DEFAULT_HEURISTICS, default_heuristics
from semindex.heuristics.manager import Classification, HeuristicsManager
from semindex.heuristics.rules import (
    FirstMatch,
    HeuristicsConfig,
    HeuristicsConfigError,
    MatchAll,
    Rule,
    parse_config,
)

__all__ = [
    "Classification",
    "DEFAULT_HEURISTICS",
    "FirstMatch",
    "HeuristicsConfig",
    "HeuristicsConfigError",
    "HeuristicsManager",
    "MatchAll",
    "Rule",
    "RuleContext",
    "default_heuristics",
    "parse_condition",
    "parse_config",
]
