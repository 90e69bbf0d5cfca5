"""Condition variants for heuristic rules.

Each condition is written in configuration as a single-key mapping, e.g.
``{name_starts_with: use}`` or ``{node_kind_in: [function_declaration]}``,
and deserialised into one of the frozen dataclasses below. Names, paths and
file names are compared lowercased.

A condition that cannot be understood (unknown kind, wrong value type,
invalid regex) evaluates to False and logs a warning; it never aborts the
rule scan.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import PurePosixPath
from typing import Any, ClassVar

from semindex.log import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class RuleContext:
    """What a rule may look at: one unit plus its file."""

    name: str = ""
    file_path: str = ""
    node_kind: str = ""
    code: str = ""
    imports: tuple[str, ...] = ()
    is_exported: bool = False
    is_async: bool = False
    path_parts: tuple[str, ...] = field(init=False)
    file_name: str = field(init=False)

    def __post_init__(self) -> None:
        path = self.file_path.replace("\\", "/").lower()
        object.__setattr__(self, "name", self.name.lower())
        object.__setattr__(self, "file_path", path)
        object.__setattr__(self, "path_parts", tuple(p for p in path.split("/") if p))
        object.__setattr__(self, "file_name", PurePosixPath(path).name)

    @classmethod
    def for_file(cls, file_path: str) -> RuleContext:
        return cls(file_path=file_path)


class Condition(ABC):
    """Base class; subclasses declare ``kind`` and implement ``evaluate``."""

    kind: ClassVar[str] = ""

    @abstractmethod
    def evaluate(self, ctx: RuleContext) -> bool:
        """Return True when the condition holds for *ctx*."""

    def to_config(self) -> dict[str, Any]:
        return {self.kind: getattr(self, "value")}


@dataclass(frozen=True)
class NameStartsWith(Condition):
    kind: ClassVar[str] = "name_starts_with"
    value: str

    def evaluate(self, ctx: RuleContext) -> bool:
        return ctx.name.startswith(self.value.lower())


@dataclass(frozen=True)
class NameIncludes(Condition):
    kind: ClassVar[str] = "name_includes"
    value: str

    def evaluate(self, ctx: RuleContext) -> bool:
        return self.value.lower() in ctx.name


@dataclass(frozen=True)
class NameMatches(Condition):
    kind: ClassVar[str] = "name_matches"
    value: str

    def evaluate(self, ctx: RuleContext) -> bool:
        return _compile(self.value).search(ctx.name) is not None


@dataclass(frozen=True)
class PathSegmentIncludes(Condition):
    """A whole path segment (directory or file name) equals the value."""

    kind: ClassVar[str] = "path_segment_includes"
    value: str

    def evaluate(self, ctx: RuleContext) -> bool:
        return self.value.lower() in ctx.path_parts


@dataclass(frozen=True)
class PathIncludes(Condition):
    """Substring of the full lowercased path."""

    kind: ClassVar[str] = "path_includes"
    value: str

    def evaluate(self, ctx: RuleContext) -> bool:
        return self.value.lower() in ctx.file_path


@dataclass(frozen=True)
class FileNameIncludes(Condition):
    kind: ClassVar[str] = "file_name_includes"
    value: str

    def evaluate(self, ctx: RuleContext) -> bool:
        return self.value.lower() in ctx.file_name


@dataclass(frozen=True)
class FileNameEndsWith(Condition):
    kind: ClassVar[str] = "file_name_ends_with"
    value: str

    def evaluate(self, ctx: RuleContext) -> bool:
        return ctx.file_name.endswith(self.value.lower())


@dataclass(frozen=True)
class NodeKindEquals(Condition):
    kind: ClassVar[str] = "node_kind_equals"
    value: str

    def evaluate(self, ctx: RuleContext) -> bool:
        return ctx.node_kind == self.value


@dataclass(frozen=True)
class NodeKindIn(Condition):
    kind: ClassVar[str] = "node_kind_in"
    value: tuple[str, ...]

    def evaluate(self, ctx: RuleContext) -> bool:
        return ctx.node_kind in self.value

    def to_config(self) -> dict[str, Any]:
        return {self.kind: list(self.value)}


@dataclass(frozen=True)
class ImportIncludes(Condition):
    """Any of the file's import statements contains the value."""

    kind: ClassVar[str] = "import_includes"
    value: str

    def evaluate(self, ctx: RuleContext) -> bool:
        return any(self.value in imp for imp in ctx.imports)


@dataclass(frozen=True)
class CodeIncludes(Condition):
    kind: ClassVar[str] = "code_includes"
    value: str

    def evaluate(self, ctx: RuleContext) -> bool:
        return self.value in ctx.code


@dataclass(frozen=True)
class IsExported(Condition):
    kind: ClassVar[str] = "is_exported"
    value: bool = True

    def evaluate(self, ctx: RuleContext) -> bool:
        return ctx.is_exported is self.value


@dataclass(frozen=True)
class IsAsync(Condition):
    kind: ClassVar[str] = "is_async"
    value: bool = True

    def evaluate(self, ctx: RuleContext) -> bool:
        return ctx.is_async is self.value


@dataclass(frozen=True)
class InvalidCondition(Condition):
    """Placeholder for configuration that could not be deserialised."""

    kind: ClassVar[str] = "invalid"
    raw: Any
    reason: str

    def evaluate(self, ctx: RuleContext) -> bool:
        log.warning("condition_invalid", condition=repr(self.raw), reason=self.reason)
        return False

    def to_config(self) -> dict[str, Any]:
        return self.raw if isinstance(self.raw, dict) else {"invalid": self.raw}


_STRING_KINDS: dict[str, type[Condition]] = {
    cls.kind: cls
    for cls in (
        NameStartsWith,
        NameIncludes,
        NameMatches,
        PathSegmentIncludes,
        PathIncludes,
        FileNameIncludes,
        FileNameEndsWith,
        NodeKindEquals,
        ImportIncludes,
        CodeIncludes,
    )
}

_BOOL_KINDS: dict[str, type[Condition]] = {IsExported.kind: IsExported, IsAsync.kind: IsAsync}

CONDITION_KINDS: frozenset[str] = frozenset(
    [*_STRING_KINDS, *_BOOL_KINDS, NodeKindIn.kind]
)


def parse_condition(raw: Any) -> Condition:
    """Deserialise one condition mapping. Never raises."""
    if not isinstance(raw, dict) or len(raw) != 1:
        return InvalidCondition(raw, "expected a single-key mapping")
    kind, value = next(iter(raw.items()))

    if kind in _STRING_KINDS:
        if not isinstance(value, str):
            return InvalidCondition(raw, f"{kind} expects a string")
        return _STRING_KINDS[kind](value)  # type: ignore[call-arg]
    if kind in _BOOL_KINDS:
        if not isinstance(value, bool):
            return InvalidCondition(raw, f"{kind} expects true or false")
        return _BOOL_KINDS[kind](value)  # type: ignore[call-arg]
    if kind == NodeKindIn.kind:
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            return InvalidCondition(raw, f"{kind} expects a list of strings")
        return NodeKindIn(tuple(value))
    return InvalidCondition(raw, f"unknown condition kind '{kind}'")


def safe_evaluate(condition: Condition, ctx: RuleContext) -> bool:
    """Evaluate *condition*; any failure counts as a non-match."""
    try:
        return condition.evaluate(ctx)
    except (re.error, TypeError, ValueError) as exc:
        log.warning("condition_invalid", condition=repr(condition), reason=str(exc))
        return False


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern, re.IGNORECASE)
