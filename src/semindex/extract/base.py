"""Base extractor interface shared by code and document grammars."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class CandidateUnit:
    """A structural unit carved out of one file, before context and labels."""

    name: str
    node_kind: str
    category: str  # function | structure
    start_line: int
    end_line: int
    code: str
    is_exported: bool = False
    is_async: bool = False


@dataclass
class FileStructure:
    """Everything an extractor learned about one file.

    Attributes:
        units: Candidate units in source order.
        types: Type declarations usable as context for other units.
        imports: Verbatim import/use statements, in source order.
    """

    units: list[CandidateUnit] = field(default_factory=list)
    types: list[CandidateUnit] = field(default_factory=list)
    imports: list[str] = field(default_factory=list)

    @property
    def type_names(self) -> list[str]:
        return [t.name for t in self.types]


class BaseExtractor(ABC):
    """Abstract base for all extractors.

    Subclasses implement ``extract()`` over an already-parsed tree and use
    ``_text()`` / ``_line()`` / ``_structure()`` to build units.

    Thresholds are in characters of node text: function units must be
    strictly longer than ``min_function_size``; structure units must be at
    least ``min_structure_size`` long.
    """

    def __init__(self, min_function_size: int = 40, min_structure_size: int = 20) -> None:
        if min_function_size < 0 or min_structure_size < 0:
            raise ValueError("minimum sizes must be >= 0")
        self.min_function_size = min_function_size
        self.min_structure_size = min_structure_size

    @abstractmethod
    def extract(self, root: Any, source: bytes, path: str) -> FileStructure:
        """Walk *root* (the tree's root node) and return the file's structure.

        Args:
            root: tree-sitter root node of *source*.
            source: UTF-8 encoded file content the tree was parsed from.
            path: Project-relative file path (metadata only).
        """

    @staticmethod
    def _text(node: Any, source: bytes) -> str:
        return source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")

    @staticmethod
    def _line(node: Any) -> int:
        """1-based start line of *node*."""
        return node.start_point[0] + 1

    def _structure(self, name: str, node: Any, source: bytes) -> CandidateUnit | None:
        """Build a structure unit, or None if it falls under the size floor."""
        code = self._text(node, source)
        if len(code) < self.min_structure_size:
            return None
        return CandidateUnit(
            name=name,
            node_kind=node.type,
            category="structure",
            start_line=self._line(node),
            end_line=node.end_point[0] + 1,
            code=code,
        )
