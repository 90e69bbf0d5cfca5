"""Domain models for the semindex persistence layer."""

from __future__ import annotations

import json
from dataclasses import dataclass, field


@dataclass
class Complexity:
    score: int = 1
    level: str = "low"  # low | medium | high


@dataclass
class SemanticChunk:
    """A structurally extracted, independently retrievable unit of source text.

    ``id`` is ``"{file_path}:{name}:{start_line}"`` and doubles as the upsert
    key: re-extracting an unchanged file reproduces the same ids.
    """

    id: str
    name: str
    file_path: str
    category: str  # function | structure
    node_kind: str
    code: str
    start_line: int
    complexity: Complexity = field(default_factory=Complexity)
    purpose: str = "Utility function"
    business_domain: list[str] = field(default_factory=list)
    technical_patterns: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    imports: list[str] = field(default_factory=list)
    types: list[str] = field(default_factory=list)
    bundles: list[str] = field(default_factory=list)
    is_exported: bool = False
    is_async: bool = False
    updated_at: str | None = None  # set by the database on write

    @staticmethod
    def make_id(file_path: str, name: str, start_line: int) -> str:
        return f"{file_path}:{name}:{start_line}"

    @property
    def context_level(self) -> str | None:
        """The context tag recorded by the assembler, if any."""
        for tag in self.tags:
            if tag.endswith("-context"):
                return tag
        return None

    def metadata_json(self) -> str:
        """Serialise everything without a fixed column into the side-channel field."""
        return json.dumps(
            {
                "category": self.category,
                "complexity_level": self.complexity.level,
                "tags": self.tags,
                "business_domain": self.business_domain,
                "technical_patterns": self.technical_patterns,
                "imports": self.imports,
                "types": self.types,
                "bundles": self.bundles,
                "is_exported": self.is_exported,
                "is_async": self.is_async,
            },
            sort_keys=True,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "file_path": self.file_path,
            "category": self.category,
            "node_kind": self.node_kind,
            "code": self.code,
            "start_line": self.start_line,
            "complexity": {"score": self.complexity.score, "level": self.complexity.level},
            "purpose": self.purpose,
            "business_domain": list(self.business_domain),
            "technical_patterns": list(self.technical_patterns),
            "tags": list(self.tags),
            "includes": {"imports": list(self.imports), "types": list(self.types)},
            "bundles": list(self.bundles),
            "is_exported": self.is_exported,
            "is_async": self.is_async,
        }
