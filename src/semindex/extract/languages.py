"""Closed registry of supported languages and their tree-sitter grammars.

Dispatch is by file extension only. Adding a language means adding an enum
member and a ``_GRAMMARS`` entry; file content is never sniffed.
"""

from __future__ import annotations

import importlib
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath
from typing import Any

import tree_sitter

from semindex.log import get_logger

log = get_logger(__name__)


class ParseError(RuntimeError):
    """Raised when a file cannot be parsed by its declared grammar."""


class Language(str, Enum):
    JAVASCRIPT = "javascript"
    TYPESCRIPT = "typescript"
    TSX = "tsx"
    RUST = "rust"
    PYTHON = "python"
    JSON = "json"
    CSS = "css"
    HTML = "html"
    SQL = "sql"
    MARKDOWN = "markdown"
    TOML = "toml"

    @property
    def is_code(self) -> bool:
        return self in _CODE_LANGUAGES


@dataclass(frozen=True)
class Grammar:
    """Where to find a tree-sitter language function.

    Attributes:
        module: Import name of the grammar package (e.g. ``tree_sitter_rust``).
        language_func: Attribute returning the language pointer.
    """

    module: str
    language_func: str = "language"


_GRAMMARS: dict[Language, Grammar] = {
    Language.JAVASCRIPT: Grammar("tree_sitter_javascript"),
    Language.TYPESCRIPT: Grammar("tree_sitter_typescript", "language_typescript"),
    Language.TSX: Grammar("tree_sitter_typescript", "language_tsx"),
    Language.RUST: Grammar("tree_sitter_rust"),
    Language.PYTHON: Grammar("tree_sitter_python"),
    Language.JSON: Grammar("tree_sitter_json"),
    Language.CSS: Grammar("tree_sitter_css"),
    Language.HTML: Grammar("tree_sitter_html"),
    Language.SQL: Grammar("tree_sitter_sql"),
    Language.MARKDOWN: Grammar("tree_sitter_markdown"),
    Language.TOML: Grammar("tree_sitter_toml"),
}

_EXTENSIONS: dict[str, Language] = {
    ".js": Language.JAVASCRIPT,
    ".jsx": Language.JAVASCRIPT,
    ".mjs": Language.JAVASCRIPT,
    ".cjs": Language.JAVASCRIPT,
    ".ts": Language.TYPESCRIPT,
    ".tsx": Language.TSX,
    ".rs": Language.RUST,
    ".py": Language.PYTHON,
    ".json": Language.JSON,
    ".css": Language.CSS,
    ".html": Language.HTML,
    ".htm": Language.HTML,
    ".sql": Language.SQL,
    ".md": Language.MARKDOWN,
    ".markdown": Language.MARKDOWN,
    ".toml": Language.TOML,
}

_CODE_LANGUAGES = frozenset(
    {
        Language.JAVASCRIPT,
        Language.TYPESCRIPT,
        Language.TSX,
        Language.RUST,
        Language.PYTHON,
    }
)


def language_for_path(path: str) -> Language | None:
    """Return the language for *path* by extension, or None if unsupported."""
    return _EXTENSIONS.get(PurePosixPath(path).suffix.lower())


def supported_extensions() -> list[str]:
    return sorted(_EXTENSIONS)


class ParserRegistry:
    """Lazily builds one ``tree_sitter.Parser`` per language.

    A grammar package that is not installed makes its language unavailable
    for the lifetime of the registry; it is not an error.
    """

    def __init__(self) -> None:
        self._parsers: dict[Language, tree_sitter.Parser | None] = {}

    def get(self, language: Language) -> tree_sitter.Parser | None:
        if language not in self._parsers:
            self._parsers[language] = self._build(language)
        return self._parsers[language]

    def available(self, language: Language) -> bool:
        return self.get(language) is not None

    def parse(self, language: Language, source: bytes) -> Any:
        """Parse *source* and return the syntax tree.

        Raises:
            ParseError: If no grammar is available or the tree contains
                syntax errors.
        """
        parser = self.get(language)
        if parser is None:
            raise ParseError(f"No grammar available for {language.value}")
        tree = parser.parse(source)
        if tree.root_node.has_error:
            raise ParseError(f"Syntax errors in {language.value} source")
        return tree

    @staticmethod
    def _build(language: Language) -> tree_sitter.Parser | None:
        grammar = _GRAMMARS[language]
        try:
            module = importlib.import_module(grammar.module)
            lang = tree_sitter.Language(getattr(module, grammar.language_func)())
        except (ImportError, AttributeError, ValueError) as exc:
            log.debug("grammar_unavailable", language=language.value, error=str(exc))
            return None
        return tree_sitter.Parser(lang)
