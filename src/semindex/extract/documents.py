"""Structure extractors for non-code formats.

Only direct children of the document root become units (for JSON: the
entries of the root object or array). Nested structure is left inside its
parent unit.
"""

from __future__ import annotations

import re
from typing import Any

from semindex.extract.base import BaseExtractor, CandidateUnit, FileStructure

_SQL_KEYWORD_RE = re.compile(r"^\s*([A-Za-z_]+)")
_MD_HASHES_RE = re.compile(r"^#{1,6}\s*")
_MD_CLOSING_HASHES_RE = re.compile(r"\s*#+\s*$")


class JsonExtractor(BaseExtractor):
    """Root object pairs (named by key) or root array items (``item_N``)."""

    def extract(self, root: Any, source: bytes, path: str) -> FileStructure:
        structure = FileStructure()
        value = root.named_children[0] if root.named_children else None
        if value is None:
            return structure

        if value.type == "object":
            for child in value.named_children:
                if child.type != "pair":
                    continue
                key = child.child_by_field_name("key") or child.named_children[0]
                name = self._text(key, source).replace('"', "").replace("'", "") if key else "pair"
                _append(structure, self._structure(name, child, source))
        elif value.type == "array":
            items = [c for c in value.named_children if c.type != "comment"]
            for i, child in enumerate(items):
                _append(structure, self._structure(f"item_{i + 1}", child, source))
        return structure


class CssExtractor(BaseExtractor):
    """Top-level rule sets and at-rules, named by selector / prelude."""

    _KINDS = frozenset(
        {
            "rule_set",
            "at_rule",
            "media_statement",
            "keyframes_statement",
            "supports_statement",
            "import_statement",
        }
    )

    def extract(self, root: Any, source: bytes, path: str) -> FileStructure:
        structure = FileStructure()
        for node in root.named_children:
            if node.type in self._KINDS:
                _append(structure, self._structure(self._rule_name(node, source), node, source))
        return structure

    def _rule_name(self, node: Any, source: bytes) -> str:
        if node.type == "rule_set":
            selectors = node.child_by_field_name("selectors") or (
                node.named_children[0] if node.named_children else None
            )
            if selectors is not None:
                return self._text(selectors, source).strip()
        return self._text(node, source).split("{")[0].strip() or "rule"


class HtmlExtractor(BaseExtractor):
    """Top-level elements, named by tag."""

    _KINDS = frozenset({"element", "script_element", "style_element"})

    def extract(self, root: Any, source: bytes, path: str) -> FileStructure:
        structure = FileStructure()
        for node in root.named_children:
            if node.type in self._KINDS:
                _append(structure, self._structure(self._tag_name(node, source), node, source))
        return structure

    def _tag_name(self, node: Any, source: bytes) -> str:
        start_tag = node.named_children[0] if node.named_children else None
        if start_tag is not None:
            for child in start_tag.named_children:
                if child.type == "tag_name":
                    return self._text(child, source)
        return node.type


class SqlExtractor(BaseExtractor):
    """Top-level statements, named by their leading keyword (``CREATE``, ``SELECT``)."""

    def extract(self, root: Any, source: bytes, path: str) -> FileStructure:
        structure = FileStructure()
        for node in root.named_children:
            if node.type in ("comment", "marginalia"):
                continue
            _append(structure, self._structure(self._statement_name(node, source), node, source))
        return structure

    def _statement_name(self, node: Any, source: bytes) -> str:
        code = self._text(node, source).strip()
        if not code:
            return node.type
        match = _SQL_KEYWORD_RE.match(code.split("\n")[0])
        return match.group(1).upper() if match else node.type


class MarkdownExtractor(BaseExtractor):
    """Top-level sections, headings, code blocks, lists, quotes and tables."""

    _KINDS = frozenset(
        {
            "section",
            "atx_heading",
            "setext_heading",
            "fenced_code_block",
            "indented_code_block",
            "tight_list",
            "loose_list",
            "list",
            "block_quote",
            "pipe_table",
            "thematic_break",
        }
    )

    def extract(self, root: Any, source: bytes, path: str) -> FileStructure:
        structure = FileStructure()
        for node in root.named_children:
            if node.type in self._KINDS:
                _append(structure, self._structure(self._block_name(node, source), node, source))
        return structure

    def _block_name(self, node: Any, source: bytes) -> str:
        kind = node.type
        if kind == "section":
            heading = node.named_children[0] if node.named_children else None
            if heading is not None and heading.type in ("atx_heading", "setext_heading"):
                return self._block_name(heading, source)
            return "section"
        text = self._text(node, source).strip()
        if kind == "atx_heading":
            title = _MD_CLOSING_HASHES_RE.sub("", _MD_HASHES_RE.sub("", text)).strip()
            return title or "heading"
        if kind == "setext_heading":
            return text.split("\n")[0].strip() or "heading"
        if kind in ("fenced_code_block", "indented_code_block"):
            return "code_block"
        if "list" in kind:
            return "list"
        if kind == "block_quote":
            return "blockquote"
        if kind == "pipe_table":
            return "table"
        if kind == "thematic_break":
            return "break"
        return kind


class TomlExtractor(BaseExtractor):
    """Top-level tables, array-of-table entries and bare pairs, named by key."""

    _KINDS = frozenset({"table", "table_array_element", "pair"})

    def extract(self, root: Any, source: bytes, path: str) -> FileStructure:
        structure = FileStructure()
        for node in root.named_children:
            if node.type not in self._KINDS:
                continue
            key = node.named_children[0] if node.named_children else None
            name = self._text(key, source).strip() if key is not None else node.type
            _append(structure, self._structure(name, node, source))
        return structure


def _append(structure: FileStructure, unit: CandidateUnit | None) -> None:
    if unit is not None:
        structure.units.append(unit)
