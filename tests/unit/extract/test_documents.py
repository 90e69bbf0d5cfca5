"""Tests for the single-level structure extractors (JSON, CSS, HTML, SQL, Markdown, TOML)."""

from __future__ import annotations

from semindex.extract.documents import (
    CssExtractor,
    HtmlExtractor,
    JsonExtractor,
    MarkdownExtractor,
    SqlExtractor,
    TomlExtractor,
)
from semindex.extract.languages import Language, ParserRegistry

_registry = ParserRegistry()


def _units(extractor, language: Language, text: str):
    source = text.encode("utf-8")
    tree = _registry.parse(language, source)
    return extractor.extract(tree.root_node, source, "fixture").units


def test_json_object_entries_named_by_key():
    text = '{\n  "name": "semindex-fixture",\n  "scripts": {"build": "tsc -p .", "test": "vitest run"},\n  "x": 1\n}\n'
    units = _units(JsonExtractor(), Language.JSON, text)
    assert [u.name for u in units] == ["name", "scripts"]
    assert all(u.category == "structure" for u in units)
    assert units[1].start_line == 3


def test_json_nested_values_stay_inside_parent():
    text = '{"scripts": {"build": "tsc -p .", "test": "vitest run"}}'
    units = _units(JsonExtractor(), Language.JSON, text)
    assert [u.name for u in units] == ["scripts"]
    assert '"build"' in units[0].code


def test_json_array_items_get_positional_names():
    text = '[{"id": 1, "label": "first item"}, {"id": 2, "label": "second item"}]'
    units = _units(JsonExtractor(), Language.JSON, text)
    assert [u.name for u in units] == ["item_1", "item_2"]


def test_css_rules_named_by_selector():
    text = (
        ".button-primary { color: red; background: blue; }\n"
        "@media (max-width: 600px) { .button-primary { color: blue; } }\n"
    )
    units = _units(CssExtractor(), Language.CSS, text)
    assert [u.name for u in units] == [".button-primary", "@media (max-width: 600px)"]
    assert units[1].node_kind == "media_statement"


def test_html_elements_named_by_tag():
    text = '<div class="app"><p>Hello world</p></div>\n<script>console.log("hi there");</script>\n'
    units = _units(HtmlExtractor(), Language.HTML, text)
    assert [u.name for u in units] == ["div", "script"]


def test_sql_statements_named_by_keyword():
    text = (
        "CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT);\n"
        "SELECT id, name FROM users WHERE id = 1;\n"
    )
    units = _units(SqlExtractor(), Language.SQL, text)
    assert [u.name for u in units] == ["CREATE", "SELECT"]


def test_markdown_section_named_by_heading():
    text = "# Getting Started\n\nInstall the package and run the indexer.\n"
    units = _units(MarkdownExtractor(), Language.MARKDOWN, text)
    assert units
    assert units[0].name == "Getting Started"


def test_toml_tables_named_by_key():
    text = '[package]\nname = "semindex"\nversion = "0.1.0"\n\n[dependencies]\nrich = "13"\n'
    units = _units(TomlExtractor(), Language.TOML, text)
    assert [u.name for u in units] == ["package", "dependencies"]


def test_structure_size_floor():
    text = '{"a": 1, "description": "long enough to keep"}'
    units = _units(JsonExtractor(min_structure_size=20), Language.JSON, text)
    assert [u.name for u in units] == ["description"]
    units = _units(JsonExtractor(min_structure_size=0), Language.JSON, text)
    assert [u.name for u in units] == ["a", "description"]
