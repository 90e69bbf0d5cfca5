"""Tests for import relevance and three-level context assembly."""

from __future__ import annotations

import pytest

from semindex.extract.base import CandidateUnit
from semindex.extract.context import (
    FULL_CONTEXT,
    MINIMAL_CONTEXT,
    REDUCED_CONTEXT,
    assemble,
    import_bindings,
    is_import_relevant,
    referenced_types,
)


def _unit(code: str, name: str = "bar", line: int = 3, category: str = "function") -> CandidateUnit:
    return CandidateUnit(
        name=name,
        node_kind="function_declaration",
        category=category,
        start_line=line,
        end_line=line + code.count("\n"),
        code=code,
    )


@pytest.mark.parametrize(
    ("statement", "names"),
    [
        ("import { foo } from './a';", ["foo"]),
        ("import React, { useState as useS } from 'react';", ["useS", "React"]),
        ("import * as path from 'path';", ["path"]),
        ("import type { User } from './types';", ["User"]),
        ("use std::collections::HashMap;", ["HashMap"]),
        ("use std::collections::{HashMap, HashSet};", ["HashMap", "HashSet"]),
        ("use crate::db::{self, Pool as DbPool};", ["db", "DbPool"]),
        ("pub use crate::models::User;", ["User"]),
        ("from os import path as p", ["p"]),
        ("from typing import (Any, Optional)", ["Any", "Optional"]),
        ("import os.path, json", ["os", "json"]),
        ("use std::io::*;", []),
    ],
)
def test_import_bindings(statement, names):
    assert import_bindings(statement) == names


def test_relevance_is_textual_substring():
    assert is_import_relevant("import { foo } from './a';", "function bar(){ foo(); }")
    # substring collisions count as references
    assert is_import_relevant("import { foo } from './a';", "const food = 1;")
    assert not is_import_relevant("import { foo } from './a';", "function bar(){ baz(); }")


def test_full_context_includes_relevant_imports_and_types():
    user_type = _unit("interface User { id: string }", name="User", line=1, category="structure")
    unit = _unit("function bar(u: User) { foo(u); }")
    result = assemble(
        unit,
        ["import { foo } from './a';", "import { unused } from './b';"],
        [user_type],
    )
    assert result.level == FULL_CONTEXT
    assert result.code.startswith("import { foo } from './a';")
    assert "unused" not in result.code
    assert "interface User" in result.code
    assert result.code.endswith(unit.code)


def test_type_does_not_reference_itself():
    user_type = _unit("interface User { id: string }", name="User", line=1, category="structure")
    assert referenced_types(user_type, [user_type]) == []


def test_degrades_to_reduced_context():
    imports = [f"import {{ dep{i} }} from './dep{i}';" for i in range(5)]
    body = "function bar() { " + " ".join(f"dep{i}();" for i in range(5)) + " }"
    big_type = _unit("interface Big { " + "x: string; " * 40 + "}", name="Big", line=1)
    unit = _unit(body + " // Big")
    reduced_len = len("\n".join(imports[:3])) + 2 + len(unit.code)
    result = assemble(unit, imports, [big_type], max_size=reduced_len)
    assert result.level == REDUCED_CONTEXT
    assert result.code.count("import") == 3
    assert "interface Big" not in result.code


def test_degrades_to_minimal_and_truncates():
    unit = _unit("function bar() { " + "foo(); " * 200 + "}")
    result = assemble(unit, ["import { foo } from './a';"], [], max_size=100)
    assert result.level == MINIMAL_CONTEXT
    assert len(result.code) == 100
    assert result.code == unit.code[:100]


def test_context_disabled_uses_body_only():
    unit = _unit("function bar(){ foo(); }")
    result = assemble(unit, ["import { foo } from './a';"], [], include_context=False)
    assert result.level == MINIMAL_CONTEXT
    assert result.code == unit.code


@pytest.mark.parametrize("max_size", [1, 7, 50, 120, 500, 3000])
@pytest.mark.parametrize("body_len", [0, 10, 400, 5000])
def test_assembled_code_never_exceeds_ceiling(max_size, body_len):
    unit = _unit("f" * body_len)
    imports = ["import { f } from './f';"] * 4
    result = assemble(unit, imports, [_unit("type F = string;", name="f", line=1)], max_size=max_size)
    assert len(result.code) <= max_size
    if body_len:
        assert result.code


def test_rejects_non_positive_ceiling():
    with pytest.raises(ValueError):
        assemble(_unit("x"), [], [], max_size=0)
