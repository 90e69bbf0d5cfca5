"""Context assembly: prepend the imports and types a unit appears to use.

Relevance is textual. An import is relevant when any name it binds occurs
as a substring of the unit's code. This over-includes on substring
collisions and misses wildcard imports; no symbol resolution is attempted.

The assembled text degrades through three levels until it fits:

1. ``full-context``    relevant imports + referenced type declarations + body
2. ``reduced-context`` first three relevant imports + body
3. ``minimal-context`` body only (cut to the ceiling if still too long)

A unit is never dropped for being oversized.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from semindex.extract.base import CandidateUnit

FULL_CONTEXT = "full-context"
REDUCED_CONTEXT = "reduced-context"
MINIMAL_CONTEXT = "minimal-context"

REDUCED_IMPORT_LIMIT = 3

_RUST_USE_RE = re.compile(r"^\s*(?:pub(?:\([^)]*\))?\s+)?use\s+(.+?);?\s*$", re.DOTALL)
_PY_FROM_RE = re.compile(r"^\s*from\s+\S+\s+import\s+(.+)$", re.DOTALL)
_PY_IMPORT_RE = re.compile(r"^\s*import\s+([\w.,\s]+(?:\s+as\s+\w+)?)\s*$", re.DOTALL)
_JS_IMPORT_RE = re.compile(r"^\s*import\s+(?:type\s+)?(.+?)\s+from\s+", re.DOTALL)
_IDENT_RE = re.compile(r"^[A-Za-z_$][\w$]*$")


@dataclass
class AssembledCode:
    code: str
    level: str


def import_bindings(statement: str) -> list[str]:
    """Return the local names *statement* binds (best effort, textual).

    ``import React, { useState as useS } from 'react'`` -> ``["React", "useS"]``
    ``use std::collections::{HashMap, HashSet};``        -> ``["HashMap", "HashSet"]``
    ``from os import path as p``                         -> ``["p"]``
    """
    match = _RUST_USE_RE.match(statement)
    if match:
        return _rust_bindings(match.group(1))

    match = _JS_IMPORT_RE.match(statement)
    if match:
        return _js_bindings(match.group(1))

    match = _PY_FROM_RE.match(statement)
    if match:
        clause = match.group(1).replace("(", " ").replace(")", " ")
        return _names(clause.split(","))

    match = _PY_IMPORT_RE.match(statement)
    if match:
        names = []
        for part in match.group(1).split(","):
            part = part.strip()
            if " as " in part:
                names.append(part.split(" as ")[-1].strip())
            elif part:
                names.append(part.split(".")[0])
        return [n for n in names if _IDENT_RE.match(n)]

    return []


def is_import_relevant(statement: str, code: str) -> bool:
    """True if any name bound by *statement* appears literally in *code*."""
    return any(name in code for name in import_bindings(statement))


def relevant_imports(imports: list[str], code: str) -> list[str]:
    return [imp for imp in imports if is_import_relevant(imp, code)]


def referenced_types(unit: CandidateUnit, types: list[CandidateUnit]) -> list[CandidateUnit]:
    """Type declarations whose name appears in *unit*'s code (excluding itself)."""
    return [
        t
        for t in types
        if t.name in unit.code and (t.name, t.start_line) != (unit.name, unit.start_line)
    ]


def assemble(
    unit: CandidateUnit,
    imports: list[str],
    types: list[CandidateUnit],
    max_size: int = 3000,
    include_context: bool = True,
) -> AssembledCode:
    """Build the final chunk text for *unit* at the richest level that fits.

    Returns:
        The assembled code (``len(code) <= max_size``) and the level used.
    """
    if max_size < 1:
        raise ValueError("max_size must be >= 1")

    body = unit.code
    if include_context:
        imps = relevant_imports(imports, body)
        type_code = [t.code for t in referenced_types(unit, types)]

        full = _join(["\n".join(imps), "\n\n".join(type_code), body])
        if len(full) <= max_size:
            return AssembledCode(full, FULL_CONTEXT)

        reduced = _join(["\n".join(imps[:REDUCED_IMPORT_LIMIT]), body])
        if len(reduced) <= max_size:
            return AssembledCode(reduced, REDUCED_CONTEXT)

    return AssembledCode(body[:max_size], MINIMAL_CONTEXT)


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _join(parts: list[str]) -> str:
    return "\n\n".join(p for p in parts if p)


def _names(parts: list[str]) -> list[str]:
    names = []
    for part in parts:
        part = part.strip()
        if not part or part == "*":
            continue
        if " as " in part:
            part = part.split(" as ")[-1].strip()
        if _IDENT_RE.match(part):
            names.append(part)
    return names


def _js_bindings(clause: str) -> list[str]:
    names: list[str] = []
    braces = re.search(r"\{([^}]*)\}", clause)
    if braces:
        names.extend(_names([p.replace("type ", "", 1) for p in braces.group(1).split(",")]))
        clause = clause[: braces.start()] + clause[braces.end() :]
    for part in clause.split(","):
        part = part.strip()
        if part.startswith("* as "):
            part = part[len("* as ") :]
        if _IDENT_RE.match(part):
            names.append(part)
    return names


def _rust_bindings(path: str) -> list[str]:
    path = path.strip()
    braces = re.search(r"\{(.*)\}", path, re.DOTALL)
    items = braces.group(1).split(",") if braces else [path]
    names = []
    for item in items:
        item = item.strip()
        if not item:
            continue
        if " as " in item:
            names.append(item.split(" as ")[-1].strip())
            continue
        last = item.split("::")[-1].strip("{} ")
        if last == "self":
            segments = path[: braces.start()].rstrip(":").split("::") if braces else []
            last = segments[-1] if segments else ""
        if last and last != "*":
            names.append(last)
    return names
