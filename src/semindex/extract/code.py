"""Code extractor — function-level units from JS/TS/Rust/Python trees.

Strategy:
- Named declarations (function declarations, methods, Rust ``fn`` items,
  Python ``def``) take their name from the grammar's ``name`` field.
- Closures (arrow functions, function expressions) recover a name from one
  parent level: variable declarator, object pair key, assignment target or
  class field; otherwise ``"anonymous"``.
- Once a function is reached its subtree is not walked further, so nested
  functions never appear as separate fragments.
- Type declarations (interfaces, type aliases, enums, structs, traits) are
  emitted as structure units and kept as context for other units.
- Rust ``impl`` blocks are not units; the items in their body are walked as
  if they were top level.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from semindex.extract.base import BaseExtractor, CandidateUnit, FileStructure
from semindex.extract.languages import Language

_JS_FUNCTIONS = frozenset(
    {"function_declaration", "generator_function_declaration", "method_definition"}
)
_JS_CLOSURES = frozenset(
    {"arrow_function", "function_expression", "function", "generator_function"}
)
_TS_TYPES = frozenset(
    {"interface_declaration", "type_alias_declaration", "enum_declaration"}
)

# parent node kind -> field holding the binding name of a closure
_CLOSURE_BINDINGS: dict[str, str] = {
    "variable_declarator": "name",
    "pair": "key",
    "assignment_expression": "left",
    "public_field_definition": "name",
    "field_definition": "property",
}


@dataclass(frozen=True)
class CodeRules:
    """Targeted node kinds for one code grammar."""

    functions: frozenset[str]
    closures: frozenset[str] = frozenset()
    types: frozenset[str] = frozenset()
    flatten: frozenset[str] = frozenset()
    imports: frozenset[str] = frozenset()
    export_style: str = "wrapper"  # wrapper | modifier | convention


_JS_RULES = CodeRules(
    functions=_JS_FUNCTIONS,
    closures=_JS_CLOSURES,
    imports=frozenset({"import_statement"}),
)

_TS_RULES = CodeRules(
    functions=_JS_FUNCTIONS,
    closures=_JS_CLOSURES,
    types=_TS_TYPES,
    imports=frozenset({"import_statement"}),
)

RULES: dict[Language, CodeRules] = {
    Language.JAVASCRIPT: _JS_RULES,
    Language.TYPESCRIPT: _TS_RULES,
    Language.TSX: _TS_RULES,
    Language.RUST: CodeRules(
        functions=frozenset({"function_item"}),
        types=frozenset({"struct_item", "enum_item", "trait_item"}),
        flatten=frozenset({"impl_item"}),
        imports=frozenset({"use_declaration"}),
        export_style="modifier",
    ),
    Language.PYTHON: CodeRules(
        functions=frozenset({"function_definition"}),
        imports=frozenset({"import_statement", "import_from_statement"}),
        export_style="convention",
    ),
}

_EXPORT_WRAPPERS = frozenset({"export_statement", "export_declaration"})


class CodeExtractor(BaseExtractor):
    """Extract function and type units from a code grammar's tree."""

    def __init__(
        self,
        language: Language,
        min_function_size: int = 40,
        min_structure_size: int = 20,
    ) -> None:
        super().__init__(min_function_size, min_structure_size)
        if language not in RULES:
            raise ValueError(f"{language.value} is not a code language")
        self.language = language
        self.rules = RULES[language]

    def extract(self, root: Any, source: bytes, path: str) -> FileStructure:
        structure = FileStructure(imports=self._collect_imports(root, source))

        # Explicit stack (reversed pushes) keeps source order without recursion.
        stack = list(reversed(root.named_children))
        while stack:
            node = stack.pop()
            kind = node.type

            if kind in self.rules.functions or kind in self.rules.closures:
                unit = self._function_unit(node, source)
                if len(unit.code) > self.min_function_size:
                    structure.units.append(unit)
                continue

            if kind in self.rules.types:
                unit = self._type_unit(node, source)
                if unit is not None:
                    structure.types.append(unit)
                    if len(unit.code) >= self.min_structure_size:
                        structure.units.append(unit)

            if kind in self.rules.flatten:
                body = node.child_by_field_name("body")
                if body is not None:
                    stack.extend(reversed(body.named_children))
                continue

            stack.extend(reversed(node.named_children))

        return structure

    # ------------------------------------------------------------------
    # Unit builders
    # ------------------------------------------------------------------

    def _function_unit(self, node: Any, source: bytes) -> CandidateUnit:
        code = self._text(node, source)
        name = self._function_name(node, source)
        return CandidateUnit(
            name=name,
            node_kind=node.type,
            category="function",
            start_line=self._line(node),
            end_line=node.end_point[0] + 1,
            code=code,
            is_exported=self._is_exported(node, name),
            is_async="async" in code,
        )

    def _type_unit(self, node: Any, source: bytes) -> CandidateUnit | None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return None
        name = self._text(name_node, source)
        return CandidateUnit(
            name=name,
            node_kind=node.type,
            category="structure",
            start_line=self._line(node),
            end_line=node.end_point[0] + 1,
            code=self._text(node, source),
            is_exported=self._is_exported(node, name),
        )

    def _function_name(self, node: Any, source: bytes) -> str:
        if node.type in self.rules.functions:
            name_node = node.child_by_field_name("name")
            return self._text(name_node, source) if name_node is not None else "anonymous"

        name_node = node.child_by_field_name("name")
        if name_node is not None:
            return self._text(name_node, source)
        parent = node.parent
        if parent is not None and parent.type in _CLOSURE_BINDINGS:
            binding = parent.child_by_field_name(_CLOSURE_BINDINGS[parent.type])
            if binding is not None:
                return self._text(binding, source)
        return "anonymous"

    # ------------------------------------------------------------------
    # Imports / visibility
    # ------------------------------------------------------------------

    def _collect_imports(self, root: Any, source: bytes) -> list[str]:
        return [
            self._text(child, source)
            for child in root.named_children
            if child.type in self.rules.imports
        ]

    def _is_exported(self, node: Any, name: str) -> bool:
        style = self.rules.export_style
        if style == "modifier":
            return any(c.type == "visibility_modifier" for c in node.named_children)
        if style == "convention":
            return name != "anonymous" and not name.startswith("_")
        parent = node.parent
        while parent is not None:
            if parent.type in _EXPORT_WRAPPERS:
                return True
            parent = parent.parent
        return False
