"""Built-in rule set used when no heuristics file exists or it is invalid."""

from __future__ import annotations

import copy
from typing import Any

_FUNCTION_KINDS = [
    "function_declaration",
    "arrow_function",
    "function_expression",
    "function_item",
    "function_definition",
]

DEFAULT_HEURISTICS: dict[str, Any] = {
    "version": "1.0.0",
    "purpose": {
        "patterns": {
            "react_hook": {
                "match": "all",
                "conditions": [
                    {"name_starts_with": "use"},
                    {"node_kind_in": _FUNCTION_KINDS},
                ],
                "purpose": "React hook",
                "confidence": 0.9,
            },
            "tauri_command": {
                "match": "all",
                "conditions": [
                    {"path_segment_includes": "src-tauri"},
                    {"node_kind_equals": "function_item"},
                ],
                "purpose": "Tauri command",
                "confidence": 0.85,
            },
            "text_editing": {
                "match": "any",
                "conditions": [
                    {"name_includes": "editor"},
                    {"name_includes": "tiptap"},
                    {"path_includes": "editor"},
                ],
                "purpose": "Text editing functionality",
                "confidence": 0.8,
            },
            "file_management": {
                "match": "all",
                "conditions": [
                    {"name_matches": "file|save|load|export|import"},
                    {"path_segment_includes": "services"},
                ],
                "purpose": "File management",
                "confidence": 0.8,
            },
            "ui_component": {
                "match": "all",
                "conditions": [
                    {"path_segment_includes": "components"},
                    {"file_name_ends_with": ".tsx"},
                ],
                "purpose": "UI component",
                "confidence": 0.75,
            },
            "service_layer": {
                "match": "any",
                "conditions": [{"path_segment_includes": "services"}],
                "purpose": "Service layer",
                "confidence": 0.7,
            },
            "component_layer": {
                "match": "any",
                "conditions": [{"path_segment_includes": "components"}],
                "purpose": "Component layer",
                "confidence": 0.7,
            },
            "api_handler": {
                "match": "any",
                "conditions": [
                    {"name_includes": "handler"},
                    {"name_includes": "route"},
                    {"path_segment_includes": "api"},
                ],
                "purpose": "API handler",
                "confidence": 0.7,
            },
            "data_retrieval": {
                "match": "any",
                "conditions": [
                    {"name_starts_with": "get"},
                    {"name_starts_with": "fetch"},
                    {"name_starts_with": "load"},
                    {"name_starts_with": "find"},
                    {"name_includes": "get"},
                ],
                "purpose": "Data retrieval",
                "confidence": 0.7,
            },
            "data_creation": {
                "match": "any",
                "conditions": [
                    {"name_starts_with": "create"},
                    {"name_starts_with": "add"},
                    {"name_starts_with": "insert"},
                    {"name_starts_with": "new"},
                ],
                "purpose": "Data creation",
                "confidence": 0.7,
            },
            "data_modification": {
                "match": "any",
                "conditions": [
                    {"name_starts_with": "update"},
                    {"name_starts_with": "set"},
                    {"name_starts_with": "edit"},
                    {"name_starts_with": "modify"},
                ],
                "purpose": "Data modification",
                "confidence": 0.7,
            },
            "data_deletion": {
                "match": "any",
                "conditions": [
                    {"name_starts_with": "delete"},
                    {"name_starts_with": "remove"},
                    {"name_starts_with": "clear"},
                ],
                "purpose": "Data deletion",
                "confidence": 0.7,
            },
            "validation": {
                "match": "any",
                "conditions": [
                    {"name_starts_with": "validate"},
                    {"name_starts_with": "check"},
                    {"name_starts_with": "verify"},
                    {"name_starts_with": "is"},
                ],
                "purpose": "Validation",
                "confidence": 0.65,
            },
            "data_processing": {
                "match": "any",
                "conditions": [
                    {"name_starts_with": "parse"},
                    {"name_starts_with": "transform"},
                    {"name_starts_with": "convert"},
                    {"name_starts_with": "format"},
                    {"name_starts_with": "process"},
                ],
                "purpose": "Data processing",
                "confidence": 0.65,
            },
            "event_handling": {
                "match": "any",
                "conditions": [
                    {"name_starts_with": "handle"},
                    {"name_starts_with": "on"},
                ],
                "purpose": "Event handling",
                "confidence": 0.6,
            },
        },
        "fallback": {"purpose": "Utility function", "confidence": 0.5},
    },
    "domains": {
        "patterns": {
            "authentication": {
                "match": "any",
                "conditions": [
                    {"path_includes": "auth"},
                    {"name_matches": "login|user|session"},
                ],
                "tags": ["authentication"],
            },
            "ui_layer": {
                "match": "any",
                "conditions": [
                    {"path_includes": "component"},
                    {"path_segment_includes": "ui"},
                ],
                "tags": ["ui-layer"],
            },
            "api_integration": {
                "match": "any",
                "conditions": [
                    {"path_includes": "service"},
                    {"path_segment_includes": "api"},
                ],
                "tags": ["api-integration"],
            },
            "testing": {
                "match": "any",
                "conditions": [
                    {"path_includes": "test"},
                    {"path_includes": ".spec."},
                ],
                "tags": ["testing"],
            },
            "desktop_runtime": {
                "match": "any",
                "conditions": [
                    {"import_includes": "tauri"},
                    {"path_segment_includes": "src-tauri"},
                ],
                "tags": ["desktop-runtime"],
            },
            "text_editing": {
                "match": "any",
                "conditions": [
                    {"import_includes": "tiptap"},
                    {"import_includes": "prosemirror"},
                ],
                "tags": ["text-editing"],
            },
            "frontend_ui": {
                "match": "any",
                "conditions": [{"import_includes": "react"}],
                "tags": ["frontend-ui"],
            },
            "file_management": {
                "match": "any",
                "conditions": [{"name_matches": "file|save|export|read|write"}],
                "tags": ["file-management"],
            },
        }
    },
    "patterns": {
        "patterns": {
            "react_hooks": {
                "match": "any",
                "conditions": [{"name_starts_with": "use"}],
                "tags": ["react-hooks"],
            },
            "async_io": {
                "match": "any",
                "conditions": [{"is_async": True}, {"code_includes": "await"}],
                "tags": ["async-io"],
            },
            "event_driven": {
                "match": "any",
                "conditions": [
                    {"code_includes": "addEventListener"},
                    {"code_includes": ".on("},
                    {"name_starts_with": "handle"},
                ],
                "tags": ["event-driven"],
            },
            "object_oriented": {
                "match": "any",
                "conditions": [
                    {"code_includes": "new "},
                    {"code_includes": "class "},
                    {"code_includes": "impl "},
                ],
                "tags": ["object-oriented"],
            },
            "error_handling": {
                "match": "any",
                "conditions": [
                    {"code_includes": "catch"},
                    {"code_includes": "Result<"},
                    {"code_includes": "except "},
                ],
                "tags": ["error-handling"],
            },
            "public_api": {
                "match": "any",
                "conditions": [{"is_exported": True}],
                "tags": ["public-api"],
            },
        }
    },
    "bundles": {
        "patterns": {
            "frontend": {
                "match": "all",
                "conditions": [
                    {"path_segment_includes": "web"},
                    {"path_segment_includes": "src"},
                ],
                "bundle": "frontend",
                "confidence": 0.9,
                "sub_patterns": {
                    "ui_components": {
                        "match": "any",
                        "conditions": [{"path_segment_includes": "components"}],
                        "bundle": "ui-components",
                    }
                },
            },
            "server": {
                "match": "any",
                "conditions": [
                    {"path_includes": "server"},
                    {"path_includes": "api"},
                    {"path_segment_includes": "bin"},
                ],
                "bundle": "server",
                "confidence": 0.85,
            },
            "config": {
                "match": "any",
                "conditions": [
                    {"path_includes": "config"},
                    {"path_includes": "setup"},
                    {"file_name_ends_with": ".json"},
                    {"file_name_ends_with": ".toml"},
                    {"file_name_ends_with": ".sh"},
                    {"file_name_includes": "package"},
                ],
                "bundle": "config",
                "confidence": 0.8,
            },
            "docs": {
                "match": "any",
                "conditions": [
                    {"file_name_ends_with": ".md"},
                    {"path_includes": "doc"},
                    {"file_name_includes": "readme"},
                ],
                "bundle": "docs",
                "confidence": 0.9,
            },
        },
        "fallback": {
            "web": {
                "match": "any",
                "conditions": [{"path_segment_includes": "web"}],
                "bundle": "frontend",
            },
            "default": {"bundles": ["server", "config"]},
        },
    },
    "semantic_types": {
        "clusters": {
            "components": {
                "types": ["component", "ui-component", "react-component"],
                "cluster_id": 0,
            },
            "hooks": {"types": ["hook", "react-hook", "custom-hook"], "cluster_id": 1},
            "services": {
                "types": ["service", "api-service", "data-service"],
                "cluster_id": 2,
            },
            "utilities": {
                "types": ["utility", "helper", "function"],
                "cluster_id": 3,
            },
            "types": {"types": ["type", "interface", "enum", "struct"], "cluster_id": 4},
            "config": {"types": ["config", "settings", "constants"], "cluster_id": 5},
        }
    },
}


def default_heuristics() -> dict[str, Any]:
    """Return a fresh copy of the built-in heuristics document."""
    return copy.deepcopy(DEFAULT_HEURISTICS)
