"""Tests for HeuristicsManager — loading, fallback, reload and classification."""

from __future__ import annotations

import json
import os

import pytest
import yaml
from structlog.testing import capture_logs

from semindex.heuristics.conditions import RuleContext
from semindex.heuristics.defaults import default_heuristics
from semindex.heuristics.manager import HeuristicsManager
from semindex.heuristics.rules import HeuristicsConfigError


def _write(path, doc):
    path.write_text(yaml.safe_dump(doc, sort_keys=False), encoding="utf-8")


def _custom_doc(label="Custom purpose"):
    doc = default_heuristics()
    doc["version"] = "9.9.9"
    doc["purpose"]["patterns"] = {
        "custom": {"conditions": [{"name_includes": "user"}], "purpose": label}
    }
    return doc


# ------------------------------------------------------------------
# Loading
# ------------------------------------------------------------------


def test_no_path_uses_builtin_rules():
    manager = HeuristicsManager()
    assert manager.config.version == "1.0.0"
    assert manager.using_fallback is True


def test_missing_file_falls_back(tmp_path):
    with capture_logs() as logs:
        manager = HeuristicsManager(tmp_path / "heuristics.yaml")
        config = manager.load()
    assert config.purpose_rules[0].name == "react_hook"
    assert manager.using_fallback is True
    assert logs[-1]["event"] == "heuristics_fallback"
    assert logs[-1]["reason"] == "missing"


@pytest.mark.parametrize(
    "content",
    [
        "purpose: [unclosed",
        "- just\n- a list\n",
        "version: 1.0.0\npurpose: {}\n",
    ],
)
def test_invalid_file_falls_back_with_warning(tmp_path, content):
    path = tmp_path / "heuristics.yaml"
    path.write_text(content, encoding="utf-8")
    with capture_logs() as logs:
        manager = HeuristicsManager(path)
        manager.load()
    assert manager.using_fallback is True
    assert manager.config.version == "1.0.0"
    fallback = [e for e in logs if e["event"] == "heuristics_fallback"]
    assert fallback[0]["log_level"] == "warning"


def test_malformed_bundle_fallback_falls_back_to_builtin_rules(tmp_path):
    doc = default_heuristics()
    doc["bundles"]["fallback"]["default"] = ["shared"]
    path = tmp_path / "heuristics.yaml"
    _write(path, doc)
    with capture_logs() as logs:
        manager = HeuristicsManager(path)
        manager.load()
    assert manager.using_fallback is True
    assert manager.config.default_bundles == ("server", "config")
    assert [e["event"] for e in logs if e["log_level"] == "warning"] == ["heuristics_fallback"]


def test_valid_file_is_loaded(tmp_path):
    path = tmp_path / "heuristics.yaml"
    _write(path, _custom_doc())
    manager = HeuristicsManager(path)
    assert manager.config.version == "9.9.9"
    assert manager.using_fallback is False
    assert manager.determine_purpose(RuleContext(name="getUser")) == ("Custom purpose", 1.0)


def test_json_file_is_accepted(tmp_path):
    path = tmp_path / "heuristics.json"
    path.write_text(json.dumps(_custom_doc()), encoding="utf-8")
    assert HeuristicsManager(path).config.version == "9.9.9"


def test_invalid_conditions_are_logged_on_load(tmp_path):
    doc = _custom_doc()
    doc["purpose"]["patterns"]["custom"]["conditions"].append({"bogus": 1})
    path = tmp_path / "heuristics.yaml"
    _write(path, doc)
    with capture_logs() as logs:
        HeuristicsManager(path).load()
    assert "condition_invalid" in [e["event"] for e in logs]


def test_reload_picks_up_edits(tmp_path):
    path = tmp_path / "heuristics.yaml"
    _write(path, _custom_doc("Before"))
    manager = HeuristicsManager(path)
    assert manager.determine_purpose(RuleContext(name="user"))[0] == "Before"

    _write(path, _custom_doc("After"))
    manager.reload()
    assert manager.determine_purpose(RuleContext(name="user"))[0] == "After"


def test_reload_if_changed(tmp_path):
    path = tmp_path / "heuristics.yaml"
    _write(path, _custom_doc("Before"))
    manager = HeuristicsManager(path)
    manager.load()
    assert manager.reload_if_changed() is False

    _write(path, _custom_doc("After"))
    stat = path.stat()
    os.utime(path, ns=(stat.st_atime_ns, stat.st_mtime_ns + 1_000_000_000))
    assert manager.reload_if_changed() is True
    assert manager.determine_purpose(RuleContext(name="user"))[0] == "After"


def test_reload_if_changed_without_path():
    assert HeuristicsManager().reload_if_changed() is False


def test_save_writes_and_activates(tmp_path):
    path = tmp_path / "nested" / "heuristics.yaml"
    manager = HeuristicsManager(path)
    manager.save(_custom_doc("Saved"))
    assert path.exists()
    assert manager.using_fallback is False
    assert manager.determine_purpose(RuleContext(name="user"))[0] == "Saved"
    assert yaml.safe_load(path.read_text(encoding="utf-8"))["version"] == "9.9.9"


def test_save_rejects_invalid_document(tmp_path):
    path = tmp_path / "heuristics.yaml"
    manager = HeuristicsManager(path)
    with pytest.raises(HeuristicsConfigError):
        manager.save({"version": "1"})
    assert not path.exists()


def test_save_requires_path():
    with pytest.raises(ValueError):
        HeuristicsManager().save(default_heuristics())


# ------------------------------------------------------------------
# Classification with the built-in rules
# ------------------------------------------------------------------


@pytest.fixture
def manager():
    return HeuristicsManager()


@pytest.mark.parametrize(
    ("name", "path", "kind", "purpose"),
    [
        ("getUser", "src/users.ts", "function_declaration", "Data retrieval"),
        ("useAuth", "web/src/hooks/useAuth.ts", "arrow_function", "React hook"),
        ("open_file", "src-tauri/src/commands.rs", "function_item", "Tauri command"),
        ("saveFile", "src/services/files.ts", "function_declaration", "File management"),
        ("Button", "web/src/components/Button.tsx", "arrow_function", "UI component"),
        ("createPost", "src/posts.ts", "function_declaration", "Data creation"),
        ("removeItem", "src/cart.ts", "function_declaration", "Data deletion"),
        ("validateEmail", "src/forms.ts", "function_declaration", "Validation"),
        ("handleClick", "src/view.ts", "function_declaration", "Event handling"),
        ("compute", "src/math.ts", "function_declaration", "Utility function"),
    ],
)
def test_determine_purpose(manager, name, path, kind, purpose):
    ctx = RuleContext(name=name, file_path=path, node_kind=kind)
    assert manager.determine_purpose(ctx)[0] == purpose


def test_fallback_purpose_confidence(manager):
    assert manager.determine_purpose(RuleContext(name="compute")) == ("Utility function", 0.5)


def test_classify(manager):
    ctx = RuleContext(
        name="getUser",
        file_path="src/api/users.ts",
        node_kind="function_declaration",
        code="async function getUser(id) { try { return await db.get(id) } catch (e) {} }",
        imports=("import { db } from './db';",),
        is_exported=True,
        is_async=True,
    )
    result = manager.classify(ctx)
    assert result.purpose == "API handler"
    assert result.business_domain == ["authentication", "api-integration"]
    assert result.technical_patterns == ["async-io", "error-handling", "public-api"]


def test_suggest_bundles(manager):
    assert manager.suggest_bundles_for_file("web/src/components/Button.tsx") == [
        "frontend",
        "ui-components",
    ]
    assert manager.suggest_bundles_for_file("src/server/main.rs") == ["server"]
    assert manager.suggest_bundles_for_file("docs/guide.md") == ["docs"]
    assert manager.suggest_bundles_for_file("package.json") == ["config"]


def test_suggest_bundles_fallbacks(manager):
    assert manager.suggest_bundles_for_file("web/index.html") == ["frontend"]
    assert manager.suggest_bundles_for_file("lib/util.ts") == ["server", "config"]


def test_suggest_bundles_returns_copies(manager):
    first = manager.suggest_bundles_for_file("lib/util.ts")
    first.append("mutated")
    assert manager.suggest_bundles_for_file("lib/util.ts") == ["server", "config"]


def test_semantic_type_mapping(manager):
    mapping = manager.semantic_type_mapping()
    assert mapping["react-hook"] == 1
    assert mapping["struct"] == 4
    assert mapping["settings"] == 5
