"""Tests for glob-based bundle membership."""

from __future__ import annotations

import pytest

from semindex.extract.bundles import bundles_for_file, glob_to_regex, matches_pattern


@pytest.mark.parametrize(
    ("path", "pattern", "expected"),
    [
        ("src/api/users.ts", "src/**/*.ts", True),
        ("src/users.ts", "src/**/*.ts", True),  # **/ also matches zero directories
        ("src/api/v1/users.ts", "src/**/*.ts", True),
        ("lib/users.ts", "src/**/*.ts", False),
        ("src/api/users.ts", "src/*.ts", False),  # * does not cross separators
        ("src/a.rs", "src/?.rs", True),
        ("src/ab.rs", "src/?.rs", False),
        ("docs/guide.md", "**", True),
        ("Cargo.toml", "Cargo.toml", True),
        ("src\\api\\users.ts", "src/**/*.ts", True),
    ],
)
def test_matches_pattern(path, pattern, expected):
    assert matches_pattern(path, pattern) is expected


def test_dot_is_literal():
    assert not matches_pattern("src/mainxts", "src/main.ts")


def test_regex_is_anchored():
    assert glob_to_regex("*.ts").pattern.startswith("^")
    assert not matches_pattern("src/a.ts.bak", "src/*.ts")


def test_bundles_for_file():
    bundles = {
        "frontend": ["web/**/*.tsx", "web/**/*.ts"],
        "server": ["src-tauri/**/*.rs"],
        "master": ["**"],
    }
    assert bundles_for_file("web/src/App.tsx", bundles) == ["frontend"]
    assert bundles_for_file("src-tauri/src/main.rs", bundles) == ["server"]
    assert bundles_for_file("README.md", bundles) == []


def test_bundles_for_file_without_config():
    assert bundles_for_file("web/src/App.tsx", None) == []
    assert bundles_for_file("web/src/App.tsx", {}) == []
