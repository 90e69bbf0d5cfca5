"""Bundle membership by glob pattern.

Globs translate to anchored regexes: ``**`` matches any path (``**/`` also
matches zero directories), ``*`` any run of non-separator characters and
``?`` one non-separator character. The bundle named ``master`` holds every
file and is never reported as a tag.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from functools import lru_cache

MASTER_BUNDLE = "master"


@lru_cache(maxsize=512)
def glob_to_regex(pattern: str) -> re.Pattern[str]:
    out: list[str] = []
    i = 0
    while i < len(pattern):
        if pattern.startswith("**/", i):
            out.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("**", i):
            out.append(".*")
            i += 2
        elif pattern[i] == "*":
            out.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            out.append("[^/]")
            i += 1
        else:
            out.append(re.escape(pattern[i]))
            i += 1
    return re.compile("^" + "".join(out) + "$")


def matches_pattern(file_path: str, pattern: str) -> bool:
    return glob_to_regex(pattern).match(file_path.replace("\\", "/")) is not None


def bundles_for_file(file_path: str, bundles: Mapping[str, Sequence[str]] | None) -> list[str]:
    """Names of the bundles with at least one pattern matching *file_path*."""
    if not bundles:
        return []
    return [
        name
        for name, patterns in bundles.items()
        if name != MASTER_BUNDLE and any(matches_pattern(file_path, p) for p in patterns)
    ]
