"""Reference extraction for GDScript sources."""

from __future__ import annotations

import re
from typing import Set

from ..paths import RESOURCE_REFERENCE_EXTENSIONS
from .base import ReferenceAnalyzer

_PRELOAD_CALL = re.compile(r"\bpreload\(\s*[\"']([^\"']+)[\"']\s*\)")
_LOAD_CALL = re.compile(r"\bload\(\s*[\"']([^\"']+)[\"']\s*\)")
_BARE_LITERAL = re.compile(
    r"res://[\w.\-/]+\.(?:" + "|".join(RESOURCE_REFERENCE_EXTENSIONS) + r")(?![\w.])"
)


class ScriptDependencyAnalyzer(ReferenceAnalyzer):
    """Finds ``preload``/``load`` targets and bare ``res://`` literals."""

    name = "script"

    def extract_references(self, content: str) -> Set[str]:
        found: Set[str] = set()
        for pattern in (_PRELOAD_CALL, _LOAD_CALL):
            for match in pattern.finditer(content):
                self._accept(match.group(1), found)
        for match in _BARE_LITERAL.finditer(content):
            self._accept(match.group(0), found)
        return found
