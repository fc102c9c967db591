"""Reference extraction for ``.tscn`` scenes and ``.tres`` resources."""

from __future__ import annotations

import re
from typing import Dict, Set

from .base import ReferenceAnalyzer

_EXT_RESOURCE_SECTION = re.compile(r"^\[ext_resource\b([^\]\n]*)\]", re.MULTILINE)
_ATTR_PATH = re.compile(r"\bpath\s*=\s*[\"']([^\"']*)[\"']")
_ATTR_ID = re.compile(r"\bid\s*=\s*(?:[\"']([^\"']*)[\"']|(\w+))")

_SCRIPT_ASSIGNMENT = re.compile(
    r"\bscript\s*=\s*(?:ExtResource|Resource)\(\s*[\"']([^\"']+)[\"']\s*\)"
)
_RESOURCE_CALL = re.compile(r"\b(?:ExtResource|Resource)\(\s*[\"']([^\"']+)[\"']\s*\)")
_INSTANCE_ASSIGNMENT = re.compile(
    r"\b(?:instance|packed_scene)\s*=\s*(?:ExtResource|Resource)\(\s*[\"']([^\"']+)[\"']\s*\)"
)
_NODE_SECTION = re.compile(r"^\[node\b([^\]\n]*)\]", re.MULTILINE)
_NODE_LINK_ATTR = re.compile(r"\b(?:instance|parent)\s*=\s*[\"']([^\"']+)[\"']")


class SceneDependencyAnalyzer(ReferenceAnalyzer):
    """Collects scripts, resources and sub-scenes referenced by scene text.

    ``ExtResource`` arguments are resolved through the ids declared by
    ``[ext_resource]`` sections. Arguments that are neither a declared id nor
    path-like are ignored, so node paths such as ``parent="."`` and
    ``SubResource`` ids never turn into files.
    """

    name = "scene"

    def extract_references(self, content: str) -> Set[str]:
        declared = self.declared_resources(content)
        found: Set[str] = set()

        for path in declared.values():
            self._accept(path, found)

        for pattern in (_SCRIPT_ASSIGNMENT, _INSTANCE_ASSIGNMENT, _RESOURCE_CALL):
            for match in pattern.finditer(content):
                argument = match.group(1).strip()
                self._accept(declared.get(argument, argument), found)

        for section in _NODE_SECTION.finditer(content):
            for match in _NODE_LINK_ATTR.finditer(section.group(1)):
                self._accept(match.group(1), found)

        return found

    @staticmethod
    def declared_resources(content: str) -> Dict[str, str]:
        """Map ``[ext_resource]`` ids to their declared paths."""
        declared: Dict[str, str] = {}
        for section in _EXT_RESOURCE_SECTION.finditer(content):
            attrs = section.group(1)
            path_match = _ATTR_PATH.search(attrs)
            id_match = _ATTR_ID.search(attrs)
            if not path_match or not id_match:
                continue
            identifier = id_match.group(1) if id_match.group(1) is not None else id_match.group(2)
            declared[identifier] = path_match.group(1)
        return declared
