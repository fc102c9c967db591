"""Rewrites Godot 3 scene and resource text into the Godot 4 dialect."""

from __future__ import annotations

import re
from typing import Dict, Match, Optional

from .paths import RES_PREFIX, SCRIPT_EXTENSION, SCRIPT_SOURCE_EXTENSIONS
from .uid import UidGenerator

CURRENT_FORMAT = 3

_HEADER_PATTERN = re.compile(r"^\[(gd_scene|gd_resource)\b([^\]\n]*)\]", re.MULTILINE)
_FORMAT_ATTR = re.compile(r"\bformat\s*=\s*\d+")
_LEGACY_HEADER = re.compile(
    r"^\[(?:gd_scene|gd_resource)\b[^\]\n]*\bformat\s*=\s*[12]\b", re.MULTILINE
)

_RESOURCE_SECTION = re.compile(r"^\[(?:ext_resource|sub_resource)\b[^\]\n]*\]", re.MULTILINE)
_SECTION_NUMERIC_ID = re.compile(r"\bid\s*=\s*(\d+)\b")
_NUMERIC_CALL = re.compile(r"\b(ExtResource|SubResource)\(\s*(\d+)\s*\)")
_DOUBLED_QUOTE_CALL = re.compile(r"\b(ExtResource|SubResource)\(\s*\"{2,}([^\"\)]*)\"{2,}\s*\)")

PACKED_ARRAY_RENAMES: Dict[str, str] = {
    "PoolByteArray": "PackedByteArray",
    "PoolIntArray": "PackedInt32Array",
    "PoolRealArray": "PackedFloat32Array",
    "PoolStringArray": "PackedStringArray",
    "PoolVector2Array": "PackedVector2Array",
    "PoolVector3Array": "PackedVector3Array",
    "PoolColorArray": "PackedColorArray",
}

NODE_TYPE_RENAMES: Dict[str, str] = {
    "Spatial": "Node3D",
    "KinematicBody": "CharacterBody3D",
    "KinematicBody2D": "CharacterBody2D",
    "RigidBody": "RigidBody3D",
    "StaticBody": "StaticBody3D",
    "Area": "Area3D",
    "MeshInstance": "MeshInstance3D",
    "Sprite": "Sprite2D",
    "AnimatedSprite": "AnimatedSprite2D",
    "CollisionShape": "CollisionShape3D",
    "Camera": "Camera3D",
    "Light": "Light3D",
    "DirectionalLight": "DirectionalLight3D",
    "OmniLight": "OmniLight3D",
    "SpotLight": "SpotLight3D",
    "RayCast": "RayCast3D",
    "Position2D": "Marker2D",
    "Position3D": "Marker3D",
}

PROPERTY_RENAMES: Dict[str, str] = {
    "transform/pos": "position",
    "transform/rot": "rotation",
    "transform/scale": "scale",
    "z/z": "z_index",
    "xy_scale": "scale",
    "use_in_baked_light": "bake_mode",
}


def _alternation(names) -> str:
    # Longest first so KinematicBody2D is tried before KinematicBody.
    return "|".join(re.escape(name) for name in sorted(names, key=len, reverse=True))


_PACKED_ARRAY_PATTERN = re.compile(r"\b(" + _alternation(PACKED_ARRAY_RENAMES) + r")\b")
_TYPE_ATTR_PATTERN = re.compile(r"\btype\s*=\s*\"(" + _alternation(NODE_TYPE_RENAMES) + r")\"")
# Bare tokens outside quoted strings; node paths like $Sprite keep their names.
_BARE_NODE_PATTERN = re.compile(r"(?<![\w.$%])(" + _alternation(NODE_TYPE_RENAMES) + r")(?!\w)")
_QUOTED_STRING = re.compile(r"\"(?:[^\"\\\n]|\\.)*\"")
_PROPERTY_PATTERN = re.compile(
    r"^([ \t]*)(" + _alternation(PROPERTY_RENAMES) + r")(?=[ \t]*=)", re.MULTILINE
)
_SCRIPT_REFERENCE = re.compile(r"(\bscript\s*=\s*ExtResource\(\s*\")([^\"]+)(\"\s*\))")
_SCRIPT_SECTION_PATH = re.compile(r"(\bpath\s*=\s*\")([^\"]+)(\")")


def is_legacy(content: str) -> bool:
    """Return True when *content* declares a format 1 or 2 scene/resource header."""
    return bool(_LEGACY_HEADER.search(content))


class LegacyFormatUpgrader:
    """Applies the ordered Godot 3 to 4 rewrite rules.

    Every rule is a no-op on its own output, so ``upgrade`` is idempotent.
    """

    def __init__(self, uid_generator: Optional[UidGenerator] = None) -> None:
        self.uid_generator = uid_generator or UidGenerator()

    def upgrade(self, content: str) -> str:
        content = self._upgrade_header(content)
        content = self._quote_numeric_ids(content)
        content = self._collapse_doubled_quotes(content)
        content = _PACKED_ARRAY_PATTERN.sub(lambda m: PACKED_ARRAY_RENAMES[m.group(1)], content)
        content = self._rename_node_types(content)
        content = _PROPERTY_PATTERN.sub(
            lambda m: m.group(1) + PROPERTY_RENAMES[m.group(2)], content
        )
        content = self._fix_script_extensions(content)
        return content

    def _upgrade_header(self, content: str) -> str:
        def replace(match: Match[str]) -> str:
            tag, attrs = match.group(1), match.group(2)
            if _FORMAT_ATTR.search(attrs):
                attrs = _FORMAT_ATTR.sub(f"format={CURRENT_FORMAT}", attrs, count=1)
            else:
                attrs = f"{attrs} format={CURRENT_FORMAT}"
            if "uid=" not in attrs:
                attrs = f'{attrs} uid="{self.uid_generator.generate()}"'
            return f"[{tag}{attrs}]"

        return _HEADER_PATTERN.sub(replace, content, count=1)

    @staticmethod
    def _quote_numeric_ids(content: str) -> str:
        content = _RESOURCE_SECTION.sub(
            lambda m: _SECTION_NUMERIC_ID.sub(r'id="\1"', m.group(0)), content
        )
        return _NUMERIC_CALL.sub(r'\1("\2")', content)

    @staticmethod
    def _collapse_doubled_quotes(content: str) -> str:
        return _DOUBLED_QUOTE_CALL.sub(r'\1("\2")', content)

    @staticmethod
    def _rename_node_types(content: str) -> str:
        content = _TYPE_ATTR_PATTERN.sub(
            lambda m: f'type="{NODE_TYPE_RENAMES[m.group(1)]}"', content
        )
        pieces = []
        position = 0
        for quoted in _QUOTED_STRING.finditer(content):
            pieces.append(_rename_bare(content[position:quoted.start()]))
            pieces.append(quoted.group(0))
            position = quoted.end()
        pieces.append(_rename_bare(content[position:]))
        return "".join(pieces)

    @staticmethod
    def _fix_script_extensions(content: str) -> str:
        def fix(match: Match[str]) -> str:
            return match.group(1) + _with_script_extension(match.group(2)) + match.group(3)

        content = _SCRIPT_REFERENCE.sub(fix, content)

        def fix_section(match: Match[str]) -> str:
            section = match.group(0)
            if 'type="Script"' not in section:
                return section
            return _SCRIPT_SECTION_PATH.sub(fix, section)

        return _RESOURCE_SECTION.sub(fix_section, content)


def _rename_bare(text: str) -> str:
    return _BARE_NODE_PATTERN.sub(lambda m: NODE_TYPE_RENAMES[m.group(1)], text)


def _with_script_extension(reference: str) -> str:
    # Resource ids such as "1" or "1_abcd" are not paths.
    if not (reference.startswith(RES_PREFIX) or "/" in reference):
        return reference
    if reference.lower().endswith(SCRIPT_SOURCE_EXTENSIONS):
        return reference
    return reference + SCRIPT_EXTENSION


__all__ = [
    "CURRENT_FORMAT",
    "LegacyFormatUpgrader",
    "NODE_TYPE_RENAMES",
    "PACKED_ARRAY_RENAMES",
    "PROPERTY_RENAMES",
    "is_legacy",
]
