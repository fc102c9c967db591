"""Synthesises stand-in content for dependencies nobody wrote."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence, Tuple

from .models import EntryKind
from .paths import base_name, extension, file_name
from .templating import create_environment
from .uid import UidGenerator

SCENE_ROOT_RULES: Sequence[Tuple[Tuple[str, ...], str]] = (
    (("control", "panel", "ui", "menu"), "Control"),
    (("sprite",), "Sprite2D"),
    (("player", "character", "enemy"), "CharacterBody2D"),
    (("3d",), "Node3D"),
    (("tile", "map"), "TileMap"),
)
DEFAULT_SCENE_ROOT = "Node2D"

SCRIPT_BASE_RULES: Sequence[Tuple[Tuple[str, ...], str]] = (
    (("player", "character", "enemy"), "CharacterBody2D"),
    (("ui", "menu", "button"), "Control"),
    (("sprite",), "Sprite2D"),
    (("3d",), "Node3D"),
    (("resource",), "Resource"),
)
DEFAULT_SCRIPT_BASE = "Node"

RESOURCE_TYPE_RULES: Sequence[Tuple[Tuple[str, ...], str]] = (
    (("tileset",), "TileSet"),
    (("theme",), "Theme"),
    (("material",), "Material"),
    (("font",), "Font"),
    (("texture", "image"), "Texture2D"),
)
DEFAULT_RESOURCE_TYPE = "Resource"

SHADER_EXTENSIONS = ("gdshader", "shader")


class PlaceholderError(RuntimeError):
    """Raised when no placeholder template exists for a path."""


def _match_rules(name: str, rules: Sequence[Tuple[Tuple[str, ...], str]], default: str) -> str:
    lowered = name.lower()
    for needles, value in rules:
        if any(needle in lowered for needle in needles):
            return value
    return default


def scene_root_type(path: str) -> str:
    return _match_rules(base_name(path), SCENE_ROOT_RULES, DEFAULT_SCENE_ROOT)


def script_base_type(path: str) -> str:
    return _match_rules(file_name(path), SCRIPT_BASE_RULES, DEFAULT_SCRIPT_BASE)


def resource_type(path: str) -> str:
    return _match_rules(file_name(path), RESOURCE_TYPE_RULES, DEFAULT_RESOURCE_TYPE)


class PlaceholderFactory:
    """Renders placeholder files from the bundled (or overridden) Jinja2 templates."""

    def __init__(
        self,
        uid_generator: Optional[UidGenerator] = None,
        templates_dir: Optional[Path] = None,
    ) -> None:
        self.uid_generator = uid_generator or UidGenerator()
        self._env = create_environment(templates_dir)

    def script(self, path: str) -> str:
        return self._render("placeholders/script.gd.j2", base_type=script_base_type(path))

    def scene(self, path: str, script_path: Optional[str] = None) -> str:
        """Render a single-root scene, linking *script_path* when given."""
        return self._render(
            "placeholders/scene.tscn.j2",
            uid=self.uid_generator.generate(),
            node_name=base_name(path),
            root_type=scene_root_type(path),
            script_path=script_path,
        )

    def resource(self, path: str) -> str:
        suffix = extension(path)
        if suffix == "tres":
            return self._render("placeholders/resource.tres.j2", resource_type=resource_type(path))
        if suffix in SHADER_EXTENSIONS:
            return self._render("placeholders/shader.gdshader.j2")
        label = f"'.{suffix}' files" if suffix else "files without an extension"
        raise PlaceholderError(f"No placeholder template for {label}")

    @staticmethod
    def supports(path: str, kind: EntryKind) -> bool:
        """Whether a placeholder can be rendered for *path*."""
        if kind is not EntryKind.RESOURCE:
            return True
        suffix = extension(path)
        return suffix == "tres" or suffix in SHADER_EXTENSIONS

    def render(self, path: str, kind: EntryKind, script_path: Optional[str] = None) -> str:
        if kind is EntryKind.SCRIPT:
            return self.script(path)
        if kind is EntryKind.SCENE:
            return self.scene(path, script_path)
        return self.resource(path)

    def _render(self, template_name: str, **context: object) -> str:
        return self._env.get_template(template_name).render(**context)


__all__ = [
    "PlaceholderError",
    "PlaceholderFactory",
    "resource_type",
    "scene_root_type",
    "script_base_type",
]
