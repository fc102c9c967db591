"""Helpers for the ``res://`` project path convention."""

from __future__ import annotations

import re
from pathlib import PurePosixPath
from typing import Optional

from .models import EntryKind

RES_PREFIX = "res://"

SCRIPT_EXTENSION = ".gd"
SCENE_EXTENSION = ".tscn"
RESOURCE_EXTENSION = ".tres"

# Extensions accepted as attached script sources.
SCRIPT_SOURCE_EXTENSIONS = (".gd", ".cs", ".vs")

# Extensions that reference analyzers and the scanner treat as project files.
RESOURCE_REFERENCE_EXTENSIONS = ("tres", "tscn", "gd", "res", "import", "shader", "gdshader")

_DRIVE_PATTERN = re.compile(r"^[A-Za-z]:/")
_EXTENSION_PATTERN = re.compile(r"\.[A-Za-z][A-Za-z0-9]*$")


def normalize_path(path: str, project_root: Optional[str] = None) -> str:
    """Canonicalise *path* into the ``res://`` convention.

    The result always starts with ``res://`` exactly once and uses forward
    slashes. Absolute filesystem paths are rebased under ``project_root`` when
    they live inside it; otherwise their leading slash or drive is dropped.
    """
    cleaned = path.strip().strip("`'\"").strip().replace("\\", "/")

    if project_root and _is_absolute(cleaned):
        root = project_root.replace("\\", "/").rstrip("/")
        if root and (cleaned == root or cleaned.startswith(root + "/")):
            cleaned = cleaned[len(root):]

    # Peel prefixes, drives, leading slashes and "./" until nothing changes.
    while True:
        previous = cleaned
        if cleaned.startswith(RES_PREFIX):
            cleaned = cleaned[len(RES_PREFIX):]
        cleaned = _DRIVE_PATTERN.sub("", cleaned).lstrip("/")
        while cleaned.startswith("./"):
            cleaned = cleaned[2:]
        if cleaned == previous:
            break

    return RES_PREFIX + cleaned


def _is_absolute(path: str) -> bool:
    return path.startswith("/") or bool(_DRIVE_PATTERN.match(path))


def relative_part(path: str) -> str:
    """Return the portion of a normalised path after ``res://``."""
    return normalize_path(path)[len(RES_PREFIX):]


def file_name(path: str) -> str:
    return PurePosixPath(relative_part(path)).name


def base_name(path: str) -> str:
    """Return the file name without its extension (``res://a/Player.gd`` -> ``Player``)."""
    return PurePosixPath(relative_part(path)).stem


def extension(path: str) -> str:
    """Return the lower-cased extension without the dot, or an empty string."""
    return PurePosixPath(relative_part(path)).suffix.lower().lstrip(".")


def base_dir(path: str) -> str:
    parent = PurePosixPath(relative_part(path)).parent.as_posix()
    return RES_PREFIX if parent in {"", "."} else RES_PREFIX + parent


def with_extension(path: str, suffix: str) -> str:
    """Swap the extension of *path* for *suffix* (which includes the dot)."""
    relative = PurePosixPath(relative_part(path))
    return RES_PREFIX + relative.with_suffix(suffix).as_posix()


def has_extension(value: str) -> bool:
    return bool(_EXTENSION_PATTERN.search(value))


def looks_like_path(value: str) -> bool:
    """Heuristic used to tell file references apart from resource ids and node paths."""
    stripped = value.strip()
    if not stripped:
        return False
    if stripped.startswith(RES_PREFIX):
        return True
    return has_extension(stripped)


def kind_for_path(path: str) -> EntryKind:
    """Classify a path by its extension."""
    suffix = "." + extension(path)
    if suffix in SCRIPT_SOURCE_EXTENSIONS:
        return EntryKind.SCRIPT
    if suffix == SCENE_EXTENSION:
        return EntryKind.SCENE
    return EntryKind.RESOURCE


__all__ = [
    "RES_PREFIX",
    "RESOURCE_EXTENSION",
    "RESOURCE_REFERENCE_EXTENSIONS",
    "SCENE_EXTENSION",
    "SCRIPT_EXTENSION",
    "SCRIPT_SOURCE_EXTENSIONS",
    "base_dir",
    "base_name",
    "extension",
    "file_name",
    "has_extension",
    "kind_for_path",
    "looks_like_path",
    "normalize_path",
    "relative_part",
    "with_extension",
]
