"""Shared fence partitioning and content-shape inference for block extractors."""

from __future__ import annotations

import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional, Set, Tuple

from ..logging import get_logger
from ..models import CodeBlock, EntryKind
from ..paths import (
    RESOURCE_EXTENSION,
    SCENE_EXTENSION,
    SCRIPT_EXTENSION,
    kind_for_path,
    normalize_path,
)

FENCE = "```"

_LANGUAGE_TAG = re.compile(r"^[A-Za-z0-9_+\-.#]*$")
_NODE_NAME = re.compile(r"\[node\s+name\s*=\s*\"([^\"]+)\"")
_CLASS_NAME = re.compile(r"\bclass_name\s+([A-Za-z0-9_]+)")
_SCRIPT_MARKERS = ("extends ", "func ", "class_name ")

SCENE_LANGUAGES = frozenset({"tscn", "gdscene", "godot-scene"})
SCRIPT_LANGUAGES = frozenset({"gdscript", "gd"})


@dataclass(frozen=True)
class FencedSegment:
    """A fenced block before path inference, together with its leading prose."""

    index: int
    prose_before: str
    language: str
    content: str


def split_fenced(response: str) -> List[FencedSegment]:
    """Partition *response* on the fence delimiter.

    Interior partitions without a newline are not blocks, and whitespace-only
    content is dropped. A first line that does not look like a language tag is
    treated as content.
    """
    parts = response.split(FENCE)
    segments: List[FencedSegment] = []
    for index in range(1, len(parts) - 1, 2):
        raw = parts[index]
        if "\n" not in raw:
            continue
        first_line, remainder = raw.split("\n", 1)
        tag = first_line.strip()
        if _LANGUAGE_TAG.match(tag):
            language, content = tag.lower(), remainder
        else:
            language, content = "", raw
        if not content.strip():
            continue
        segments.append(
            FencedSegment(
                index=len(segments),
                prose_before=parts[index - 1],
                language=language,
                content=content,
            )
        )
    return segments


def response_contains_code(response: str) -> bool:
    """Quick check used before running the pipeline."""
    return FENCE in response


class TextBlockExtractor(ABC):
    """Turns an assistant response into code blocks with inferred targets."""

    name: str = ""

    def __init__(self, clock: Optional[Callable[[], float]] = None) -> None:
        self.clock = clock or time.time
        self.logger = get_logger(f"extractors.{self.name or 'base'}")

    @abstractmethod
    def extract(self, response: str) -> List[CodeBlock]:
        """Return every block this variant recognises; never raises."""

    def _timestamp(self) -> int:
        return int(self.clock())

    def _infer_from_content(
        self,
        segment: FencedSegment,
        *,
        scene_prefix: str = "scene",
        script_prefix: str = "script",
        allow_resource: bool = True,
        script_markers: Tuple[str, ...] = _SCRIPT_MARKERS,
    ) -> Optional[Tuple[str, EntryKind]]:
        """Guess a path and kind from the block's language tag and shape."""
        content = segment.content
        stripped = content.lstrip()
        stamp = self._timestamp()

        if segment.language in SCENE_LANGUAGES or stripped.startswith("[gd_scene"):
            match = _NODE_NAME.search(content)
            name = match.group(1).strip().replace(" ", "_") if match else ""
            name = name or f"{scene_prefix}_{stamp}"
            return normalize_path(name + SCENE_EXTENSION), EntryKind.SCENE

        if segment.language in SCRIPT_LANGUAGES or any(marker in content for marker in script_markers):
            match = _CLASS_NAME.search(content)
            name = match.group(1) if match else f"{script_prefix}_{stamp}"
            return normalize_path(name + SCRIPT_EXTENSION), EntryKind.SCRIPT

        if not allow_resource:
            return None

        if stripped.startswith("[gd_resource"):
            suffix = RESOURCE_EXTENSION
        elif stripped.startswith(("{", "[")):
            suffix = ".json"
        elif "<" in content and ">" in content:
            suffix = ".xml"
        else:
            suffix = ".txt"
        return normalize_path(f"resource_{stamp}{suffix}"), EntryKind.RESOURCE


def unique_path(path: str, taken: Set[str]) -> str:
    """Suffix ``_2``, ``_3``... onto a generated name until it is unused."""
    if path not in taken:
        return path
    dot = path.rfind(".")
    stem, suffix = (path[:dot], path[dot:]) if dot > path.rfind("/") else (path, "")
    counter = 2
    while f"{stem}_{counter}{suffix}" in taken:
        counter += 1
    return f"{stem}_{counter}{suffix}"


def block_for_path(segment: FencedSegment, path: str, kind: Optional[EntryKind] = None) -> CodeBlock:
    return CodeBlock(
        language_hint=segment.language,
        raw_content=segment.content,
        inferred_path=path,
        inferred_type=kind or kind_for_path(path),
    )


__all__ = [
    "FENCE",
    "FencedSegment",
    "SCENE_LANGUAGES",
    "SCRIPT_LANGUAGES",
    "TextBlockExtractor",
    "block_for_path",
    "response_contains_code",
    "split_fenced",
    "unique_path",
]
