"""Finds files a response talks about but does not include."""

from __future__ import annotations

import re
from typing import List, Optional

from .logging import get_logger
from .models import DependencyEntry, DependencyTable, EntryKind
from .paths import (
    RESOURCE_EXTENSION,
    SCENE_EXTENSION,
    SCRIPT_EXTENSION,
    extension,
    kind_for_path,
    normalize_path,
    with_extension,
)
from .storage import Storage

_NEED_VERBS = (
    r"(?:creat(?:e|es|ed|ing)|needs?|requires?|missing|using|uses|includes?|imports?"
    r"|loads?|adds?|generat(?:e|es|ing)|makes?)"
)
_ARTICLES = r"(?:(?:a|an|the|new)\s+)*"
_NAME_END = r"(?![\w\-/]|\.\w)"

_NEED_WITH_EXTENSION = re.compile(
    rf"\b{_NEED_VERBS}\s+{_ARTICLES}"
    r"(?:(?:file|script|scene|resource|subscene|tileset|asset)\s+)?(?:(?:called|named)\s+)?"
    r"[`'\"]?((?:res://)?[\w.\-/]+\.(?:tres|tscn|gd|res|import|shader|gdshader))(?!\w|\.\w)",
    re.IGNORECASE,
)
_NEED_WITH_KEYWORD = re.compile(
    rf"\b{_NEED_VERBS}\s+{_ARTICLES}(script|scene|subscene|resource|tileset)\s+(?:called|named)\s+"
    rf"[`'\"]?((?:res://)?[\w\-/]+){_NAME_END}",
    re.IGNORECASE,
)
_SUBSCENE = re.compile(
    r"\b(?:player|character|enemy|item|ui|menu|hud|level|world|button|panel|container|node)\s+"
    r"(?:scene|subscene|component)\s+"
    r"(?:(?:called|named)\s+[`'\"]?((?:res://)?[\w\-/]+)(?:\.tscn)?" + _NAME_END
    + r"|[`'\"]((?:res://)?[\w\-/]+)(?:\.tscn)?[`'\"])",
    re.IGNORECASE,
)
_FILE_LIST = re.compile(
    r"\b(?:create|make|generate|need)\s+(?:the\s+)?(?:following|these)\s+(files|scenes|scripts)\s*:"
    r"[ \t]*\n?(.+?)(?:\n[ \t]*\n|\Z)",
    re.IGNORECASE | re.DOTALL,
)
_LIST_ITEM = re.compile(
    r"^[ \t]*(?:[-*•]|\d+[.)])[ \t]+[`'\"]?((?:res://)?[\w\-/]+(?:\.\w+)?)", re.MULTILINE
)
_PROSE_REFERENCE = re.compile(
    r"\b(?:refer(?:s|red|ring)?(?:\s+to)?|depend(?:s|ing)?(?:\s+on)?|based\s+on|needs|using|uses)\s+"
    r"(?:(?:the|a|an)\s+)?(script|scene|resource|file)\s+[`'\"]((?:res://)?[\w\-/.]+)[`'\"]",
    re.IGNORECASE,
)

# Words that follow "called" in ordinary prose rather than naming a file.
_STOP_WORDS = frozenset({
    "a", "an", "and", "as", "at", "by", "for", "from", "in", "it", "of", "on", "or", "the", "this",
    "that", "to", "when", "with",
})

_KEYWORD_EXTENSIONS = {
    "script": SCRIPT_EXTENSION,
    "scene": SCENE_EXTENSION,
    "subscene": SCENE_EXTENSION,
    "resource": RESOURCE_EXTENSION,
    "tileset": RESOURCE_EXTENSION,
}


def _is_stop_word(name: str) -> bool:
    return name.rsplit("/", 1)[-1].lower() in _STOP_WORDS


class DependencyScanner:
    """Turns prose mentions of files into empty placeholder entries.

    Candidates already in the table or already on storage are skipped, so
    rescanning the same text adds nothing.
    """

    def __init__(self, storage: Storage) -> None:
        self.storage = storage
        self.logger = get_logger("scanner")

    def scan(self, response: str, table: DependencyTable) -> List[str]:
        added: List[str] = []
        self._scan_need_phrases(response, table, added)
        self._scan_subscenes(response, table, added)
        self._scan_file_lists(response, table, added)
        self._scan_prose_references(response, table, added)
        if added:
            self.logger.info("Scanner found %d implied dependencies", len(added))
        return added

    def _scan_need_phrases(self, response: str, table: DependencyTable, added: List[str]) -> None:
        for match in _NEED_WITH_EXTENSION.finditer(response):
            self._add(match.group(1), table, added)
        for match in _NEED_WITH_KEYWORD.finditer(response):
            if _is_stop_word(match.group(2)):
                continue
            suffix = _KEYWORD_EXTENSIONS[match.group(1).lower()]
            self._add(match.group(2) + suffix, table, added)

    def _scan_subscenes(self, response: str, table: DependencyTable, added: List[str]) -> None:
        for match in _SUBSCENE.finditer(response):
            name = match.group(1) or match.group(2)
            if _is_stop_word(name):
                continue
            scene = self._add(name + SCENE_EXTENSION, table, added)
            if scene:
                self._add(with_extension(scene, SCRIPT_EXTENSION), table, added)

    def _scan_file_lists(self, response: str, table: DependencyTable, added: List[str]) -> None:
        for match in _FILE_LIST.finditer(response):
            noun = match.group(1).lower()
            body = match.group(2)
            lowered = body.lower()
            wants_scripts = noun == "scripts" or "script" in lowered.replace("no script", "")
            companions = noun != "scripts" and "no script" not in lowered
            for item in _LIST_ITEM.finditer(body):
                name = item.group(1)
                if extension(name):
                    candidate = name
                elif noun == "scripts" or (
                    noun != "scenes" and (wants_scripts or "Controller" in name or "Manager" in name)
                ):
                    candidate = name + SCRIPT_EXTENSION
                else:
                    candidate = name + SCENE_EXTENSION
                path = self._add(candidate, table, added)
                if path and companions and kind_for_path(path) is EntryKind.SCENE:
                    self._add(with_extension(path, SCRIPT_EXTENSION), table, added)

    def _scan_prose_references(self, response: str, table: DependencyTable, added: List[str]) -> None:
        lowered = response.lower()
        for match in _PROSE_REFERENCE.finditer(response):
            keyword = match.group(1).lower()
            name = match.group(2).rstrip(".")
            if not name:
                continue
            if extension(name):
                candidate = name
            elif keyword in _KEYWORD_EXTENSIONS:
                candidate = name + _KEYWORD_EXTENSIONS[keyword]
            elif f"{name.lower()}{SCRIPT_EXTENSION}" in lowered or f"script {name.lower()}" in lowered:
                candidate = name + SCRIPT_EXTENSION
            else:
                candidate = name + SCENE_EXTENSION
            self._add(candidate, table, added)

    def _add(self, candidate: str, table: DependencyTable, added: List[str]) -> Optional[str]:
        """Insert an empty entry for *candidate*; return its path when it is new."""
        path = normalize_path(candidate)
        if path in table:
            return None
        try:
            if self.storage.exists(path):
                return None
        except OSError as exc:
            self.logger.warning("Ignoring reference %s: %s", path, exc)
            return None
        table.add(DependencyEntry(path=path, kind=kind_for_path(path)))
        added.append(path)
        self.logger.debug("Implied dependency %s", path)
        return path


__all__ = ["DependencyScanner"]
