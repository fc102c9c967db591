"""Base class for reference analyzers."""

from abc import ABC, abstractmethod
from typing import Set

from ..paths import RES_PREFIX, looks_like_path, normalize_path


class ReferenceAnalyzer(ABC):
    """Contract for pure analyzers that list the project files a document depends on."""

    name: str = ""

    @abstractmethod
    def extract_references(self, content: str) -> Set[str]:
        """Return the normalised ``res://`` paths referenced by *content*."""

    @staticmethod
    def _accept(candidate: str, found: Set[str]) -> None:
        value = candidate.strip()
        # user://, uid:// and other schemes are not project files.
        if "://" in value and not value.startswith(RES_PREFIX):
            return
        if value and looks_like_path(value):
            found.add(normalize_path(value))
