"""Core data models shared across gdassist components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Set


class EntryKind(str, Enum):
    """Kind of project file an extracted block or dependency materialises as."""

    SCRIPT = "script"
    SCENE = "scene"
    RESOURCE = "resource"


class WriteOutcome(str, Enum):
    """Result of materialising a single entry."""

    CREATED = "created"
    UPDATED = "updated"
    ERROR = "error"


@dataclass(frozen=True)
class CodeBlock:
    """A fenced block extracted from an assistant response."""

    language_hint: str
    raw_content: str
    inferred_path: str
    inferred_type: EntryKind


@dataclass
class DependencyEntry:
    """Unit tracked by the dependency table."""

    path: str
    content: str = ""
    kind: EntryKind = EntryKind.RESOURCE
    materialized: bool = False
    references: Set[str] = field(default_factory=set)

    def mark_materialized(self) -> None:
        """Flip the materialised flag; it never reverts."""
        self.materialized = True


class DependencyTable:
    """Insertion-ordered mapping of project path to dependency entry.

    Built fresh for every assistant response and discarded afterwards.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, DependencyEntry] = {}

    def add(self, entry: DependencyEntry) -> None:
        """Insert or overwrite the entry keyed by its path."""
        self._entries[entry.path] = entry

    def add_if_absent(self, entry: DependencyEntry) -> bool:
        """Insert *entry* unless its path is already tracked; return True when inserted."""
        if entry.path in self._entries:
            return False
        self._entries[entry.path] = entry
        return True

    def get(self, path: str) -> Optional[DependencyEntry]:
        return self._entries.get(path)

    def paths(self) -> List[str]:
        return list(self._entries)

    def entries(self) -> List[DependencyEntry]:
        return list(self._entries.values())

    def __getitem__(self, path: str) -> DependencyEntry:
        return self._entries[path]

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)


@dataclass(frozen=True)
class MaterializationReport:
    """Outcome of writing one entry, consumed by the presentation layer."""

    path: str
    outcome: WriteOutcome
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome is not WriteOutcome.ERROR

    def describe(self) -> str:
        """Render a one-line status message."""
        if self.outcome is WriteOutcome.ERROR:
            return f"Error: {self.path}: {self.message or 'unknown error'}"
        return f"Successfully {self.outcome.value} {self.path}"


@dataclass(frozen=True)
class ConversationTurn:
    """One message of the chat history."""

    role: str
    content: str

    def __post_init__(self) -> None:
        if self.role not in {"user", "assistant"}:
            raise ValueError(f"Unsupported conversation role: {self.role!r}")

    def as_message(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


__all__ = [
    "CodeBlock",
    "ConversationTurn",
    "DependencyEntry",
    "DependencyTable",
    "EntryKind",
    "MaterializationReport",
    "WriteOutcome",
]
