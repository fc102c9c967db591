"""Storage backends that map ``res://`` paths onto something writable."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Protocol, Set

from .paths import RES_PREFIX, base_dir, normalize_path, relative_part


class Storage(Protocol):
    """Minimal file API the pipeline depends on."""

    def exists(self, path: str) -> bool:
        ...

    def read(self, path: str) -> str:
        ...

    def write(self, path: str, content: str) -> None:
        ...

    def make_dirs(self, path: str) -> None:
        ...


class FileSystemStorage:
    """Maps ``res://`` onto a project directory on disk."""

    def __init__(self, project_root: Path) -> None:
        self.project_root = Path(project_root).resolve()

    def resolve(self, path: str) -> Path:
        """Translate a project path into a filesystem path under the root."""
        relative = relative_part(normalize_path(path, str(self.project_root)))
        target = (self.project_root / relative).resolve()
        if target != self.project_root and self.project_root not in target.parents:
            raise PermissionError(f"{path} resolves outside the project root")
        return target

    def exists(self, path: str) -> bool:
        return self.resolve(path).exists()

    def read(self, path: str) -> str:
        with self.resolve(path).open("r", encoding="utf-8", newline="") as handle:
            return handle.read()

    def write(self, path: str, content: str) -> None:
        with self.resolve(path).open("w", encoding="utf-8", newline="") as handle:
            handle.write(content)

    def make_dirs(self, path: str) -> None:
        self.resolve(path).mkdir(parents=True, exist_ok=True)


class MemoryStorage:
    """In-memory storage used for dry runs and tests."""

    def __init__(self, files: Dict[str, str] | None = None) -> None:
        self.files: Dict[str, str] = {}
        self.directories: Set[str] = {RES_PREFIX}
        for path, content in (files or {}).items():
            self.files[normalize_path(path)] = content

    def exists(self, path: str) -> bool:
        normalized = normalize_path(path)
        return normalized in self.files or normalized in self.directories

    def read(self, path: str) -> str:
        normalized = normalize_path(path)
        try:
            return self.files[normalized]
        except KeyError:
            raise FileNotFoundError(normalized) from None

    def write(self, path: str, content: str) -> None:
        normalized = normalize_path(path)
        if base_dir(normalized) not in self.directories:
            raise FileNotFoundError(f"Directory does not exist: {base_dir(normalized)}")
        self.files[normalized] = content

    def make_dirs(self, path: str) -> None:
        current = normalize_path(path)
        while current not in self.directories:
            self.directories.add(current)
            current = base_dir(current)


__all__ = ["FileSystemStorage", "MemoryStorage", "Storage"]
