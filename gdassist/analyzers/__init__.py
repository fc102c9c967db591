"""Reference analyzers keyed by entry kind."""

from __future__ import annotations

from typing import Callable, Dict, Optional, Set

from ..models import EntryKind
from .base import ReferenceAnalyzer
from .scene import SceneDependencyAnalyzer
from .script import ScriptDependencyAnalyzer

# Text resources share the scene file's [ext_resource] syntax.
_BUILTIN_FACTORIES: Dict[EntryKind, Callable[[], ReferenceAnalyzer]] = {
    EntryKind.SCENE: SceneDependencyAnalyzer,
    EntryKind.SCRIPT: ScriptDependencyAnalyzer,
    EntryKind.RESOURCE: SceneDependencyAnalyzer,
}


def analyzer_for(kind: EntryKind) -> Optional[ReferenceAnalyzer]:
    factory = _BUILTIN_FACTORIES.get(kind)
    return factory() if factory is not None else None


def extract_references(kind: EntryKind, content: str) -> Set[str]:
    """Return the references of *content* using the analyzer registered for *kind*."""
    analyzer = analyzer_for(kind)
    if analyzer is None or not content:
        return set()
    return analyzer.extract_references(content)


__all__ = [
    "ReferenceAnalyzer",
    "SceneDependencyAnalyzer",
    "ScriptDependencyAnalyzer",
    "analyzer_for",
    "extract_references",
]
