"""Fenced code block extractors and lookup by variant name."""

from __future__ import annotations

from typing import Callable, Dict, Optional, Type

from .base import FENCE, FencedSegment, TextBlockExtractor, response_contains_code, split_fenced
from .fenced import FastBlockExtractor, MultipleBlockExtractor, SingleBlockExtractor, find_path_hints

_BUILTIN_FACTORIES: Dict[str, Type[TextBlockExtractor]] = {
    "multiple": MultipleBlockExtractor,
    "single": SingleBlockExtractor,
    "fast": FastBlockExtractor,
}


def available_extractors() -> list[str]:
    return list(_BUILTIN_FACTORIES)


def get_extractor(name: str, clock: Optional[Callable[[], float]] = None) -> TextBlockExtractor:
    """Instantiate the extractor variant registered under *name*."""
    key = name.lower().strip()
    factory = _BUILTIN_FACTORIES.get(key)
    if factory is None:
        known = ", ".join(_BUILTIN_FACTORIES)
        raise ValueError(f"Unknown extractor '{name}'. Expected one of: {known}")
    return factory(clock=clock)


__all__ = [
    "FENCE",
    "FastBlockExtractor",
    "FencedSegment",
    "MultipleBlockExtractor",
    "SingleBlockExtractor",
    "TextBlockExtractor",
    "available_extractors",
    "find_path_hints",
    "get_extractor",
    "response_contains_code",
    "split_fenced",
]
