"""Structural checks applied to scene text on the fast path."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Sequence

_FORMAT_PATTERN = re.compile(r"^\[gd_scene\b[^\]]*\bformat\s*=\s*3\b", re.MULTILINE)
_NODE_PATTERN = re.compile(r"^\[node\b", re.MULTILINE)


@dataclass
class ValidationIssue:
    """Represents a single structural problem in a scene."""

    path: str
    detail: str


class ValidationError(RuntimeError):
    """Raised when a scene fails one or more checks."""

    def __init__(self, message: str, issues: Sequence[ValidationIssue]) -> None:
        super().__init__(message)
        self.issues = list(issues)


class SceneValidator:
    """Rejects scene text that Godot 4 would not load."""

    name = "scene"

    def validate(self, path: str, content: str) -> List[ValidationIssue]:
        issues: List[ValidationIssue] = []
        text = content.lstrip()
        if not text.startswith("[gd_scene"):
            issues.append(ValidationIssue(path, "scene must start with a [gd_scene] header"))
        elif not _FORMAT_PATTERN.search(text):
            issues.append(ValidationIssue(path, "scene header must declare format=3"))
        if not _NODE_PATTERN.search(text):
            issues.append(ValidationIssue(path, "scene must contain at least one [node] section"))
        return issues

    def check(self, path: str, content: str) -> None:
        """Raise :class:`ValidationError` when *content* has any issue."""
        issues = self.validate(path, content)
        if issues:
            detail = "; ".join(issue.detail for issue in issues)
            raise ValidationError(f"Invalid scene {path}: {detail}", issues)


__all__ = ["SceneValidator", "ValidationError", "ValidationIssue"]
