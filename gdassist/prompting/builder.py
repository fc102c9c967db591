"""Builds system prompts for the ASK and COMPOSER chat modes."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from ..templating import create_environment

_MODE_TEMPLATES = {
    "ask": "prompts/ask.j2",
    "composer": "prompts/composer.j2",
}


@dataclass
class PromptContext:
    """Editor context advertised to the model."""

    active_scene: Optional[str] = None
    attached_scripts: List[str] = field(default_factory=list)
    attached_files: Optional[str] = None


class PromptBuilder:
    """Renders mode-specific system prompts from Jinja2 templates."""

    def __init__(self, templates_dir: Path | None = None) -> None:
        self.templates_dir = templates_dir
        self._env = create_environment(templates_dir)

    def system_prompt(self, mode: str, context: PromptContext | None = None) -> str:
        template_name = _MODE_TEMPLATES.get(mode.lower())
        if template_name is None:
            raise ValueError(f"Unknown chat mode '{mode}'")
        context = context or PromptContext()
        template = self._env.get_template(template_name)
        return template.render(
            active_scene=context.active_scene,
            attached_scripts=context.attached_scripts,
            attached_files=context.attached_files,
        ).strip()
