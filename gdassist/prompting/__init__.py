"""System prompt rendering for chat modes."""

from .builder import PromptBuilder, PromptContext

__all__ = ["PromptBuilder", "PromptContext"]
