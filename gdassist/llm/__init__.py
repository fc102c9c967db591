"""LLM runtime adapters."""

from .runner import ChatRequest, ChatRunner

__all__ = ["ChatRequest", "ChatRunner"]
