"""Chat session driving the materialisation pipeline."""

from .session import Attachment, ChatMode, ChatReply, ChatSession

__all__ = ["Attachment", "ChatMode", "ChatReply", "ChatSession"]
