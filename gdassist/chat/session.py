"""Conversation state for ASK and COMPOSER modes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from ..extractors import response_contains_code
from ..llm.runner import ChatRunner
from ..logging import get_logger
from ..models import ConversationTurn
from ..paths import extension
from ..pipeline import MaterializationPipeline, PipelineResult
from ..prompting.builder import PromptBuilder, PromptContext

DEFAULT_HISTORY_LIMIT = 10
DEFAULT_MAX_ATTACHMENT_CHARS = 10000


class ChatMode(str, Enum):
    """ASK never writes; COMPOSER materialises replies that contain code."""

    ASK = "ask"
    COMPOSER = "composer"


@dataclass(frozen=True)
class Attachment:
    path: str
    content: str


@dataclass
class ChatReply:
    """The model's reply and, in COMPOSER mode, what was written."""

    text: str
    mode: ChatMode
    result: Optional[PipelineResult] = None

    @property
    def applied(self) -> bool:
        return self.result is not None and bool(self.result.reports)


class ChatSession:
    """Keeps the history and context for one editor conversation."""

    def __init__(
        self,
        runner: ChatRunner,
        *,
        pipeline: Optional[MaterializationPipeline] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        mode: ChatMode = ChatMode.ASK,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        max_attachment_chars: int = DEFAULT_MAX_ATTACHMENT_CHARS,
    ) -> None:
        self.runner = runner
        self.pipeline = pipeline
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.history_limit = history_limit
        self.max_attachment_chars = max_attachment_chars
        self.history: List[ConversationTurn] = []
        self.context = PromptContext()
        self.attachment: Optional[Attachment] = None
        self._mode = mode
        self.logger = get_logger("chat")

    @property
    def mode(self) -> ChatMode:
        return self._mode

    def set_mode(self, mode: ChatMode | str) -> None:
        """Switch modes; the history is cleared so the two modes never share context."""
        self._mode = ChatMode(mode)
        self.history.clear()
        self.logger.info("Switched to %s mode", self._mode.value.upper())

    def attach(self, path: str, content: str) -> None:
        self.attachment = Attachment(path=path, content=content)
        self.context.attached_files = path
        if extension(path) == "tscn":
            self.context.active_scene = path

    def detach(self) -> None:
        self.attachment = None
        self.context = PromptContext()

    def compose_message(self, text: str) -> str:
        """Append the attachment inline, or only a size note when it is too large."""
        if self.attachment is None or not self.attachment.content:
            return text
        path, content = self.attachment.path, self.attachment.content
        message = f"{text}\n\nAttached file: {path}"
        if len(content) > self.max_attachment_chars:
            return f"{message} (large file - {len(content)} characters)"
        return f"{message}\n\n```{extension(path)}\n{content}\n```"

    def context_messages(self) -> List[Dict[str, str]]:
        if self.history_limit <= 0:
            return []
        return [turn.as_message() for turn in self.history[-self.history_limit:]]

    def send(self, text: str) -> ChatReply:
        """Run one round trip; failures propagate and leave the history untouched."""
        message = self.compose_message(text)
        messages = self.context_messages() + [{"role": "user", "content": message}]
        system = self.prompt_builder.system_prompt(self._mode.value, self.context)
        reply = self.runner.complete(messages, system=system)

        self.history.append(ConversationTurn(role="user", content=message))
        self.history.append(ConversationTurn(role="assistant", content=reply))

        result = None
        if self._mode is ChatMode.COMPOSER and self.pipeline is not None and response_contains_code(reply):
            result = self.pipeline.run(reply)
            self.logger.info("%s", result.summary())
        return ChatReply(text=reply, mode=self._mode, result=result)
