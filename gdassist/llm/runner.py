"""Adapter around OpenAI-compatible chat completion endpoints."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from ..config import LLMConfig

_AUTO_BASE_URL = object()
_AUTO_API_KEY = object()


@dataclass
class ChatRequest:
    """Represents one chat completion request."""

    messages: List[Dict[str, str]]
    model: str
    temperature: Optional[float]
    max_tokens: Optional[int]
    base_url: Optional[str]
    api_key: Optional[str]
    request_timeout: Optional[float]
    system: Optional[str] = None


class ChatRunner:
    """Sends a conversation to the configured model and returns the reply text."""

    DEFAULT_MODEL = "ai/qwen2.5-coder"
    DEFAULT_BASE_URL = "http://localhost:12434/engines/v1"
    ENV_MODEL_KEYS = ("GDASSIST_LLM_MODEL", "OPENAI_MODEL")
    ENV_BASE_URL_KEYS = ("GDASSIST_LLM_BASE_URL", "OPENAI_BASE_URL")
    ENV_API_KEY_KEYS = ("GDASSIST_LLM_API_KEY", "OPENAI_API_KEY")

    def __init__(
        self,
        model: str | None = None,
        *,
        base_url: str | None | object = _AUTO_BASE_URL,
        temperature: Optional[float] = 0.2,
        max_tokens: Optional[int] = None,
        api_key: str | None | object = _AUTO_API_KEY,
        request_timeout: Optional[float] = 60.0,
        runner: Callable[[ChatRequest], str] | None = None,
    ) -> None:
        self.model = self._resolve_model(model)
        self.base_url = self._resolve_base_url(base_url)
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.api_key = self._resolve_api_key(api_key)
        self.request_timeout = request_timeout
        self._runner = runner or self._http_runner

    @classmethod
    def from_config(
        cls, config: LLMConfig | None, runner: Callable[[ChatRequest], str] | None = None
    ) -> "ChatRunner":
        """Build a runner from the ``llm`` section; environment variables fill the gaps."""
        config = config or LLMConfig()
        kwargs: Dict[str, object] = {}
        if config.base_url:
            kwargs["base_url"] = config.base_url
        if config.api_key:
            kwargs["api_key"] = config.api_key
        if config.temperature is not None:
            kwargs["temperature"] = config.temperature
        if config.request_timeout is not None:
            kwargs["request_timeout"] = config.request_timeout
        return cls(config.model, max_tokens=config.max_tokens, runner=runner, **kwargs)  # type: ignore[arg-type]

    def complete(self, messages: Sequence[Dict[str, str]], *, system: str | None = None) -> str:
        """Send *messages* (oldest first) and return the assistant reply."""
        request = ChatRequest(
            messages=[dict(message) for message in messages],
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            base_url=self.base_url,
            api_key=self.api_key,
            request_timeout=self.request_timeout,
            system=system,
        )
        return self._runner(request)

    @staticmethod
    def _normalize_base_url(url: str) -> str:
        return url.rstrip("/")

    @staticmethod
    def _http_runner(request: ChatRequest) -> str:
        if not request.base_url:
            raise RuntimeError("HTTP runner requires a base_url to be configured.")
        endpoint = f"{request.base_url}/chat/completions"
        payload: dict[str, object] = {
            "model": request.model,
            "messages": ChatRunner._build_messages(request.system, request.messages),
        }
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        if request.max_tokens is not None:
            payload["max_tokens"] = request.max_tokens

        data = json.dumps(payload).encode("utf-8")
        headers = {"Content-Type": "application/json"}
        if request.api_key:
            headers["Authorization"] = f"Bearer {request.api_key}"

        http_request = Request(endpoint, data=data, headers=headers, method="POST")
        timeout = request.request_timeout or 60.0

        try:
            with urlopen(http_request, timeout=timeout) as response:  # type: ignore[arg-type]
                raw = response.read()
        except HTTPError as exc:  # pragma: no cover - depends on runtime
            detail = exc.read().decode("utf-8", errors="ignore") if hasattr(exc, "read") else ""
            message = detail.strip() or exc.reason
            raise RuntimeError(f"Chat request failed with status {exc.code}: {message}") from exc
        except URLError as exc:  # pragma: no cover - depends on runtime
            raise RuntimeError(f"Chat request failed: {exc.reason}") from exc

        try:
            response_payload = json.loads(raw.decode("utf-8"))
        except json.JSONDecodeError as exc:
            raise RuntimeError("Chat endpoint returned invalid JSON") from exc

        content = ChatRunner._extract_content(response_payload)
        if not content:
            raise RuntimeError("Chat endpoint returned an empty response")
        return content.strip()

    @staticmethod
    def _build_messages(system: str | None, messages: Sequence[Dict[str, str]]) -> list[dict[str, str]]:
        built: list[dict[str, str]] = []
        if system:
            built.append({"role": "system", "content": system})
        built.extend(messages)
        return built

    @staticmethod
    def _extract_content(payload: object) -> str:
        if not isinstance(payload, dict):
            return ""
        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices:
            return ""
        first = choices[0]
        if not isinstance(first, dict):
            return ""
        message = first.get("message")
        if isinstance(message, dict):
            content = message.get("content")
            if isinstance(content, str):
                return content
        text = first.get("text")
        if isinstance(text, str):
            return text
        return ""

    def _resolve_model(self, model: str | None) -> str:
        if model:
            return model
        return self._first_env_value(self.ENV_MODEL_KEYS) or self.DEFAULT_MODEL

    def _resolve_base_url(self, base_url: str | None | object) -> str | None:
        if base_url is None:
            return None
        if base_url is not _AUTO_BASE_URL:
            return self._normalize_base_url(str(base_url))
        env_value = self._first_env_value(self.ENV_BASE_URL_KEYS)
        return self._normalize_base_url(env_value or self.DEFAULT_BASE_URL)

    def _resolve_api_key(self, api_key: str | None | object) -> str | None:
        if api_key is _AUTO_API_KEY:
            return self._first_env_value(self.ENV_API_KEY_KEYS)
        return api_key  # type: ignore[return-value]

    @staticmethod
    def _first_env_value(keys: Sequence[str]) -> str | None:
        for key in keys:
            value = os.getenv(key)
            if value:
                return value
        return None
