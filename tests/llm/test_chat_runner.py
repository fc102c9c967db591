"""Tests for the chat completion runner."""

from __future__ import annotations

import json

import pytest

from gdassist.config import LLMConfig
from gdassist.llm.runner import ChatRunner


def test_chat_runner_constructs_request() -> None:
    captured = {}

    def fake_runner(request):
        captured["messages"] = request.messages
        captured["system"] = request.system
        captured["model"] = request.model
        captured["temperature"] = request.temperature
        captured["max_tokens"] = request.max_tokens
        captured["base_url"] = request.base_url
        captured["api_key"] = request.api_key
        captured["request_timeout"] = request.request_timeout
        return "response"

    runner = ChatRunner(
        model="custom-model",
        base_url="http://localhost:8080/v1/",
        temperature=0.15,
        max_tokens=256,
        api_key=None,
        request_timeout=42.0,
        runner=fake_runner,
    )
    result = runner.complete([{"role": "user", "content": "Hello"}], system="system message")

    assert result == "response"
    assert captured == {
        "messages": [{"role": "user", "content": "Hello"}],
        "system": "system message",
        "model": "custom-model",
        "temperature": 0.15,
        "max_tokens": 256,
        "base_url": "http://localhost:8080/v1",
        "api_key": None,
        "request_timeout": 42.0,
    }


def test_chat_runner_http_posts_payload(monkeypatch) -> None:
    captured = {}

    class FakeResponse:
        def __init__(self, payload):
            self._payload = payload

        def read(self):
            return json.dumps(self._payload).encode("utf-8")

        def __enter__(self):
            return self

        def __exit__(self, exc_type, exc, tb):
            return False

    def fake_urlopen(request, timeout=None):
        captured["url"] = request.full_url
        captured["headers"] = {k.lower(): v for k, v in request.header_items()}
        captured["payload"] = json.loads(request.data.decode("utf-8"))
        captured["timeout"] = timeout
        return FakeResponse({"choices": [{"message": {"content": "  Use a Timer node.  "}}]})

    monkeypatch.setattr("gdassist.llm.runner.urlopen", fake_urlopen)

    runner = ChatRunner(
        model="ai/qwen2.5-coder",
        base_url="http://localhost:12434/engines/v1/",
        api_key="local-key",
        temperature=0.05,
        max_tokens=128,
        request_timeout=25.0,
    )
    result = runner.complete(
        [{"role": "user", "content": "How do I delay a call?"}],
        system="You are gdassist.",
    )

    assert result == "Use a Timer node."
    assert captured["url"] == "http://localhost:12434/engines/v1/chat/completions"
    assert captured["headers"]["content-type"] == "application/json"
    assert captured["headers"]["authorization"] == "Bearer local-key"
    assert captured["timeout"] == 25.0
    assert captured["payload"] == {
        "model": "ai/qwen2.5-coder",
        "messages": [
            {"role": "system", "content": "You are gdassist."},
            {"role": "user", "content": "How do I delay a call?"},
        ],
        "temperature": 0.05,
        "max_tokens": 128,
    }


def test_chat_runner_rejects_empty_replies(monkeypatch) -> None:
    class FakeResponse:
        def read(self):
            return b'{"choices": []}'

        def __enter__(self):
            return self

        def __exit__(self, exc_type, exc, tb):
            return False

    monkeypatch.setattr("gdassist.llm.runner.urlopen", lambda request, timeout=None: FakeResponse())

    with pytest.raises(RuntimeError, match="empty response"):
        ChatRunner("m", base_url="http://localhost:1", api_key=None).complete([])


def test_chat_runner_reads_environment(monkeypatch) -> None:
    monkeypatch.delenv("GDASSIST_LLM_BASE_URL", raising=False)
    monkeypatch.setenv("GDASSIST_LLM_MODEL", "env-model")
    monkeypatch.setenv("OPENAI_BASE_URL", "https://api.example.test/v1/")
    monkeypatch.setenv("GDASSIST_LLM_API_KEY", "env-key")

    runner = ChatRunner()

    assert runner.model == "env-model"
    assert runner.base_url == "https://api.example.test/v1"
    assert runner.api_key == "env-key"


def test_chat_runner_defaults_without_environment(monkeypatch) -> None:
    for key in ChatRunner.ENV_MODEL_KEYS + ChatRunner.ENV_BASE_URL_KEYS + ChatRunner.ENV_API_KEY_KEYS:
        monkeypatch.delenv(key, raising=False)

    runner = ChatRunner()

    assert runner.model == ChatRunner.DEFAULT_MODEL
    assert runner.base_url == ChatRunner.DEFAULT_BASE_URL
    assert runner.api_key is None


def test_from_config_prefers_configured_values() -> None:
    config = LLMConfig(model="cfg-model", base_url="http://cfg:1/v1", temperature=0.3, request_timeout=5.0)

    runner = ChatRunner.from_config(config, runner=lambda request: "ok")

    assert runner.model == "cfg-model"
    assert runner.base_url == "http://cfg:1/v1"
    assert runner.temperature == 0.3
    assert runner.request_timeout == 5.0
    assert runner.complete([]) == "ok"
