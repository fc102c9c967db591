"""Configuration loading for gdassist (.gdassist.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

CONFIG_FILENAME = ".gdassist.yml"

STRATEGY_DEPENDENCIES = "dependencies"
STRATEGY_FAST = "fast"
_STRATEGIES = (STRATEGY_DEPENDENCIES, STRATEGY_FAST)


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class LLMConfig:
    """LLM runtime settings from .gdassist.yml."""

    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    request_timeout: Optional[float] = None


@dataclass
class ProjectConfig:
    """Where the Godot project lives and where custom templates come from."""

    root: Path
    templates_dir: Optional[Path] = None


@dataclass
class MaterializeConfig:
    """Knobs for the response-to-files pipeline."""

    strategy: str = STRATEGY_DEPENDENCIES
    extractor: str = "multiple"
    mark_failed_as_materialized: bool = False
    upgrade_legacy: bool = True


@dataclass
class ChatConfig:
    """Chat session limits."""

    history_limit: int = 10
    max_attachment_chars: int = 10000


@dataclass
class AssistConfig:
    """Represents the high-level settings defined in .gdassist.yml."""

    project: ProjectConfig
    materialize: MaterializeConfig = field(default_factory=MaterializeConfig)
    chat: ChatConfig = field(default_factory=ChatConfig)
    llm: Optional[LLMConfig] = None

    @property
    def root(self) -> Path:
        return self.project.root


def load_config(config_path: Path) -> AssistConfig:
    """Load configuration from disk."""
    config_file = _resolve_config_path(config_path)
    base = config_file.parent.resolve()

    if not config_file.exists():
        return AssistConfig(project=ProjectConfig(root=base))

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    project_data = _as_dict(data.get("project"))
    root_str = _as_str(project_data.get("root"))
    root = (base / root_str).resolve() if root_str else base
    templates_str = _as_str(project_data.get("templates_dir"))
    project = ProjectConfig(
        root=root,
        templates_dir=base / templates_str if templates_str else None,
    )

    materialize = MaterializeConfig()
    materialize_data = _as_dict(data.get("materialize"))
    if materialize_data:
        strategy = _as_str(materialize_data.get("strategy"))
        if strategy is not None:
            if strategy not in _STRATEGIES:
                raise ConfigError(
                    f"materialize.strategy must be one of {', '.join(_STRATEGIES)}; got {strategy!r}"
                )
            materialize.strategy = strategy
        extractor = _as_str(materialize_data.get("extractor"))
        if extractor:
            materialize.extractor = extractor
        mark_failed = _as_bool(materialize_data.get("mark_failed_as_materialized"))
        if mark_failed is not None:
            materialize.mark_failed_as_materialized = mark_failed
        upgrade_legacy = _as_bool(materialize_data.get("upgrade_legacy"))
        if upgrade_legacy is not None:
            materialize.upgrade_legacy = upgrade_legacy

    chat = ChatConfig()
    chat_data = _as_dict(data.get("chat"))
    if chat_data:
        history_limit = _as_int(chat_data.get("history_limit"))
        if history_limit is not None:
            if history_limit < 0:
                raise ConfigError("chat.history_limit must not be negative")
            chat.history_limit = history_limit
        max_chars = _as_int(chat_data.get("max_attachment_chars"))
        if max_chars is not None:
            chat.max_attachment_chars = max_chars

    llm_data = _as_dict(data.get("llm"))
    llm = None
    if llm_data:
        llm = LLMConfig(
            model=_as_str(llm_data.get("model")),
            temperature=_as_float(llm_data.get("temperature")),
            max_tokens=_as_int(llm_data.get("max_tokens")),
            base_url=_as_str(llm_data.get("base_url")),
            api_key=_as_str(llm_data.get("api_key")),
            request_timeout=_as_float(llm_data.get("request_timeout")),
        )
        if not any(
            (
                llm.model,
                llm.temperature,
                llm.max_tokens,
                llm.base_url,
                llm.api_key,
                llm.request_timeout,
            )
        ):
            llm = None

    return AssistConfig(project=project, materialize=materialize, chat=chat, llm=llm)


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return {} if loaded is None else loaded


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return str(value).lower()
    return str(value) if isinstance(value, (str, int, float)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None

