"""Configuration management for gpt-reply."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Callable, Union

import yaml
from pydantic import BaseModel, Field, ValidationError

from gpt_reply.errors import ConfigurationError
from gpt_reply.types import ModelFamily

_logger = logging.getLogger(__name__)

OPENAI_BASE_URL = "https://api.openai.com/v1"
DEFAULT_CHAT_MODEL = "gpt-3.5-turbo-0301"


class CompletionConfig(BaseModel):
    api_key: str = ""
    model: str = "text-davinci-003"
    max_tokens: int = Field(default=512, ge=1)
    temperature: float = 0.9
    base_url: str = OPENAI_BASE_URL
    chat_models: list[str] = Field(default_factory=lambda: [DEFAULT_CHAT_MODEL])
    timeout: float = Field(default=300, gt=0)  # seconds, per attempt
    history_limit: int = Field(default=20, ge=1)
    max_attempts: int = Field(default=3, ge=1)
    backoff_step: float = Field(default=0.1, ge=0)  # seconds, linear
    raise_on_provider_error: bool = False

    @property
    def family(self) -> ModelFamily:
        if self.model in self.chat_models:
            return ModelFamily.CHAT
        return ModelFamily.LEGACY


# Either a fixed config or a loader called fresh for every request.
ConfigSource = Union[CompletionConfig, Callable[[], CompletionConfig]]


def resolve_config(source: ConfigSource) -> CompletionConfig:
    if isinstance(source, CompletionConfig):
        return source
    return source()


CONFIG_FILENAME = "gpt_reply.yaml"

# Environment variable -> config field
_ENV_OVERRIDES = {
    "OPENAI_API_KEY": "api_key",
    "GPT_MODEL": "model",
    "GPT_MAX_TOKENS": "max_tokens",
    "GPT_TEMPERATURE": "temperature",
}


def _apply_env(raw: dict[str, Any]) -> dict[str, Any]:
    merged = dict(raw)
    for var, key in _ENV_OVERRIDES.items():
        value = os.environ.get(var)
        if value:
            merged[key] = value
    return merged


def load_config(
    config_path: str | Path | None = None,
) -> tuple[CompletionConfig, Path | None]:
    """Load configuration from a YAML file plus environment overrides.

    Returns (config, resolved_path).  *resolved_path* is ``None`` when
    no file was found and built-in defaults are used.

    Search order (first match wins):
      1. Explicit ``--config`` path
      2. Current working directory: ``./gpt_reply.yaml``
      3. User config dir: ``~/.gpt_reply/gpt_reply.yaml``

    ``OPENAI_API_KEY``, ``GPT_MODEL``, ``GPT_MAX_TOKENS`` and
    ``GPT_TEMPERATURE`` override the file when set.
    """
    if config_path is None:
        for d in (Path.cwd(), Path.home() / ".gpt_reply"):
            p = d / CONFIG_FILENAME
            if p.exists():
                config_path = p
                break

    raw: dict[str, Any] = {}
    resolved: Path | None = None
    if config_path is not None:
        resolved = Path(config_path)
        if not resolved.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        _logger.info("Loading config from %s", resolved)
        try:
            with open(resolved) as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"invalid YAML in {resolved}: {e}") from e
        if not isinstance(raw, dict):
            raise ConfigurationError(f"{resolved}: expected a mapping at top level")
        resolved = resolved.resolve()
    else:
        _logger.info("No config file found, using defaults")

    try:
        config = CompletionConfig.model_validate(_apply_env(raw))
    except ValidationError as e:
        raise ConfigurationError(f"invalid configuration: {e}") from e
    return config, resolved
