"""Shared data types for gpt-reply."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Iterator

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ---------------------------------------------------------------------------
# Conversation types
# ---------------------------------------------------------------------------

class Role(str, enum.Enum):
    """Speaker of a conversation turn."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


@dataclass(frozen=True)
class Turn:
    """A single message in a conversation."""

    role: Role
    content: str

    def to_message(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


class ModelFamily(enum.Enum):
    """Request/response shape a model speaks."""

    CHAT = "chat"  # /chat/completions, multi-turn messages
    LEGACY = "legacy"  # /completions, single prompt


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------

@dataclass
class CompletionRequest:
    """Request body for either completion endpoint.

    Exactly one of ``messages`` (chat family) or ``prompt`` (legacy family)
    is set.  ``to_payload()`` leaves the other key out of the JSON body
    altogether.
    """

    model: str
    max_tokens: int
    temperature: float
    messages: list[Turn] | None = None
    prompt: str | None = None
    top_p: int = 1
    frequency_penalty: int = 0
    presence_penalty: int = 0

    def __post_init__(self) -> None:
        if (self.messages is None) == (self.prompt is None):
            raise ValueError("exactly one of messages or prompt must be set")

    @property
    def family(self) -> ModelFamily:
        return ModelFamily.CHAT if self.messages is not None else ModelFamily.LEGACY

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"model": self.model}
        if self.messages is not None:
            payload["messages"] = [t.to_message() for t in self.messages]
        else:
            payload["prompt"] = self.prompt
        payload.update({
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "top_p": self.top_p,
            "frequency_penalty": self.frequency_penalty,
            "presence_penalty": self.presence_penalty,
        })
        return payload


# ---------------------------------------------------------------------------
# Response
# ---------------------------------------------------------------------------

class _WireModel(BaseModel):
    """Decodes like the service's own clients: unknown keys are ignored and
    a JSON ``null`` falls back to the field default."""

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class ErrorDetail(_WireModel):
    message: str | None = None
    type: str | None = None
    param: Any = None
    code: Any = None


class ChoiceMessage(_WireModel):
    role: str | None = None
    content: str | None = None


class Choice(_WireModel):
    """One generated alternative.  ``text`` for legacy, ``message`` for chat."""

    index: int = 0
    text: str | None = None
    message: ChoiceMessage | None = None
    finish_reason: str | None = None  # stop, length, content_filter, ...
    logprobs: Any = None


class ResponseEnvelope(_WireModel):
    """Decoded body of a completion response, successful or not."""

    id: str = ""
    object: str = ""
    created: int = 0
    model: str = ""
    choices: list[Choice] = Field(default_factory=list)
    usage: dict[str, Any] | None = None
    error: ErrorDetail | None = None

    @property
    def error_message(self) -> str:
        """The provider error message, or ``""`` when there is none."""
        if self.error is None:
            return ""
        return self.error.message or ""


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Completion:
    """Reply text and finish reason.  Unpacks as ``reply, reason = ...``."""

    reply: str = ""
    finish_reason: str = ""

    def __iter__(self) -> Iterator[str]:
        yield self.reply
        yield self.finish_reason
