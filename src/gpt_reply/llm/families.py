"""Model-family strategies: request building and reply extraction.

Chat-family models take the user's rolling history as a message array and
answer in ``choices[0].message``; legacy models take a single prompt and
answer in ``choices[0].text``.  Everything family-specific lives here so
the rest of the client never compares model names.
"""

from __future__ import annotations

import json
import logging
from typing import Protocol

from gpt_reply.config import CompletionConfig
from gpt_reply.history import HistoryStore
from gpt_reply.types import (
    Completion,
    CompletionRequest,
    ModelFamily,
    ResponseEnvelope,
    Role,
    Turn,
)

_logger = logging.getLogger(__name__)


class FamilyStrategy(Protocol):
    family: ModelFamily
    endpoint: str

    def build_request(
        self,
        user_id: str,
        message: str,
        from_assistant: bool,
        config: CompletionConfig,
        history: HistoryStore,
    ) -> CompletionRequest:
        ...

    def extract(self, envelope: ResponseEnvelope | None) -> Completion:
        ...


class ChatFamily:
    family = ModelFamily.CHAT
    endpoint = "/chat/completions"

    def build_request(
        self,
        user_id: str,
        message: str,
        from_assistant: bool,
        config: CompletionConfig,
        history: HistoryStore,
    ) -> CompletionRequest:
        """Build a messages request from the user's history.

        A user message is stored before the history is read back, so it is
        part of both the request and every later request.  An assistant
        message is only appended to this request's copy; it is not stored.
        """
        if from_assistant:
            messages = history.read(user_id)
            messages.append(Turn(Role.ASSISTANT, message))
        else:
            messages = history.append_and_read(user_id, Turn(Role.USER, message))
            if _logger.isEnabledFor(logging.DEBUG):
                _logger.debug(
                    "gpt %s request(%s)", message,
                    json.dumps([t.to_message() for t in messages], ensure_ascii=False),
                )
        return CompletionRequest(
            model=config.model,
            messages=messages,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
        )

    def extract(self, envelope: ResponseEnvelope | None) -> Completion:
        if envelope is None or not envelope.choices:
            return Completion()
        choice = envelope.choices[0]
        content = choice.message.content if choice.message else None
        return Completion(content or "", choice.finish_reason or "")


class LegacyFamily:
    family = ModelFamily.LEGACY
    endpoint = "/completions"

    def build_request(
        self,
        user_id: str,
        message: str,
        from_assistant: bool,
        config: CompletionConfig,
        history: HistoryStore,
    ) -> CompletionRequest:
        return CompletionRequest(
            model=config.model,
            prompt=message,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
        )

    def extract(self, envelope: ResponseEnvelope | None) -> Completion:
        if envelope is None or not envelope.choices:
            return Completion()
        choice = envelope.choices[0]
        return Completion(choice.text or "", choice.finish_reason or "")


_STRATEGIES: dict[ModelFamily, FamilyStrategy] = {
    ModelFamily.CHAT: ChatFamily(),
    ModelFamily.LEGACY: LegacyFamily(),
}


def for_family(family: ModelFamily) -> FamilyStrategy:
    return _STRATEGIES[family]


def family_for(config: CompletionConfig) -> FamilyStrategy:
    """Return the strategy for the configured model."""
    return for_family(config.family)


def build_request(
    user_id: str,
    message: str,
    from_assistant: bool,
    config: CompletionConfig,
    history: HistoryStore,
) -> CompletionRequest:
    return family_for(config).build_request(
        user_id, message, from_assistant, config, history,
    )


def extract(envelope: ResponseEnvelope | None, config: CompletionConfig) -> Completion:
    return family_for(config).extract(envelope)
