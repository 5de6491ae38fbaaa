"""Conversational completion client with retry."""

from __future__ import annotations

import logging
import time

from gpt_reply.config import CompletionConfig, ConfigSource, resolve_config
from gpt_reply.errors import ConfigurationError, ProviderError, TransportError
from gpt_reply.history import HistoryStore
from gpt_reply.types import Completion, ResponseEnvelope

from .families import family_for
from .transport import CompletionTransport

_logger = logging.getLogger(__name__)


class GPTClient:
    """Answer a user's message, keeping per-user chat history.

    Parameters
    ----------
    config:
        A ``CompletionConfig``, or a zero-argument callable returning one.
        A callable is invoked on every ``complete()`` call.
    history:
        Shared conversation store.  A private one sized from the config's
        ``history_limit`` is created when omitted.  The size is fixed at
        construction: a loader returning a different ``history_limit``
        later does not resize it, while every other setting is re-read on
        each ``complete()`` call.
    transport:
        The wire transport.  Defaults to a ``CompletionTransport`` with its
        own ``httpx.Client``.
    """

    def __init__(
        self,
        config: ConfigSource,
        history: HistoryStore | None = None,
        transport: CompletionTransport | None = None,
    ) -> None:
        self._config_source = config
        if history is None:
            history = HistoryStore(resolve_config(config).history_limit)
        self.history = history
        self._transport = transport or CompletionTransport()

    @property
    def config(self) -> CompletionConfig:
        return resolve_config(self._config_source)

    def complete(
        self,
        user_id: str,
        message: str,
        from_assistant: bool = False,
    ) -> Completion:
        """Send *message* for *user_id* and return the reply.

        The request is built once, so a user message enters the history
        exactly once however many attempts are made.  Attempts are spaced
        linearly: ``backoff_step`` seconds before the 2nd, twice that
        before the 3rd, and so on.

        Raises ``ConfigurationError`` without touching the history or the
        network when no API key is set, and the last ``TransportError``
        when the final attempt failed on the wire.  When every attempt
        returns a provider error the (empty) extraction of the last
        response is returned, unless ``raise_on_provider_error`` is set.
        """
        config = self.config
        if not config.api_key:
            raise ConfigurationError("api key required")

        strategy = family_for(config)
        request = strategy.build_request(
            user_id, message, from_assistant, config, self.history,
        )

        envelope: ResponseEnvelope | None = None
        last_error: TransportError | None = None
        for attempt in range(1, config.max_attempts + 1):
            if attempt > 1:
                time.sleep((attempt - 1) * config.backoff_step)
            try:
                envelope = self._transport.send(request, config, attempt)
            except TransportError as e:
                envelope, last_error = None, e
                _logger.warning(
                    "gpt request(%d/%d) error: %s",
                    attempt, config.max_attempts, e,
                )
                continue
            last_error = None
            if not envelope.error_message:
                break
            _logger.warning(
                "gpt request(%d/%d) provider error: %s",
                attempt, config.max_attempts, envelope.error_message,
            )

        if last_error is not None:
            raise last_error

        if envelope is not None and envelope.error and envelope.error_message:
            if config.raise_on_provider_error:
                raise ProviderError(envelope.error)
            _logger.warning(
                "gpt provider error persisted after %d attempts, returning empty reply",
                config.max_attempts,
            )

        return strategy.extract(envelope)

    def close(self) -> None:
        self._transport.close()

    def __enter__(self) -> GPTClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
