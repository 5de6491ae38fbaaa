"""HTTP transport for the OpenAI completion endpoints."""

from __future__ import annotations

import json
import logging
import time

import httpx
from pydantic import ValidationError

from gpt_reply.config import CompletionConfig
from gpt_reply.errors import ConfigurationError, TransportError
from gpt_reply.types import CompletionRequest, ResponseEnvelope

from .families import for_family

_logger = logging.getLogger(__name__)


class CompletionTransport:
    """Sends one ``CompletionRequest`` and decodes the reply.

    The HTTP status is not inspected: any body that decodes becomes a
    ``ResponseEnvelope``, and service-side failures show up in its
    ``error`` field.  Everything that prevents decoding raises
    ``TransportError`` tagged with the failing stage.

    ``config.timeout`` bounds each connect/read/write wait and also the
    whole attempt: once it has passed since the request was sent, the body
    read is abandoned at the next chunk with a ``read`` stage error.
    """

    def __init__(self, client: httpx.Client | None = None) -> None:
        self._owns_client = client is None
        self._client = client or httpx.Client()

    def send(
        self,
        request: CompletionRequest,
        config: CompletionConfig,
        attempt: int = 1,
    ) -> ResponseEnvelope:
        if not config.api_key:
            raise ConfigurationError("api key required")

        try:
            body = json.dumps(request.to_payload(), ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise TransportError("marshal", e) from e

        _logger.debug("gpt request(%d) json: %s", attempt, body)

        url = config.base_url.rstrip("/") + for_family(request.family).endpoint
        try:
            http_request = self._client.build_request(
                "POST",
                url,
                content=body.encode("utf-8"),
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {config.api_key}",
                },
                timeout=httpx.Timeout(config.timeout),
            )
        except (httpx.InvalidURL, TypeError, ValueError) as e:
            raise TransportError("request", e) from e

        deadline = time.monotonic() + config.timeout
        try:
            response = self._client.send(http_request, stream=True)
        except httpx.HTTPError as e:
            raise TransportError("execute", e) from e

        try:
            chunks: list[bytes] = []
            for chunk in response.iter_bytes():
                if time.monotonic() > deadline:
                    raise httpx.ReadTimeout(
                        f"response not complete after {config.timeout:g}s",
                        request=http_request,
                    )
                chunks.append(chunk)
            raw = b"".join(chunks)
        except (httpx.HTTPError, httpx.StreamError) as e:
            raise TransportError("read", e) from e
        finally:
            response.close()

        _logger.debug(
            "gpt response(%d) status %d json: %s",
            attempt, response.status_code, raw.decode("utf-8", errors="replace"),
        )

        try:
            return ResponseEnvelope.model_validate_json(raw)
        except ValidationError as e:
            raise TransportError("unmarshal", e) from e

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> CompletionTransport:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
