"""Exception hierarchy for gpt-reply."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gpt_reply.types import ErrorDetail


class GPTError(Exception):
    """Base class for every error raised by the completion client."""


class ConfigurationError(GPTError):
    """Configuration is missing or invalid.  Never retried."""


class TransportError(GPTError):
    """A request could not be completed on the wire.

    ``stage`` names the step that failed: ``marshal``, ``request``,
    ``execute``, ``read`` or ``unmarshal``.  The underlying exception is
    chained as ``__cause__``.
    """

    def __init__(self, stage: str, cause: BaseException) -> None:
        super().__init__(f"{stage} error: {cause}")
        self.stage = stage
        self.cause = cause


class ProviderError(GPTError):
    """The service answered, but the response carries an error."""

    def __init__(self, detail: ErrorDetail) -> None:
        super().__init__(detail.message)
        self.detail = detail
