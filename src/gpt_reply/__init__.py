"""gpt-reply: conversational completion client with per-user history."""

from gpt_reply.config import CompletionConfig, load_config
from gpt_reply.errors import ConfigurationError, GPTError, ProviderError, TransportError
from gpt_reply.history import HistoryStore
from gpt_reply.llm import GPTClient
from gpt_reply.types import Completion, Role, Turn

__all__ = [
    "Completion",
    "CompletionConfig",
    "ConfigurationError",
    "GPTClient",
    "GPTError",
    "HistoryStore",
    "ProviderError",
    "Role",
    "TransportError",
    "Turn",
    "load_config",
]
