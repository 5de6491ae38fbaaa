"""Completion client, transport and model-family strategies."""

from gpt_reply.llm.client import GPTClient
from gpt_reply.llm.families import ChatFamily, FamilyStrategy, LegacyFamily, family_for
from gpt_reply.llm.transport import CompletionTransport

__all__ = [
    "ChatFamily",
    "CompletionTransport",
    "FamilyStrategy",
    "GPTClient",
    "LegacyFamily",
    "family_for",
]
