"""Abstract base for all chat/completion providers."""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import TypedDict

import httpx


class ChatMessage(TypedDict):
    role: str
    content: str


@dataclass(frozen=True)
class ProviderResult:
    """Immutable result returned by every provider."""

    raw_text: str
    model: str
    provider: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    latency_ms: float = 0.0


class BaseProvider(abc.ABC):
    """Contract that every chat provider must implement."""

    name: str = "base"
    default_model: str = ""

    @abc.abstractmethod
    async def generate(
        self,
        messages: list[ChatMessage],
        *,
        model: str = "",
        temperature: float = 0.7,
        max_tokens: int = 2000,
        timeout_seconds: float = 60.0,
    ) -> ProviderResult:
        """Send role-tagged *messages* and return a ``ProviderResult``."""


def split_system_prompt(messages: list[ChatMessage]) -> tuple[str, list[ChatMessage]]:
    """Separate ``system`` messages from the conversation turns."""
    system_parts = [m["content"] for m in messages if m["role"] == "system"]
    turns = [m for m in messages if m["role"] != "system"]
    return "\n\n".join(system_parts), turns


# What a provider call can raise: transport/HTTP status errors, payloads
# missing the expected keys, and provider-reported errors.
PROVIDER_ERRORS = (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError, RuntimeError)
