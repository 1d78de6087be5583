"""Conversational travel assistant."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional

from ..common import router as ai_router
from ..common.providers.base import PROVIDER_ERRORS, ChatMessage, ProviderResult
from ..common.providers.mock import mock_reply

logger = logging.getLogger(__name__)

CHAT_SYSTEM_PROMPT = "你是一个专业的旅行规划助手。你的任务是帮助用户规划完美的旅行。请用中文回答，提供详细、实用的建议。"

_ALLOWED_HISTORY_ROLES = frozenset({"user", "assistant"})


@dataclass
class ChatServiceResult:
    reply: str
    provider_result: Optional[ProviderResult]
    fallback: bool
    total_latency_ms: float


def build_chat_messages(message: str, history: list[ChatMessage] | None = None) -> list[ChatMessage]:
    messages: list[ChatMessage] = [{"role": "system", "content": CHAT_SYSTEM_PROMPT}]
    for turn in history or []:
        if turn.get("role") in _ALLOWED_HISTORY_ROLES and turn.get("content"):
            messages.append({"role": turn["role"], "content": turn["content"]})
    messages.append({"role": "user", "content": message})
    return messages


async def chat_with_ai(
    message: str,
    history: list[ChatMessage] | None = None,
    *,
    override_provider: str | None = None,
) -> ChatServiceResult:
    """Answer *message* in the context of *history*.

    Provider failures are not surfaced: the user gets the canned reply.
    """
    t0 = time.monotonic()
    config = ai_router.resolve("chat", override_provider=override_provider)
    messages = build_chat_messages(message, history)

    try:
        result = await config.provider.generate(
            messages,
            model=config.model,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            timeout_seconds=config.timeout_seconds,
        )
    except PROVIDER_ERRORS as exc:
        logger.warning("Chat call to %s failed, answering with canned reply: %s", config.provider.name, exc)
        return ChatServiceResult(
            reply=mock_reply(message),
            provider_result=None,
            fallback=True,
            total_latency_ms=round((time.monotonic() - t0) * 1000, 2),
        )

    return ChatServiceResult(
        reply=result.raw_text,
        provider_result=result,
        fallback=config.is_mock,
        total_latency_ms=round((time.monotonic() - t0) * 1000, 2),
    )
