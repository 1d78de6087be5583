"""Mock provider — deterministic replies for tests and for running without keys."""

from __future__ import annotations

import time

from .base import BaseProvider, ChatMessage, ProviderResult

_KEYWORD_REPLIES = {
    "你好": "你好！我是你的AI旅行规划助手。我可以帮你规划完美的旅行。请告诉我你想去哪里旅行？",
    "推荐": "我可以根据你的兴趣和预算为你推荐合适的旅行目的地和行程。请告诉我你的旅行偏好。",
}

GENERIC_REPLY = (
    "我理解你的问题。作为AI旅行规划助手，我可以帮助你：\n"
    "1. 规划旅行路线\n"
    "2. 推荐景点和餐厅\n"
    "3. 提供预算建议\n"
    "4. 回答旅行相关问题\n\n"
    "请告诉我更多关于你的旅行需求，比如目的地、天数、预算等。"
)


def mock_reply(message: str) -> str:
    lowered = message.lower()
    for keyword, reply in _KEYWORD_REPLIES.items():
        if keyword.lower() in lowered:
            return reply
    return GENERIC_REPLY


class MockProvider(BaseProvider):
    name = "mock"
    default_model = "mock-v1"

    async def generate(
        self,
        messages: list[ChatMessage],
        *,
        model: str = "",
        temperature: float = 0.7,
        max_tokens: int = 2000,
        timeout_seconds: float = 60.0,
    ) -> ProviderResult:
        t0 = time.monotonic()
        last_user = next((m["content"] for m in reversed(messages) if m["role"] == "user"), "")
        text = mock_reply(last_user)
        elapsed = (time.monotonic() - t0) * 1000
        return ProviderResult(
            raw_text=text,
            model=model or self.default_model,
            provider=self.name,
            prompt_tokens=sum(len(m["content"].split()) for m in messages),
            completion_tokens=len(text.split()),
            latency_ms=round(elapsed, 2),
        )
