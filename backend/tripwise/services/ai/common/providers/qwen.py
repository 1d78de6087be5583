"""Alibaba DashScope / Qwen provider."""

from __future__ import annotations

import logging
import time

from tripwise.core.errors import MissingConfigurationError

from .base import BaseProvider, ChatMessage, ProviderResult

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://dashscope.aliyuncs.com/api/v1/services/aigc/text-generation/generation"


class QwenProvider(BaseProvider):
    name = "qwen"
    default_model = "qwen-max"

    def __init__(self, api_key: str, base_url: str = DEFAULT_BASE_URL) -> None:
        if not api_key:
            raise MissingConfigurationError("QWEN_API_KEY")
        self._api_key = api_key
        self._base_url = base_url

    async def generate(
        self,
        messages: list[ChatMessage],
        *,
        model: str = "",
        temperature: float = 0.7,
        max_tokens: int = 2000,
        timeout_seconds: float = 60.0,
    ) -> ProviderResult:
        import httpx

        model = model or self.default_model
        t0 = time.monotonic()

        async with httpx.AsyncClient(timeout=timeout_seconds) as client:
            resp = await client.post(
                self._base_url,
                headers={
                    "Authorization": f"Bearer {self._api_key}",
                    "Content-Type": "application/json",
                },
                json={
                    "model": model,
                    "input": {"messages": list(messages)},
                    "parameters": {
                        "temperature": temperature,
                        "max_tokens": max_tokens,
                        "result_format": "message",
                    },
                },
            )
            resp.raise_for_status()
            data = resp.json()

        elapsed = (time.monotonic() - t0) * 1000
        text = data["output"]["choices"][0]["message"]["content"]
        usage = data.get("usage", {})

        return ProviderResult(
            raw_text=text,
            model=model,
            provider=self.name,
            prompt_tokens=usage.get("input_tokens", 0),
            completion_tokens=usage.get("output_tokens", 0),
            latency_ms=round(elapsed, 2),
        )
