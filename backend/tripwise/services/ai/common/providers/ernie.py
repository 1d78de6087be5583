"""Baidu ERNIE (wenxinworkshop) provider."""

from __future__ import annotations

import logging
import time

from tripwise.core.errors import MissingConfigurationError

from .base import BaseProvider, ChatMessage, ProviderResult, split_system_prompt

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://aip.baidubce.com/rpc/2.0/ai_custom/v1/wenxinworkshop/chat/ernie-4.0-8k"


class ErnieProvider(BaseProvider):
    name = "ernie"
    default_model = "ernie-4.0-8k"

    def __init__(self, api_key: str, base_url: str = DEFAULT_BASE_URL) -> None:
        if not api_key:
            raise MissingConfigurationError("ERNIE_API_KEY")
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

        # The model is part of the endpoint URL; *model* is only reported back.
        model = model or self.default_model
        t0 = time.monotonic()

        # ERNIE rejects "system" turns; the prompt travels in its own field.
        system_prompt, turns = split_system_prompt(messages)
        payload: dict = {
            "messages": turns,
            "temperature": temperature,
            "max_output_tokens": max_tokens,
        }
        if system_prompt:
            payload["system"] = system_prompt

        async with httpx.AsyncClient(timeout=timeout_seconds) as client:
            resp = await client.post(
                self._base_url,
                params={"access_token": self._api_key},
                headers={"Content-Type": "application/json"},
                json=payload,
            )
            resp.raise_for_status()
            data = resp.json()

        if "error_code" in data:
            raise RuntimeError(f"ERNIE error {data['error_code']}: {data.get('error_msg', '')}")

        elapsed = (time.monotonic() - t0) * 1000
        usage = data.get("usage", {})

        return ProviderResult(
            raw_text=data["result"],
            model=model,
            provider=self.name,
            prompt_tokens=usage.get("prompt_tokens", 0),
            completion_tokens=usage.get("completion_tokens", 0),
            latency_ms=round(elapsed, 2),
        )
