"""Provider factory — returns the right provider instance or falls back to mock."""

from __future__ import annotations

import logging

from tripwise.core.config import get_settings

from .base import BaseProvider, ChatMessage, ProviderResult
from .mock import MockProvider

logger = logging.getLogger(__name__)

__all__ = ["get_provider", "BaseProvider", "ChatMessage", "ProviderResult", "MockProvider"]


def get_provider(provider_name: str) -> BaseProvider:
    """Return a provider instance for *provider_name*.

    If the requested provider is not in the allowlist or has no API key we
    fall back to ``MockProvider``, which answers with canned replies.
    """
    settings = get_settings()
    name = provider_name.lower().strip()

    if name not in settings.ai_allowed_providers:
        logger.warning("Provider %r not in allowlist – falling back to mock", name)
        return MockProvider()

    if name == "mock":
        return MockProvider()

    if name == "qwen":
        if not settings.qwen_api_key:
            logger.warning("QWEN_API_KEY not set – falling back to mock")
            return MockProvider()
        from .qwen import QwenProvider

        return QwenProvider(api_key=settings.qwen_api_key, base_url=settings.qwen_base_url)

    if name == "ernie":
        if not settings.ernie_api_key:
            logger.warning("ERNIE_API_KEY not set – falling back to mock")
            return MockProvider()
        from .ernie import ErnieProvider

        return ErnieProvider(api_key=settings.ernie_api_key, base_url=settings.ernie_base_url)

    if name == "zhipu":
        if not settings.zhipu_api_key:
            logger.warning("ZHIPU_API_KEY not set – falling back to mock")
            return MockProvider()
        from .zhipu import ZhipuProvider

        return ZhipuProvider(api_key=settings.zhipu_api_key, base_url=settings.zhipu_base_url)

    logger.warning("Unknown provider %r – falling back to mock", name)
    return MockProvider()
