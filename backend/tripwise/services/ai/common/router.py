"""AI Router — resolves provider + model + call parameters from settings."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from tripwise.core.config import get_settings

from .providers import BaseProvider, get_provider

logger = logging.getLogger(__name__)

# Scopes whose replies must be JSON; they run at the lower temperature.
STRUCTURED_SCOPES = frozenset({"budget", "planner"})


@dataclass(frozen=True)
class ResolvedConfig:
    """Final resolved provider + model for one call."""

    provider: BaseProvider
    model: str
    temperature: float
    max_tokens: int
    timeout_seconds: float

    @property
    def is_mock(self) -> bool:
        return self.provider.name == "mock"


def resolve(scope: str, *, override_provider: str | None = None) -> ResolvedConfig:
    """Resolve provider + model for a given *scope*.

    Provider: ``override_provider`` > ``AI_PROVIDER`` > first provider with a
    key (qwen, ernie, zhipu) > ``mock``. Model: ``AI_MODEL`` when it targets
    the resolved provider, else the provider default.
    """
    settings = get_settings()

    provider_name = (override_provider or "").lower().strip() or settings.effective_ai_provider
    provider = get_provider(provider_name)

    model = settings.ai_model.strip() if provider.name == provider_name else ""
    if not model:
        model = provider.default_model

    temperature = settings.ai_structured_temperature if scope in STRUCTURED_SCOPES else settings.ai_temperature

    logger.debug("Resolved scope %r to %s:%s", scope, provider.name, model)

    return ResolvedConfig(
        provider=provider,
        model=model,
        temperature=temperature,
        max_tokens=settings.ai_max_tokens,
        timeout_seconds=settings.ai_timeout_seconds,
    )
