"""Budget analysis scope contracts — the always-complete extraction result."""

from __future__ import annotations

from pydantic import BaseModel, Field


class CategorySpend(BaseModel):
    spent: float = 0
    budget: float = 0
    percentage: int = 0


class BudgetAnalysisResult(BaseModel):
    """Structured output recovered from a budget-analysis reply.

    Every field is always present with its declared type; the parser fills
    defaults instead of propagating malformed model output.
    """

    analysis: str = ""
    suggestions: list[str] = Field(default_factory=list)
    remaining: float = 0
    category_breakdown: dict[str, CategorySpend] | None = None
