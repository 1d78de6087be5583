"""AI endpoints for the travel assistant."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel, Field

from tripwise.schemas.travel import BudgetBreakdown, Expense, TravelPlan, TravelPreferences
from tripwise.services.ai.budget.contracts import CategorySpend

router = APIRouter()


class ChatTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=4000)
    history: list[ChatTurn] = Field(default_factory=list)
    override_provider: str | None = None


class ChatResponse(BaseModel):
    reply: str
    provider: str
    model: str
    fallback: bool
    latency_ms: float


@router.post("/ai/chat", response_model=ChatResponse, summary="Ask the travel assistant")
async def chat_endpoint(body: ChatRequest):
    from tripwise.services.ai.chat.service import chat_with_ai

    result = await chat_with_ai(
        body.message,
        [turn.model_dump() for turn in body.history],
        override_provider=body.override_provider,
    )
    return ChatResponse(
        reply=result.reply,
        provider=result.provider_result.provider if result.provider_result else "mock",
        model=result.provider_result.model if result.provider_result else "",
        fallback=result.fallback,
        latency_ms=result.total_latency_ms,
    )


# --- Budget ---


class BudgetAnalysisRequest(BaseModel):
    preferences: TravelPreferences
    current_spending: float = Field(0, ge=0)
    expenses: list[Expense] | None = None
    budget_breakdown: BudgetBreakdown | None = None
    override_provider: str | None = None


class BudgetAnalysisResponse(BaseModel):
    analysis: str
    suggestions: list[str]
    remaining: float
    category_breakdown: dict[str, CategorySpend] | None = None
    provider: str
    fallback: bool
    latency_ms: float


@router.post("/ai/budget-analysis", response_model=BudgetAnalysisResponse, summary="Analyze trip spending")
async def budget_analysis_endpoint(body: BudgetAnalysisRequest):
    from tripwise.services.ai.budget.service import analyze_budget

    result = await analyze_budget(
        body.preferences,
        body.current_spending,
        body.expenses,
        body.budget_breakdown,
        override_provider=body.override_provider,
    )
    analysis = result.analysis_result
    return BudgetAnalysisResponse(
        analysis=analysis.analysis,
        suggestions=analysis.suggestions,
        remaining=analysis.remaining,
        category_breakdown=analysis.category_breakdown,
        provider=result.provider_result.provider if result.provider_result else "mock",
        fallback=result.fallback,
        latency_ms=result.total_latency_ms,
    )


# --- Planner ---


class TravelPlanRequest(BaseModel):
    preferences: TravelPreferences
    override_provider: str | None = None


class TravelPlanResponse(BaseModel):
    plan: TravelPlan
    provider: str
    fallback: bool
    latency_ms: float


@router.post("/ai/travel-plan", response_model=TravelPlanResponse, summary="Generate a day-by-day plan")
async def travel_plan_endpoint(body: TravelPlanRequest):
    from tripwise.services.ai.planner.service import generate_travel_plan

    result = await generate_travel_plan(body.preferences, override_provider=body.override_provider)
    return TravelPlanResponse(
        plan=result.plan,
        provider=result.provider_result.provider if result.provider_result else "mock",
        fallback=result.fallback,
        latency_ms=result.total_latency_ms,
    )
