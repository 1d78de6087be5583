"""Budget analysis service: prompt the model, recover the analysis, add spend breakdown."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional

from tripwise.schemas.travel import BudgetBreakdown, Expense, TravelPreferences, budget_total_for

from ..common import router as ai_router
from ..common.providers.base import PROVIDER_ERRORS, ChatMessage, ProviderResult
from .contracts import BudgetAnalysisResult, CategorySpend
from .parser import extract_analysis

logger = logging.getLogger(__name__)

BUDGET_SYSTEM_PROMPT = (
    "你是一个专业的旅行预算管理专家。请提供详细、实用的预算分析和优化建议。"
    "分析要具体、有针对性，建议要可操作。\n\n"
    "重要：必须严格按照JSON格式返回，不要添加任何额外的文字说明或格式化。只返回纯JSON对象。"
)

# Expense category keyword -> budget breakdown field. Matched as a
# case-insensitive substring of the expense category.
CATEGORY_KEYWORDS: dict[str, str] = {
    "accommodation": "accommodation",
    "住宿": "accommodation",
    "food": "food",
    "餐饮": "food",
    "美食": "food",
    "transportation": "transportation",
    "交通": "transportation",
    "activities": "activities",
    "活动": "activities",
    "shopping": "activities",
    "购物": "activities",
}

FALLBACK_SUGGESTIONS = (
    "优先安排必游景点和特色美食体验",
    "提前预订住宿和交通工具可节省15-30%费用",
    "预留10-15%预算作为应急资金和意外支出",
)

SERVICE_UNAVAILABLE_NOTE = "注意：AI分析服务暂时不可用，以上为基础分析结果。"


@dataclass
class BudgetServiceResult:
    """Result from ``analyze_budget`` including metadata."""

    analysis_result: BudgetAnalysisResult
    provider_result: Optional[ProviderResult]
    fallback: bool
    total_latency_ms: float


def build_budget_prompt(
    preferences: TravelPreferences,
    current_spending: float,
    expenses: list[Expense] | None,
    budget_breakdown: BudgetBreakdown | None,
) -> str:
    total = budget_total_for(preferences.budget)

    if expenses:
        expenses_text = "\n".join(
            f"- {e.category}: {_amount(e.amount)}元 ({e.description}) [{e.date}]" for e in expenses
        )
    else:
        expenses_text = "暂无记录的开销"

    breakdown_text = ""
    if budget_breakdown is not None:
        breakdown_text = (
            "预算分配：\n"
            f"- 住宿：{_amount(budget_breakdown.accommodation)}元\n"
            f"- 餐饮：{_amount(budget_breakdown.food)}元\n"
            f"- 交通：{_amount(budget_breakdown.transportation)}元\n"
            f"- 活动：{_amount(budget_breakdown.activities)}元"
        )

    return (
        "请详细分析以下旅行预算情况：\n\n"
        f"目的地：{preferences.destination}\n"
        f"总预算：{total}元（{preferences.budget}）\n"
        f"已花费：{_amount(current_spending)}元\n"
        f"旅行天数：{preferences.duration}天\n"
        f"旅行人数：{preferences.travelers or 1}人\n"
        f"{breakdown_text}\n\n"
        "已记录的开销：\n"
        f"{expenses_text}\n\n"
        "请提供：\n"
        "1. 详细的预算使用情况分析（包括各分类的支出情况）\n"
        "2. 预算使用率分析（已花费/总预算）\n"
        "3. 针对性的优化建议（至少3条）\n"
        "4. 剩余预算的合理分配建议\n"
        "5. 如果超支，提供节省建议\n\n"
        "请以JSON格式返回：\n"
        "{\n"
        '  "analysis": "详细的分析内容（至少200字）",\n'
        '  "suggestions": ["建议1", "建议2", "建议3"],\n'
        '  "remaining": 剩余金额（数字）\n'
        "}"
    )


def compute_category_breakdown(
    expenses: list[Expense] | None,
    budget_breakdown: BudgetBreakdown | None,
) -> dict[str, CategorySpend] | None:
    """Spent vs. budget per breakdown field; ``None`` when nothing matched."""
    if not expenses or budget_breakdown is None:
        return None

    breakdown: dict[str, CategorySpend] = {}
    for keyword, field_name in CATEGORY_KEYWORDS.items():
        matched = [e for e in expenses if keyword.lower() in e.category.lower()]
        if not matched:
            continue
        spent = sum(e.amount for e in matched)
        budget = getattr(budget_breakdown, field_name)
        # Later keywords for the same field overwrite earlier ones.
        breakdown[field_name] = CategorySpend(
            spent=spent,
            budget=budget,
            percentage=round(spent / budget * 100) if budget > 0 else 0,
        )

    return breakdown or None


def _usage_wording(usage_percentage: int) -> str:
    if usage_percentage < 50:
        return "较为合理"
    if usage_percentage < 80:
        return "需要注意控制"
    return "已接近上限"


def _amount(value: float) -> str:
    return f"{value:,.0f}" if float(value).is_integer() else f"{value:,.2f}"


def basic_budget_analysis(
    preferences: TravelPreferences,
    current_spending: float,
    *,
    service_unavailable: bool = False,
) -> BudgetAnalysisResult:
    """Deterministic analysis used without a real provider or after a failure."""
    total = budget_total_for(preferences.budget)
    usage_percentage = round(current_spending / total * 100) if total else 0
    remaining = total - current_spending

    if service_unavailable:
        advice = "建议合理分配剩余资金，优先安排必要的住宿和交通费用。"
    else:
        advice = "建议合理分配剩余资金，优先安排必游景点和特色体验，同时预留一定的应急资金。"

    analysis = (
        "预算使用情况分析：\n\n"
        f"总预算：¥{_amount(total)}\n"
        f"已花费：¥{_amount(current_spending)}（{usage_percentage}%）\n"
        f"剩余预算：¥{_amount(remaining)}\n\n"
        f"根据当前的消费情况，您的预算使用{_usage_wording(usage_percentage)}。{advice}"
    )
    if service_unavailable:
        analysis = f"{analysis}\n\n{SERVICE_UNAVAILABLE_NOTE}"

    return BudgetAnalysisResult(
        analysis=analysis,
        suggestions=list(FALLBACK_SUGGESTIONS),
        remaining=remaining,
    )


async def analyze_budget(
    preferences: TravelPreferences,
    current_spending: float,
    expenses: list[Expense] | None = None,
    budget_breakdown: BudgetBreakdown | None = None,
    *,
    override_provider: str | None = None,
) -> BudgetServiceResult:
    """Analyze trip spending against the budget tier with the configured model."""
    t0 = time.monotonic()
    config = ai_router.resolve("budget", override_provider=override_provider)

    if config.is_mock:
        logger.info("No AI provider configured, returning basic budget analysis")
        return BudgetServiceResult(
            analysis_result=basic_budget_analysis(preferences, current_spending),
            provider_result=None,
            fallback=True,
            total_latency_ms=round((time.monotonic() - t0) * 1000, 2),
        )

    prompt = build_budget_prompt(preferences, current_spending, expenses, budget_breakdown)
    messages: list[ChatMessage] = [
        {"role": "system", "content": BUDGET_SYSTEM_PROMPT},
        {"role": "user", "content": prompt},
    ]

    try:
        provider_result = await config.provider.generate(
            messages,
            model=config.model,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            timeout_seconds=config.timeout_seconds,
        )
    except PROVIDER_ERRORS as exc:
        logger.warning("Budget analysis call to %s failed: %s", config.provider.name, exc)
        return BudgetServiceResult(
            analysis_result=basic_budget_analysis(preferences, current_spending, service_unavailable=True),
            provider_result=None,
            fallback=True,
            total_latency_ms=round((time.monotonic() - t0) * 1000, 2),
        )

    result = extract_analysis(provider_result.raw_text)
    if not result.remaining:
        result.remaining = budget_total_for(preferences.budget) - current_spending
    result.category_breakdown = compute_category_breakdown(expenses, budget_breakdown)

    return BudgetServiceResult(
        analysis_result=result,
        provider_result=provider_result,
        fallback=False,
        total_latency_ms=round((time.monotonic() - t0) * 1000, 2),
    )


