"""Travel plan generation: itinerary prompt, JSON recovery, plan formatting."""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ValidationError

from tripwise.schemas.travel import (
    Activity,
    BudgetBreakdown,
    DayPlan,
    Meal,
    Recommendation,
    TravelPlan,
    TravelPreferences,
    budget_total_for,
)

from ..common import router as ai_router
from ..common.json_tools import extract_json
from ..common.providers.base import PROVIDER_ERRORS, ChatMessage, ProviderResult

logger = logging.getLogger(__name__)

PLANNER_SYSTEM_PROMPT = (
    "你是一个专业的旅行规划专家。请根据用户的偏好生成一份详细的、格式化的旅行计划。"
    "严格按照指定的JSON格式返回，不要包含任何额外的解释或Markdown标记。"
)

# Share of the tier total per budget field.
DEFAULT_BUDGET_SPLIT = {
    "accommodation": 0.4,
    "food": 0.3,
    "transportation": 0.2,
    "activities": 0.08,
    "miscellaneous": 0.02,
}

_PLAN_FORMAT = """{
  "itinerary": [
    {
      "day": 1,
      "activities": [
        {"time": "09:00", "name": "具体景点名称（如：故宫博物院）", "description": "详细描述",
         "location": "具体地址或地点名称", "duration": "时长", "cost": "费用"}
      ],
      "meals": [
        {"type": "breakfast", "name": "具体餐厅名称", "location": "具体地点", "cost": "费用"}
      ],
      "accommodation": "推荐入住XX酒店（具体酒店名称），位于XX区域，交通便利，价格约XX元/晚"
    }
  ],
  "recommendations": [
    {"category": "attraction", "title": "具体景点名称", "description": "详细描述", "location": "具体地址", "rating": 4.5},
    {"category": "restaurant", "title": "具体餐厅名称", "description": "详细描述", "location": "具体地址", "rating": 4.3}
  ],
  "budget": {"total": 0, "accommodation": 0, "food": 0, "transportation": 0, "activities": 0}
}"""


@dataclass
class PlannerServiceResult:
    plan: TravelPlan
    provider_result: Optional[ProviderResult]
    fallback: bool
    total_latency_ms: float


def build_plan_prompt(preferences: TravelPreferences) -> str:
    lines = [
        "请为以下旅行需求生成详细的旅行计划：",
        "",
        f"目的地：{preferences.destination}",
        f"旅行天数：{preferences.duration}天",
        f"预算：{preferences.budget}",
        f"旅行风格：{preferences.travel_style}",
        f"兴趣：{'、'.join(preferences.interests)}",
    ]
    if preferences.start_date:
        lines.append(f"出发日期：{preferences.start_date}")
    if preferences.travelers:
        lines.append(f"旅行人数：{preferences.travelers}人")
    lines += [
        "",
        "**重要要求：必须使用具体的地点名称，不能使用模糊描述！**",
        "",
        "请生成包含以下内容的详细计划：",
        "1. 每日详细行程：每个活动必须使用具体的景点名称、餐厅名称、地点名称",
        "2. 推荐景点和活动：每个推荐必须包含具体名称",
        "3. 餐厅推荐：必须提供具体的餐厅名称，不能只说“当地特色餐厅”",
        "4. 住宿建议：提供具体的酒店名称或区域建议",
        "5. 预算分解：详细的预算分配",
        "",
        "请以JSON格式返回，格式如下：",
        _PLAN_FORMAT,
        "",
        "所有地点、景点、餐厅必须使用具体名称，不能使用“著名景点”、“当地餐厅”等模糊描述！",
    ]
    return "\n".join(lines)


def default_budget(tier: str) -> BudgetBreakdown:
    total = budget_total_for(tier)
    return BudgetBreakdown(
        total=total,
        **{field: round(total * share) for field, share in DEFAULT_BUDGET_SPLIT.items()},
    )


def _validated_items(raw: Any, model: type[BaseModel]) -> list:
    if not isinstance(raw, list):
        return []
    items = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        try:
            items.append(model.model_validate(entry))
        except ValidationError as exc:
            logger.debug("Dropping malformed %s: %s", model.__name__, exc.errors()[:1])
    return items


def format_travel_plan(data: dict[str, Any], preferences: TravelPreferences) -> TravelPlan:
    """Build a ``TravelPlan`` from a recovered JSON object, filling defaults."""
    itinerary: list[DayPlan] = _validated_items(data.get("itinerary"), DayPlan)
    recommendations: list[Recommendation] = _validated_items(data.get("recommendations"), Recommendation)

    budget = default_budget(preferences.budget)
    if isinstance(data.get("budget"), dict):
        try:
            budget = BudgetBreakdown.model_validate(data["budget"])
        except ValidationError:
            logger.debug("Plan budget malformed, using tier default")

    return TravelPlan(
        id=str(uuid.uuid4()),
        destination=preferences.destination,
        duration=preferences.duration,
        itinerary=itinerary,
        recommendations=recommendations,
        budget=budget,
        created_at=datetime.now(timezone.utc),
    )


def generate_mock_plan(preferences: TravelPreferences) -> TravelPlan:
    destination = preferences.destination
    itinerary = [
        DayPlan(
            day=day,
            activities=[
                Activity(time="09:00", name="早餐", description="在当地特色餐厅享用早餐",
                         location="酒店附近", duration="1小时", cost="50-100元"),
                Activity(time="10:30", name="参观主要景点", description=f"探索{destination}的著名景点",
                         location="市中心", duration="3小时", cost="100-200元"),
                Activity(time="14:00", name="午餐", description="品尝当地美食",
                         location="特色餐厅", duration="1.5小时", cost="80-150元"),
                Activity(time="16:00", name="自由活动", description="根据个人兴趣自由安排",
                         location="市区", duration="2小时"),
            ],
            meals=[
                Meal(type="breakfast", name="酒店早餐", location="酒店", cost="包含"),
                Meal(type="lunch", name="当地特色餐厅", location="市中心", cost="80-150元"),
                Meal(type="dinner", name="推荐餐厅", location="美食街", cost="100-200元"),
            ],
        )
        for day in range(1, preferences.duration + 1)
    ]

    return TravelPlan(
        id=str(uuid.uuid4()),
        destination=destination,
        duration=preferences.duration,
        itinerary=itinerary,
        recommendations=[
            Recommendation(category="attraction", title="必游景点",
                           description=f"{destination}最值得参观的景点", rating=4.5),
            Recommendation(category="restaurant", title="特色餐厅",
                           description="品尝当地美食的最佳选择", rating=4.3),
            Recommendation(category="tip", title="旅行小贴士",
                           description="建议提前预订热门景点门票，避开旅游高峰期"),
        ],
        budget=default_budget(preferences.budget),
        created_at=datetime.now(timezone.utc),
    )


async def generate_travel_plan(
    preferences: TravelPreferences,
    *,
    override_provider: str | None = None,
) -> PlannerServiceResult:
    t0 = time.monotonic()
    config = ai_router.resolve("planner", override_provider=override_provider)

    def _fallback(provider_result: Optional[ProviderResult] = None) -> PlannerServiceResult:
        return PlannerServiceResult(
            plan=generate_mock_plan(preferences),
            provider_result=provider_result,
            fallback=True,
            total_latency_ms=round((time.monotonic() - t0) * 1000, 2),
        )

    if config.is_mock:
        logger.info("No AI provider configured, returning template plan")
        return _fallback()

    messages: list[ChatMessage] = [
        {"role": "system", "content": PLANNER_SYSTEM_PROMPT},
        {"role": "user", "content": build_plan_prompt(preferences)},
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
        logger.warning("Plan generation call to %s failed: %s", config.provider.name, exc)
        return _fallback()

    data = extract_json(provider_result.raw_text)
    if data is None:
        logger.warning("Plan reply from %s carried no JSON object, using template plan", config.provider.name)
        return _fallback(provider_result)

    return PlannerServiceResult(
        plan=format_travel_plan(data, preferences),
        provider_result=provider_result,
        fallback=False,
        total_latency_ms=round((time.monotonic() - t0) * 1000, 2),
    )
