from datetime import datetime
from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, Field


class BudgetTier(StrEnum):
    ECONOMY = "经济型"
    COMFORT = "舒适型"
    LUXURY = "豪华型"


BUDGET_TIER_TOTALS: dict[str, int] = {
    BudgetTier.ECONOMY.value: 5000,
    BudgetTier.COMFORT.value: 10000,
    BudgetTier.LUXURY.value: 20000,
}
DEFAULT_BUDGET_TOTAL = 10000


def budget_total_for(tier: str) -> int:
    return BUDGET_TIER_TOTALS.get((tier or "").strip(), DEFAULT_BUDGET_TOTAL)


class Coordinates(BaseModel):
    lat: float
    lng: float


class TravelPreferences(BaseModel):
    destination: str = Field(..., min_length=1, max_length=200)
    duration: int = Field(..., ge=1, le=60)
    budget: str = BudgetTier.COMFORT.value
    travel_style: str = ""
    interests: list[str] = Field(default_factory=list)
    start_date: Optional[str] = None
    travelers: Optional[int] = Field(default=None, ge=1)


class Expense(BaseModel):
    category: str
    amount: float = Field(..., ge=0)
    description: str = ""
    date: str = ""
    location: Optional[str] = None


class BudgetBreakdown(BaseModel):
    total: float = 0
    accommodation: float = 0
    food: float = 0
    transportation: float = 0
    activities: float = 0
    miscellaneous: float = 0


# --- Plan ---


class Activity(BaseModel):
    time: str = ""
    name: str = ""
    description: str = ""
    location: str = ""
    duration: str = ""
    cost: Optional[str] = None
    coordinates: Optional[Coordinates] = None


class Meal(BaseModel):
    type: str = "snack"
    name: str = ""
    location: str = ""
    cost: Optional[str] = None
    recommendation: Optional[str] = None


class DayPlan(BaseModel):
    day: int = 1
    date: Optional[str] = None
    activities: list[Activity] = Field(default_factory=list)
    meals: list[Meal] = Field(default_factory=list)
    accommodation: Optional[str] = None
    notes: Optional[str] = None


class Recommendation(BaseModel):
    category: str = "tip"
    title: str = ""
    description: str = ""
    location: Optional[str] = None
    rating: Optional[float] = None
    coordinates: Optional[Coordinates] = None


class TravelPlan(BaseModel):
    id: str
    destination: str
    duration: int
    itinerary: list[DayPlan] = Field(default_factory=list)
    recommendations: list[Recommendation] = Field(default_factory=list)
    budget: BudgetBreakdown
    created_at: datetime
