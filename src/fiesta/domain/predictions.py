"""Precomputed attendance forecasts."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from fiesta.domain.meals import MealType


@dataclass(frozen=True)
class PredictionFactor:
    """One named influence on a forecast, impact in [-1, 1]."""

    name: str
    impact: float
    description: str


@dataclass(frozen=True)
class MealPrediction:
    """Attendance forecast for one meal slot at one location."""

    id: UUID
    date: datetime
    meal_type: MealType
    location: str
    predicted_attendance: int
    confidence_score: float
    actual_attendance: int | None = None
    weather_condition: str | None = None
    is_exam_day: bool = False
    is_holiday: bool = False
    is_event_day: bool = False
    factors: list[PredictionFactor] = field(default_factory=list)
    adjusted_preparation_level: int | None = None
    waste_reduction: int | None = None
