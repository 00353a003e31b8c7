"""Domain models for cafeteria meals."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import UUID


class MealType(StrEnum):
    """Service slot a meal belongs to."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"


class MealStatus(StrEnum):
    """Exchange state of a meal.

    Transitions only move forward: available -> offered -> claimed ->
    consumed | unclaimed.
    """

    AVAILABLE = "available"
    OFFERED = "offered"
    CLAIMED = "claimed"
    CONSUMED = "consumed"
    UNCLAIMED = "unclaimed"


OFFERED_OR_LATER = frozenset(
    {MealStatus.OFFERED, MealStatus.CLAIMED, MealStatus.CONSUMED, MealStatus.UNCLAIMED}
)
CLAIMED_OR_LATER = frozenset(
    {MealStatus.CLAIMED, MealStatus.CONSUMED, MealStatus.UNCLAIMED}
)


@dataclass(frozen=True)
class NutritionInfo:
    """Optional nutrition metadata for a meal."""

    calories: int
    protein: float
    carbs: float
    fat: float
    allergens: list[str] = field(default_factory=list)
    dietary_info: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Meal:
    """A cafeteria meal that can be offered to and claimed by members."""

    id: UUID
    name: str
    description: str
    type: MealType
    date: datetime
    location: str
    status: MealStatus = MealStatus.AVAILABLE
    image_url: str | None = None
    nutrition: NutritionInfo | None = None
    offered_by: UUID | None = None
    claimed_by: UUID | None = None
    offer_expiry_time: datetime | None = None
    claim_deadline_time: datetime | None = None
    actually_consumed: bool | None = None
    feedback_provided: bool = False

    def __post_init__(self) -> None:
        if self.claimed_by is not None and self.status not in CLAIMED_OR_LATER:
            raise ValueError(f"claimed_by set on a meal in status {self.status}")
        if self.offered_by is not None and self.status not in OFFERED_OR_LATER:
            raise ValueError(f"offered_by set on a meal in status {self.status}")
