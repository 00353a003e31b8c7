"""Domain models for the swap ledger."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from uuid import UUID


class SwapStatus(StrEnum):
    """Ledger state of a meal swap."""

    PENDING = "pending"
    COMPLETED = "completed"
    EXPIRED = "expired"


@dataclass(frozen=True)
class MealSwap:
    """Ledger record pairing an offered meal with its eventual claimant."""

    id: UUID
    meal_id: UUID
    offered_by: UUID
    offered_at: datetime
    expires_at: datetime
    status: SwapStatus = SwapStatus.PENDING
    claimed_by: UUID | None = None
    claimed_at: datetime | None = None
    cq_points_earned: float | None = None
