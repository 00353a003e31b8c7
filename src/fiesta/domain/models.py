"""Domain models for community members."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from uuid import UUID


class UserRole(StrEnum):
    """Role a member plays in the dining community."""

    STUDENT = "student"
    CAFETERIA_STAFF = "cafeteriaStaff"
    ADMIN = "admin"


@dataclass(frozen=True)
class User:
    """Represents a community member and their exchange counters."""

    id: UUID
    name: str
    email: str
    created_at: datetime
    role: UserRole = UserRole.STUDENT
    cq_score: float = 0.0
    leaderboard_rank: int | None = None
    is_active: bool = True
    meals_saved: int = 0
    meals_swapped: int = 0
    meals_distributed: int = 0
    profile_image_url: str | None = None

    def __post_init__(self) -> None:
        if self.cq_score < 0:
            raise ValueError("cq_score must be non-negative")
