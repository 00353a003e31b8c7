"""Sample community data for a fresh store."""

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from uuid import UUID

from fiesta.domain.entities import Entity
from fiesta.domain.meals import Meal, MealType, NutritionInfo
from fiesta.domain.models import User, UserRole
from fiesta.domain.predictions import MealPrediction, PredictionFactor
from fiesta.services.sync import EntityChange, SyncCoordinator

_logger = logging.getLogger(__name__)

_MAIN_CAFETERIA = "Main Cafeteria"


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


def _sample_id(number: int) -> UUID:
    return UUID(int=number)


def sample_users(now: datetime) -> list[User]:
    """Return the demo members, oldest first."""
    return [
        User(
            id=_sample_id(1),
            name="Student One",
            email="student1@test.com",
            role=UserRole.STUDENT,
            cq_score=85.0,
            meals_saved=12,
            meals_swapped=15,
            meals_distributed=3,
            created_at=now,
        ),
        User(
            id=_sample_id(2),
            name="Student Two",
            email="student2@test.com",
            role=UserRole.STUDENT,
            cq_score=72.5,
            meals_saved=8,
            meals_swapped=10,
            meals_distributed=5,
            created_at=now + timedelta(seconds=1),
        ),
        User(
            id=_sample_id(3),
            name="Cafeteria Staff",
            email="staff@test.com",
            role=UserRole.CAFETERIA_STAFF,
            created_at=now + timedelta(seconds=2),
        ),
        User(
            id=_sample_id(4),
            name="Admin User",
            email="admin@test.com",
            role=UserRole.ADMIN,
            created_at=now + timedelta(seconds=3),
        ),
    ]


def sample_meals(now: datetime) -> list[Meal]:
    """Return the demo menu."""
    tomorrow = now + timedelta(days=1)
    return [
        Meal(
            id=_sample_id(101),
            name="Vegetable Curry with Rice",
            description="A hearty vegetable curry served with steamed rice",
            image_url="curry_rice",
            type=MealType.LUNCH,
            date=now,
            location=_MAIN_CAFETERIA,
            nutrition=NutritionInfo(450, 12.0, 65.0, 15.0, ["Nuts"], ["Vegetarian"]),
        ),
        Meal(
            id=_sample_id(102),
            name="Pancakes with Maple Syrup",
            description="Fluffy pancakes served with maple syrup and fresh berries",
            image_url="pancakes",
            type=MealType.BREAKFAST,
            date=now,
            location=_MAIN_CAFETERIA,
            nutrition=NutritionInfo(
                550, 8.0, 85.0, 12.0, ["Gluten", "Dairy"], ["Vegetarian"]
            ),
        ),
        Meal(
            id=_sample_id(103),
            name="Grilled Chicken Sandwich",
            description=(
                "Grilled chicken breast with lettuce, tomato and mayo "
                "in a whole wheat bun"
            ),
            image_url="chicken_sandwich",
            type=MealType.LUNCH,
            date=tomorrow,
            location=_MAIN_CAFETERIA,
            nutrition=NutritionInfo(420, 28.0, 45.0, 12.0, ["Gluten"], []),
        ),
        Meal(
            id=_sample_id(104),
            name="Pasta with Tomato Sauce",
            description="Penne pasta with homemade tomato sauce and parmesan cheese",
            image_url="pasta",
            type=MealType.DINNER,
            date=now,
            location=_MAIN_CAFETERIA,
            nutrition=NutritionInfo(
                580, 18.0, 90.0, 10.0, ["Gluten", "Dairy"], ["Vegetarian"]
            ),
        ),
        Meal(
            id=_sample_id(105),
            name="Fruit Salad",
            description="Fresh seasonal fruits with a honey-lime dressing",
            image_url="fruit_salad",
            type=MealType.SNACK,
            date=now,
            location="Snack Corner",
            nutrition=NutritionInfo(120, 2.0, 28.0, 0.5, [], ["Vegan", "Vegetarian"]),
        ),
    ]


def sample_predictions(now: datetime) -> list[MealPrediction]:
    """Return demo forecasts for today's and tomorrow's lunch."""
    return [
        MealPrediction(
            id=_sample_id(201),
            date=now,
            meal_type=MealType.LUNCH,
            location=_MAIN_CAFETERIA,
            predicted_attendance=250,
            confidence_score=0.85,
            weather_condition="Sunny",
            factors=[
                PredictionFactor(
                    "Weather", 0.2, "Good weather increases attendance"
                ),
                PredictionFactor(
                    "Day of Week", 0.1, "Midweek has higher attendance"
                ),
            ],
            adjusted_preparation_level=260,
            waste_reduction=15,
        ),
        MealPrediction(
            id=_sample_id(202),
            date=now + timedelta(days=1),
            meal_type=MealType.LUNCH,
            location=_MAIN_CAFETERIA,
            predicted_attendance=200,
            confidence_score=0.78,
            weather_condition="Rainy",
            is_exam_day=True,
            factors=[
                PredictionFactor(
                    "Weather", -0.15, "Bad weather decreases attendance"
                ),
                PredictionFactor(
                    "Exam Day", -0.25, "Exam days have lower cafeteria attendance"
                ),
            ],
            adjusted_preparation_level=190,
            waste_reduction=30,
        ),
    ]


async def seed_sample_data(
    coordinator: SyncCoordinator, clock: Callable[[], datetime] = _utcnow
) -> bool:
    """Write the demo data when the store holds no users.

    Returns True when data was written.
    """
    if await coordinator.list_users():
        return False
    now = clock()
    entities: list[Entity] = [
        *sample_users(now),
        *sample_meals(now),
        *sample_predictions(now),
    ]
    await coordinator.commit(
        [EntityChange(entity) for entity in entities], acting_user_id=None
    )
    _logger.info("Seeded %s sample entities", len(entities))
    return True
