"""Row mapping between domain entities and flat store records."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from fiesta.domain.entities import Entity, EntityKind, kind_of
from fiesta.domain.meals import Meal, MealStatus, MealType, NutritionInfo
from fiesta.domain.models import User, UserRole
from fiesta.domain.predictions import MealPrediction, PredictionFactor
from fiesta.domain.swaps import MealSwap, SwapStatus

Row = dict[str, object]


def encode_value(value: object) -> object:
    """Encode a scalar the way it is stored in a row."""
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return value


def to_row(entity: Entity) -> Row:
    """Flatten an entity into a store row."""
    kind = kind_of(entity)
    if kind is EntityKind.USER:
        return _user_row(entity)
    if kind is EntityKind.MEAL:
        return _meal_row(entity)
    if kind is EntityKind.SWAP:
        return _swap_row(entity)
    return _prediction_row(entity)


def from_row(kind: EntityKind, row: Row) -> Entity:
    """Build an entity from a store row.

    Raises KeyError, TypeError or ValueError for malformed rows.
    """
    if kind is EntityKind.USER:
        return _parse_user(row)
    if kind is EntityKind.MEAL:
        return _parse_meal(row)
    if kind is EntityKind.SWAP:
        return _parse_swap(row)
    return _parse_prediction(row)


def _user_row(user: User) -> Row:
    return {
        "id": str(user.id),
        "name": user.name,
        "email": user.email,
        "role": user.role.value,
        "cq_score": user.cq_score,
        "leaderboard_rank": user.leaderboard_rank,
        "is_active": user.is_active,
        "meals_saved": user.meals_saved,
        "meals_swapped": user.meals_swapped,
        "meals_distributed": user.meals_distributed,
        "profile_image_url": user.profile_image_url,
        "created_at": user.created_at.isoformat(),
    }


def _meal_row(meal: Meal) -> Row:
    nutrition = meal.nutrition
    return {
        "id": str(meal.id),
        "name": meal.name,
        "description": meal.description,
        "type": meal.type.value,
        "status": meal.status.value,
        "date": meal.date.isoformat(),
        "location": meal.location,
        "image_url": meal.image_url,
        "calories": nutrition.calories if nutrition else None,
        "protein": nutrition.protein if nutrition else None,
        "carbs": nutrition.carbs if nutrition else None,
        "fat": nutrition.fat if nutrition else None,
        "allergens": list(nutrition.allergens) if nutrition else None,
        "dietary_info": list(nutrition.dietary_info) if nutrition else None,
        "offered_by": _encode_optional(meal.offered_by),
        "claimed_by": _encode_optional(meal.claimed_by),
        "offer_expiry_time": _encode_optional(meal.offer_expiry_time),
        "claim_deadline_time": _encode_optional(meal.claim_deadline_time),
        "actually_consumed": meal.actually_consumed,
        "is_feedback_provided": meal.feedback_provided,
    }


def _swap_row(swap: MealSwap) -> Row:
    return {
        "id": str(swap.id),
        "meal_id": str(swap.meal_id),
        "offered_by": str(swap.offered_by),
        "offered_at": swap.offered_at.isoformat(),
        "claimed_by": _encode_optional(swap.claimed_by),
        "claimed_at": _encode_optional(swap.claimed_at),
        "expires_at": swap.expires_at.isoformat(),
        "status": swap.status.value,
        "cq_points_earned": swap.cq_points_earned,
    }


def _prediction_row(prediction: MealPrediction) -> Row:
    return {
        "id": str(prediction.id),
        "date": prediction.date.isoformat(),
        "meal_type": prediction.meal_type.value,
        "location": prediction.location,
        "predicted_attendance": prediction.predicted_attendance,
        "actual_attendance": prediction.actual_attendance,
        "weather_condition": prediction.weather_condition,
        "is_exam_day": prediction.is_exam_day,
        "is_holiday": prediction.is_holiday,
        "is_event_day": prediction.is_event_day,
        "confidence_score": prediction.confidence_score,
        "factors": [
            {
                "name": factor.name,
                "impact": factor.impact,
                "description": factor.description,
            }
            for factor in prediction.factors
        ],
        "adjusted_preparation_level": prediction.adjusted_preparation_level,
        "waste_reduction": prediction.waste_reduction,
    }


def _parse_user(row: Row) -> User:
    return User(
        id=UUID(str(row["id"])),
        name=str(row["name"]),
        email=str(row["email"]),
        role=UserRole(row.get("role") or UserRole.STUDENT),
        cq_score=float(row.get("cq_score") or 0.0),
        leaderboard_rank=_optional_int(row.get("leaderboard_rank")),
        is_active=bool(row.get("is_active", True)),
        meals_saved=int(row.get("meals_saved") or 0),
        meals_swapped=int(row.get("meals_swapped") or 0),
        meals_distributed=int(row.get("meals_distributed") or 0),
        profile_image_url=row.get("profile_image_url"),
        created_at=datetime.fromisoformat(str(row["created_at"])),
    )


def _parse_meal(row: Row) -> Meal:
    return Meal(
        id=UUID(str(row["id"])),
        name=str(row["name"]),
        description=str(row.get("description") or ""),
        type=MealType(row["type"]),
        status=MealStatus(row["status"]),
        date=datetime.fromisoformat(str(row["date"])),
        location=str(row["location"]),
        image_url=row.get("image_url"),
        nutrition=_parse_nutrition(row),
        offered_by=_optional_uuid(row.get("offered_by")),
        claimed_by=_optional_uuid(row.get("claimed_by")),
        offer_expiry_time=_optional_datetime(row.get("offer_expiry_time")),
        claim_deadline_time=_optional_datetime(row.get("claim_deadline_time")),
        actually_consumed=row.get("actually_consumed"),
        feedback_provided=bool(row.get("is_feedback_provided", False)),
    )


def _parse_nutrition(row: Row) -> NutritionInfo | None:
    columns = ("calories", "protein", "carbs", "fat")
    if all(row.get(column) is None for column in columns):
        return None
    return NutritionInfo(
        calories=int(row.get("calories") or 0),
        protein=float(row.get("protein") or 0.0),
        carbs=float(row.get("carbs") or 0.0),
        fat=float(row.get("fat") or 0.0),
        allergens=list(row.get("allergens") or []),
        dietary_info=list(row.get("dietary_info") or []),
    )


def _parse_swap(row: Row) -> MealSwap:
    points = row.get("cq_points_earned")
    return MealSwap(
        id=UUID(str(row["id"])),
        meal_id=UUID(str(row["meal_id"])),
        offered_by=UUID(str(row["offered_by"])),
        offered_at=datetime.fromisoformat(str(row["offered_at"])),
        expires_at=datetime.fromisoformat(str(row["expires_at"])),
        status=SwapStatus(row["status"]),
        claimed_by=_optional_uuid(row.get("claimed_by")),
        claimed_at=_optional_datetime(row.get("claimed_at")),
        cq_points_earned=float(points) if points is not None else None,
    )


def _parse_prediction(row: Row) -> MealPrediction:
    return MealPrediction(
        id=UUID(str(row["id"])),
        date=datetime.fromisoformat(str(row["date"])),
        meal_type=MealType(row["meal_type"]),
        location=str(row["location"]),
        predicted_attendance=int(row["predicted_attendance"]),
        confidence_score=float(row["confidence_score"]),
        actual_attendance=_optional_int(row.get("actual_attendance")),
        weather_condition=row.get("weather_condition"),
        is_exam_day=bool(row.get("is_exam_day", False)),
        is_holiday=bool(row.get("is_holiday", False)),
        is_event_day=bool(row.get("is_event_day", False)),
        factors=[
            PredictionFactor(
                name=str(factor["name"]),
                impact=float(factor["impact"]),
                description=str(factor.get("description", "")),
            )
            for factor in row.get("factors") or []
        ],
        adjusted_preparation_level=_optional_int(row.get("adjusted_preparation_level")),
        waste_reduction=_optional_int(row.get("waste_reduction")),
    )


def _encode_optional(value: object) -> object:
    return encode_value(value) if value is not None else None


def _optional_uuid(value: object) -> UUID | None:
    if value is None or value == "":
        return None
    return UUID(str(value))


def _optional_datetime(value: object) -> datetime | None:
    if value is None or value == "":
        return None
    return datetime.fromisoformat(str(value))


def _optional_int(value: object) -> int | None:
    if value is None:
        return None
    return int(value)
