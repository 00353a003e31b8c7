"""Pydantic request models for the HTTP API."""

from datetime import datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from fiesta.domain.meals import Meal, MealType, NutritionInfo
from fiesta.domain.models import UserRole
from fiesta.domain.predictions import MealPrediction, PredictionFactor


class SessionStart(BaseModel):
    """Identity resolved by the external auth provider."""

    user_id: UUID


class UserCreate(BaseModel):
    """Registration payload."""

    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    role: UserRole = UserRole.STUDENT


class ProfileUpdate(BaseModel):
    """Explicit profile edit."""

    name: str | None = None
    profile_image_url: str | None = None


class ConsumptionConfirm(BaseModel):
    """Consumption feedback for a claimed meal."""

    was_consumed: bool


class NutritionPayload(BaseModel):
    """Nutrition facts for a listed meal."""

    calories: int = Field(ge=0)
    protein: float = Field(ge=0)
    carbs: float = Field(ge=0)
    fat: float = Field(ge=0)
    allergens: list[str] = Field(default_factory=list)
    dietary_info: list[str] = Field(default_factory=list)


class MealCreate(BaseModel):
    """A surplus meal listed by cafeteria staff."""

    name: str = Field(min_length=1)
    description: str = ""
    type: MealType
    date: datetime
    location: str = Field(min_length=1)
    image_url: str | None = None
    nutrition: NutritionPayload | None = None

    def to_meal(self) -> Meal:
        """Build a new available meal."""
        nutrition = None
        if self.nutrition is not None:
            nutrition = NutritionInfo(**self.nutrition.model_dump())
        return Meal(
            id=uuid4(),
            name=self.name,
            description=self.description,
            type=self.type,
            date=self.date,
            location=self.location,
            image_url=self.image_url,
            nutrition=nutrition,
        )


class PredictionFactorPayload(BaseModel):
    """One named influence on a forecast."""

    name: str
    impact: float = Field(ge=-1.0, le=1.0)
    description: str = ""


class PredictionCreate(BaseModel):
    """A forecast produced by the prediction collaborator."""

    id: UUID | None = None
    date: datetime
    meal_type: MealType
    location: str
    predicted_attendance: int = Field(ge=0)
    confidence_score: float = Field(ge=0.0, le=1.0)
    actual_attendance: int | None = None
    weather_condition: str | None = None
    is_exam_day: bool = False
    is_holiday: bool = False
    is_event_day: bool = False
    factors: list[PredictionFactorPayload] = Field(default_factory=list)
    adjusted_preparation_level: int | None = None
    waste_reduction: int | None = None

    def to_prediction(self) -> MealPrediction:
        """Build the domain forecast."""
        fields = self.model_dump(exclude={"id", "factors"})
        return MealPrediction(
            id=self.id or uuid4(),
            factors=[
                PredictionFactor(factor.name, factor.impact, factor.description)
                for factor in self.factors
            ],
            **fields,
        )
