"""Storage and lookup of precomputed attendance predictions."""

from dataclasses import dataclass
from datetime import date

from fiesta.domain.meals import MealType
from fiesta.domain.predictions import MealPrediction
from fiesta.services.sync import EntityChange, SyncCoordinator


@dataclass
class PredictionService:
    """Keeps forecasts supplied by the external prediction collaborator."""

    coordinator: SyncCoordinator

    async def record(self, prediction: MealPrediction) -> MealPrediction:
        """Store a forecast, replacing any previous value with the same id."""
        previous = next(
            (
                existing
                for existing in await self.coordinator.list_predictions()
                if existing.id == prediction.id
            ),
            None,
        )
        current_user = self.coordinator.snapshot.current_user
        await self.coordinator.commit(
            [EntityChange(prediction, restore=previous)],
            acting_user_id=current_user.id if current_user else None,
        )
        return prediction

    def find(
        self, day: date, meal_type: MealType, location: str
    ) -> MealPrediction | None:
        """Return the forecast for a day, meal slot and location."""
        for prediction in self.coordinator.snapshot.predictions:
            if (
                prediction.date.date() == day
                and prediction.meal_type is meal_type
                and prediction.location == location
            ):
                return prediction
        return None
