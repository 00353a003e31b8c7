"""Entity kinds held by the exchange stores."""

from enum import Enum

from fiesta.domain.meals import Meal
from fiesta.domain.models import User
from fiesta.domain.predictions import MealPrediction
from fiesta.domain.swaps import MealSwap

Entity = User | Meal | MealSwap | MealPrediction


class EntityKind(Enum):
    """Collections persisted by a store, with their table and document names."""

    USER = ("users", User)
    MEAL = ("meals", Meal)
    SWAP = ("meal_swaps", MealSwap)
    PREDICTION = ("meal_predictions", MealPrediction)

    def __init__(self, collection: str, entity_type: type) -> None:
        self.collection = collection
        self.entity_type = entity_type


def kind_of(entity: Entity) -> EntityKind:
    """Return the collection kind for an entity value."""
    for kind in EntityKind:
        if isinstance(entity, kind.entity_type):
            return kind
    raise TypeError(f"Unsupported entity type: {type(entity).__name__}")
