"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date
from uuid import UUID

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from fiesta.api.admin import router as admin_router
from fiesta.api.schemas import (
    ConsumptionConfirm,
    ProfileUpdate,
    SessionStart,
    UserCreate,
)
from fiesta.app_logging import configure_logging
from fiesta.containers import AppContainer
from fiesta.domain.errors import (
    AlreadyFeedbackProvidedError,
    ClaimExpiredError,
    EmailAlreadyRegisteredError,
    ExchangeError,
    InvalidStateError,
    MealNotFoundError,
    NotAuthenticatedError,
    OfferExpiredError,
    StoreUnavailableError,
    SwapRecordMissingError,
    UserNotFoundError,
)
from fiesta.domain.impact import calculate_impact, format_impact
from fiesta.domain.meals import Meal, MealType

_ERROR_STATUS: dict[type[ExchangeError], int] = {
    NotAuthenticatedError: status.HTTP_401_UNAUTHORIZED,
    UserNotFoundError: status.HTTP_404_NOT_FOUND,
    MealNotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidStateError: status.HTTP_409_CONFLICT,
    AlreadyFeedbackProvidedError: status.HTTP_409_CONFLICT,
    EmailAlreadyRegisteredError: status.HTTP_409_CONFLICT,
    OfferExpiredError: status.HTTP_410_GONE,
    ClaimExpiredError: status.HTTP_410_GONE,
    SwapRecordMissingError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    StoreUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def error_status(exc: ExchangeError) -> int:
    """Return the HTTP status for an exchange error, most specific class first."""
    for error_type in type(exc).__mro__:
        if error_type in _ERROR_STATUS:
            return _ERROR_STATUS[error_type]
    return status.HTTP_400_BAD_REQUEST


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            await app.state.container.startup()
        except Exception:
            logger.exception("Failed to load the exchange on startup")
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.exception_handler(ExchangeError)
    async def exchange_error_handler(
        request: Request, exc: ExchangeError
    ) -> JSONResponse:
        status_code = error_status(exc)
        if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc)
        return JSONResponse(
            status_code=status_code,
            content={"error": type(exc).__name__, "detail": str(exc)},
        )

    @app.get("/health")
    async def health() -> dict[str, object]:
        """Simple health check endpoint."""
        return {
            "status": "ok",
            "store": container.coordinator.mode,
            "stale": container.coordinator.is_stale,
        }

    @app.get("/session")
    async def current_session(request: Request) -> dict[str, object]:
        """Return the signed-in user, if any."""
        state_container: AppContainer = request.app.state.container
        sessions = state_container.session_service
        return {
            "authenticated": sessions.is_authenticated,
            "user": sessions.current_user,
        }

    @app.post("/session")
    async def start_session(
        payload: SessionStart, request: Request
    ) -> dict[str, object]:
        """Sign in a user whose identity was resolved upstream."""
        state_container: AppContainer = request.app.state.container
        user = await state_container.session_service.start_session(payload.user_id)
        return {"authenticated": True, "user": user}

    @app.delete("/session")
    async def end_session(request: Request) -> dict[str, object]:
        """Sign out the current user."""
        state_container: AppContainer = request.app.state.container
        state_container.session_service.end_session()
        return {"authenticated": False, "user": None}

    @app.post("/users", status_code=status.HTTP_201_CREATED)
    async def register(payload: UserCreate, request: Request) -> dict[str, object]:
        """Register a member and sign them in."""
        state_container: AppContainer = request.app.state.container
        user = await state_container.session_service.register(
            payload.name, payload.email, payload.role
        )
        return {"user": user}

    @app.patch("/me")
    async def edit_profile(
        payload: ProfileUpdate, request: Request
    ) -> dict[str, object]:
        """Edit the signed-in user's profile."""
        state_container: AppContainer = request.app.state.container
        user = await state_container.session_service.edit_profile(
            payload.name, payload.profile_image_url
        )
        return {"user": user}

    @app.get("/me/impact")
    async def impact(request: Request) -> dict[str, object]:
        """Return the environmental impact of the user's saved meals."""
        state_container: AppContainer = request.app.state.container
        user = state_container.session_service.current_user
        if user is None:
            raise NotAuthenticatedError("No signed-in user")
        summary = calculate_impact(user.meals_saved)
        return {
            "meals_saved": user.meals_saved,
            "impact": summary,
            "formatted": format_impact(summary),
        }

    @app.get("/meals")
    async def list_meals(request: Request) -> dict[str, object]:
        """Return the current exchange listings."""
        state_container: AppContainer = request.app.state.container
        snapshot = state_container.coordinator.snapshot
        return {
            "available": list(snapshot.available_meals),
            "offered": list(snapshot.offered_meals),
            "claimed": list(snapshot.claimed_meals),
            "swaps": list(snapshot.swaps),
            "loading": state_container.coordinator.is_loading,
        }

    @app.post("/meals/{meal_id}/offer")
    async def offer_meal(meal_id: UUID, request: Request) -> dict[str, object]:
        """Offer an available meal for exchange."""
        state_container: AppContainer = request.app.state.container
        meal = await _load_meal(state_container, meal_id)
        result = await state_container.lifecycle_engine.offer(
            meal, state_container.session_service.current_user
        )
        return {"meal": result.meal, "swap": result.swap, "user": result.user}

    @app.post("/meals/{meal_id}/claim")
    async def claim_meal(meal_id: UUID, request: Request) -> dict[str, object]:
        """Claim an offered meal."""
        state_container: AppContainer = request.app.state.container
        meal = await _load_meal(state_container, meal_id)
        result = await state_container.lifecycle_engine.claim(
            meal, state_container.session_service.current_user
        )
        return {"meal": result.meal, "swap": result.swap, "user": result.user}

    @app.post("/meals/{meal_id}/consumption")
    async def confirm_consumption(
        meal_id: UUID, payload: ConsumptionConfirm, request: Request
    ) -> dict[str, object]:
        """Record whether a claimed meal was eaten."""
        state_container: AppContainer = request.app.state.container
        meal = await _load_meal(state_container, meal_id)
        result = await state_container.lifecycle_engine.confirm_consumption(
            meal,
            payload.was_consumed,
            state_container.session_service.current_user,
        )
        return {"meal": result.meal, "user": result.user}

    @app.get("/leaderboard")
    async def leaderboard(request: Request) -> dict[str, object]:
        """Return users ordered by CQ score."""
        state_container: AppContainer = request.app.state.container
        return {"users": list(state_container.coordinator.snapshot.leaderboard)}

    @app.get("/predictions")
    async def predictions(
        request: Request,
        day: date | None = None,
        meal_type: MealType | None = None,
        location: str | None = None,
    ) -> dict[str, object]:
        """Return forecasts, or the one matching a day, meal type and location."""
        state_container: AppContainer = request.app.state.container
        if day is not None and meal_type is not None and location is not None:
            match = state_container.prediction_service.find(day, meal_type, location)
            return {"predictions": [match] if match else []}
        return {"predictions": list(state_container.coordinator.snapshot.predictions)}

    return app


async def _load_meal(container: AppContainer, meal_id: UUID) -> Meal:
    meal = await container.coordinator.get_meal(meal_id)
    if meal is None:
        raise MealNotFoundError(f"Meal {meal_id} not found")
    return meal
