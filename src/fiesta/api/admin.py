"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from fiesta.api.schemas import MealCreate, PredictionCreate  # noqa: TC001

if TYPE_CHECKING:
    from fiesta.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health(request: Request) -> dict[str, object]:
    """Admin health check endpoint."""
    container: AppContainer = request.app.state.container
    return {"status": "ok", "store": container.coordinator.mode}


@router.post(
    "/meals",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def publish_meal(payload: MealCreate, request: Request) -> dict[str, object]:
    """List a surplus meal as available."""
    container: AppContainer = request.app.state.container
    meal = await container.lifecycle_engine.publish(payload.to_meal())
    return {"meal": meal}


@router.post("/predictions", dependencies=[Depends(require_admin)])
async def record_prediction(
    payload: PredictionCreate, request: Request
) -> dict[str, object]:
    """Store a forecast from the prediction collaborator."""
    container: AppContainer = request.app.state.container
    prediction = await container.prediction_service.record(payload.to_prediction())
    return {"prediction": prediction}


@router.post("/leaderboard/refresh", dependencies=[Depends(require_admin)])
async def refresh_leaderboard(request: Request) -> dict[str, object]:
    """Recompute and persist leaderboard ranks."""
    container: AppContainer = request.app.state.container
    return {"users": await container.session_service.update_leaderboard()}


@router.post("/users/{user_id}/deactivate", dependencies=[Depends(require_admin)])
async def deactivate_user(user_id: UUID, request: Request) -> dict[str, object]:
    """Deactivate a member."""
    container: AppContainer = request.app.state.container
    return {"user": await container.session_service.deactivate(user_id)}
