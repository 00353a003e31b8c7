"""Store strategy contract and the synchronization coordinator."""

import asyncio
import logging
from collections.abc import Awaitable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Protocol, TypeVar
from uuid import UUID

from fiesta.domain.entities import Entity, EntityKind, kind_of
from fiesta.domain.errors import StoreUnavailableError
from fiesta.domain.meals import Meal, MealStatus
from fiesta.domain.models import User
from fiesta.domain.predictions import MealPrediction
from fiesta.domain.swaps import MealSwap, SwapStatus

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class ExchangeStore(Protocol):
    """Persistence strategy for exchange entities.

    Implementations raise StoreUnavailableError when the backing store
    cannot be reached.
    """

    mode: str

    async def fetch_all(
        self, kind: EntityKind, filters: Mapping[str, object] | None = None
    ) -> list[Entity]:
        """Return entities of a kind whose row columns equal the filters."""

    async def upsert(self, entity: Entity) -> None:
        """Insert or replace an entity by id."""


@dataclass(frozen=True)
class EntityChange:
    """One write in a change set, with the value that undoes it."""

    updated: Entity
    restore: Entity | None = None


@dataclass(frozen=True)
class ExchangeSnapshot:
    """Read-only view of the acting user's exchange context."""

    current_user: User | None = None
    available_meals: tuple[Meal, ...] = ()
    offered_meals: tuple[Meal, ...] = ()
    claimed_meals: tuple[Meal, ...] = ()
    swaps: tuple[MealSwap, ...] = ()
    predictions: tuple[MealPrediction, ...] = ()
    leaderboard: tuple[User, ...] = ()


@dataclass
class SyncCoordinator:
    """Routes writes through the active store and owns the in-memory snapshot."""

    store: ExchangeStore
    timeout_seconds: float = 10.0
    is_loading: bool = False
    is_stale: bool = False
    _snapshot: ExchangeSnapshot = field(default_factory=ExchangeSnapshot)
    _in_flight: set[asyncio.Future] = field(default_factory=set)

    @property
    def mode(self) -> str:
        """Return the active store mode (remote or local)."""
        return self.store.mode

    @property
    def snapshot(self) -> ExchangeSnapshot:
        """Return the current snapshot."""
        return self._snapshot

    async def commit(
        self, changes: Sequence[EntityChange], acting_user_id: UUID | None
    ) -> ExchangeSnapshot:
        """Write a change set in order, then refresh the acting user's context.

        On failure every entity already written is restored, the snapshot is
        left untouched and StoreUnavailableError is raised.
        """
        self.is_loading = True
        written: list[EntityChange] = []
        try:
            try:
                for change in changes:
                    # a timed-out write may still land, so it is restored too
                    written.append(change)
                    await self._call(
                        f"upsert {kind_of(change.updated).collection}",
                        self.store.upsert(change.updated),
                    )
            except (StoreUnavailableError, asyncio.CancelledError):
                await asyncio.shield(self._rollback(written))
                raise
            try:
                return await self._refresh(acting_user_id)
            except StoreUnavailableError:
                _logger.warning("Refresh after a successful write failed")
                self.is_stale = True
                return self._snapshot
        finally:
            self.is_loading = False

    async def refresh(self, user_id: UUID | None) -> ExchangeSnapshot:
        """Re-query the store and replace the snapshot for a user."""
        self.is_loading = True
        try:
            return await self._refresh(user_id)
        finally:
            self.is_loading = False

    def clear_user_context(self) -> ExchangeSnapshot:
        """Drop the per-user lists while keeping shared listings."""
        current = self._snapshot
        self._snapshot = ExchangeSnapshot(
            available_meals=current.available_meals,
            predictions=current.predictions,
            leaderboard=current.leaderboard,
        )
        return self._snapshot

    async def get_meal(self, meal_id: UUID) -> Meal | None:
        """Return the stored meal for an id."""
        meals = await self._fetch(EntityKind.MEAL, {"id": meal_id})
        return meals[0] if meals else None

    async def get_user(self, user_id: UUID) -> User | None:
        """Return the stored user for an id."""
        users = await self._fetch(EntityKind.USER, {"id": user_id})
        return users[0] if users else None

    async def find_user_by_email(self, email: str) -> User | None:
        """Return the user with a case-insensitively matching email."""
        wanted = email.strip().lower()
        for user in await self.list_users():
            if user.email.lower() == wanted:
                return user
        return None

    async def list_users(self) -> list[User]:
        """Return all users in store order."""
        return await self._fetch(EntityKind.USER)

    async def pending_swaps(self, meal_id: UUID) -> list[MealSwap]:
        """Return pending swaps recorded for a meal."""
        return await self._fetch(
            EntityKind.SWAP, {"meal_id": meal_id, "status": SwapStatus.PENDING}
        )

    async def list_predictions(self) -> list[MealPrediction]:
        """Return all stored predictions."""
        return await self._fetch(EntityKind.PREDICTION)

    async def _refresh(self, user_id: UUID | None) -> ExchangeSnapshot:
        meals = await self._fetch(EntityKind.MEAL)
        users = await self._fetch(EntityKind.USER)
        predictions = await self._fetch(EntityKind.PREDICTION)
        swaps: list[MealSwap] = []
        if user_id is not None:
            offered = await self._fetch(EntityKind.SWAP, {"offered_by": user_id})
            claimed = await self._fetch(EntityKind.SWAP, {"claimed_by": user_id})
            swaps = list({swap.id: swap for swap in [*offered, *claimed]}.values())
        current_user = next((user for user in users if user.id == user_id), None)
        snapshot = ExchangeSnapshot(
            current_user=current_user,
            available_meals=tuple(
                meal for meal in meals if meal.status is MealStatus.AVAILABLE
            ),
            offered_meals=tuple(
                meal
                for meal in meals
                if meal.status is MealStatus.OFFERED and meal.offered_by == user_id
            ),
            claimed_meals=tuple(
                meal
                for meal in meals
                if meal.status is MealStatus.CLAIMED and meal.claimed_by == user_id
            ),
            swaps=tuple(swaps),
            predictions=tuple(predictions),
            leaderboard=tuple(rank_order(users)),
        )
        self._snapshot = snapshot
        self.is_stale = False
        return snapshot

    async def _fetch(
        self, kind: EntityKind, filters: Mapping[str, object] | None = None
    ) -> list:
        return await self._call(
            f"fetch {kind.collection}", self.store.fetch_all(kind, filters)
        )

    async def _call(self, action: str, awaitable: Awaitable[T]) -> T:
        task = asyncio.ensure_future(awaitable)
        try:
            done, _ = await asyncio.wait({task}, timeout=self.timeout_seconds)
        except asyncio.CancelledError:
            self._abandon(task)
            raise
        if not done:
            # the store call keeps running; rollback waits for it
            self._abandon(task)
            _logger.warning("Store %s timed out after %ss", action, self.timeout_seconds)
            raise StoreUnavailableError(f"{action} timed out")
        try:
            return task.result()
        except StoreUnavailableError:
            _logger.warning("Store %s failed", action)
            raise

    def _abandon(self, task: asyncio.Future) -> None:
        self._in_flight.add(task)
        task.add_done_callback(self._settle)

    def _settle(self, task: asyncio.Future) -> None:
        self._in_flight.discard(task)
        if not task.cancelled() and task.exception() is not None:
            _logger.warning("Abandoned store call failed: %s", task.exception())

    async def _drain(self) -> None:
        pending = set(self._in_flight)
        if not pending:
            return
        _, still_running = await asyncio.wait(pending, timeout=self.timeout_seconds)
        if still_running:
            _logger.error(
                "%s store calls still running before rollback", len(still_running)
            )

    async def _rollback(self, written: list[EntityChange]) -> None:
        await self._drain()
        for change in reversed(written):
            if change.restore is None:
                continue
            try:
                await self._call(
                    f"restore {kind_of(change.restore).collection}",
                    self.store.upsert(change.restore),
                )
            except StoreUnavailableError:
                _logger.exception(
                    "Failed to restore %s %s after an aborted write",
                    kind_of(change.restore).collection,
                    change.restore.id,
                )


def rank_order(users: Sequence[User]) -> list[User]:
    """Sort users by CQ score descending, ties kept in creation order."""
    return sorted(users, key=lambda user: (-user.cq_score, user.created_at))
