"""Meal exchange lifecycle: offer, claim and consumption confirmation."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from uuid import uuid4

from fiesta.domain.errors import (
    AlreadyFeedbackProvidedError,
    ClaimExpiredError,
    InvalidStateError,
    MealNotFoundError,
    NotAuthenticatedError,
    OfferExpiredError,
    SelfClaimError,
    SwapRecordMissingError,
)
from fiesta.domain.meals import Meal, MealStatus
from fiesta.domain.models import User
from fiesta.domain.swaps import MealSwap, SwapStatus
from fiesta.services.locks import KeyedLocks
from fiesta.services.sync import EntityChange, SyncCoordinator

OFFER_WINDOW = timedelta(hours=1)
CLAIM_WINDOW = timedelta(minutes=30)
OFFER_POINTS = 1.0
CLAIM_POINTS = 0.5
CONSUMPTION_POINTS = 0.5
SWAP_COMPLETION_POINTS = 1.0

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(frozen=True)
class TransitionResult:
    """Entities produced by a lifecycle transition."""

    meal: Meal
    user: User | None = None
    swap: MealSwap | None = None


@dataclass
class LifecycleEngine:
    """Applies the meal state machine and its scoring side effects.

    Transitions on the same meal (and the same acting user) are serialized;
    each one re-reads the stored meal and user before validating, so callers
    may pass stale values.
    """

    coordinator: SyncCoordinator
    clock: Callable[[], datetime] = _utcnow
    locks: KeyedLocks = field(default_factory=KeyedLocks)

    async def publish(self, meal: Meal) -> Meal:
        """List a new surplus meal as available."""
        if (
            meal.status is not MealStatus.AVAILABLE
            or meal.offer_expiry_time is not None
            or meal.feedback_provided
        ):
            raise InvalidStateError("Only fresh available meals can be listed")
        async with self.locks.hold(meal.id):
            if await self.coordinator.get_meal(meal.id) is not None:
                raise InvalidStateError(f"Meal {meal.id} is already listed")
            current_user = self.coordinator.snapshot.current_user
            await self.coordinator.commit(
                [EntityChange(meal)],
                acting_user_id=current_user.id if current_user else None,
            )
        return meal

    async def offer(self, meal: Meal, acting_user: User | None) -> TransitionResult:
        """Offer an available meal for exchange."""
        actor = _require_user(acting_user)
        async with self.locks.hold(meal.id, actor.id):
            current = await self._current_meal(meal)
            user = await self._current_user(actor)
            if current.status is not MealStatus.AVAILABLE:
                raise InvalidStateError(
                    f"Meal {current.id} is {current.status}, expected available"
                )
            now = self.clock()
            expires_at = now + OFFER_WINDOW
            offered = replace(
                current,
                status=MealStatus.OFFERED,
                offered_by=user.id,
                offer_expiry_time=expires_at,
            )
            swap = MealSwap(
                id=uuid4(),
                meal_id=current.id,
                offered_by=user.id,
                offered_at=now,
                expires_at=expires_at,
            )
            rewarded = replace(
                user,
                cq_score=user.cq_score + OFFER_POINTS,
                meals_saved=user.meals_saved + 1,
                meals_swapped=user.meals_swapped + 1,
            )
            stray = [
                EntityChange(replace(pending, status=SwapStatus.EXPIRED), restore=pending)
                for pending in await self.coordinator.pending_swaps(current.id)
            ]
            await self.coordinator.commit(
                [
                    EntityChange(offered, restore=current),
                    *stray,
                    EntityChange(swap, restore=replace(swap, status=SwapStatus.EXPIRED)),
                    EntityChange(rewarded, restore=user),
                ],
                acting_user_id=user.id,
            )
        _logger.info("Meal %s offered by %s", offered.id, user.id)
        return TransitionResult(meal=offered, user=rewarded, swap=swap)

    async def claim(self, meal: Meal, acting_user: User | None) -> TransitionResult:
        """Claim a meal another member offered."""
        actor = _require_user(acting_user)
        async with self.locks.hold(meal.id, actor.id):
            current = await self._current_meal(meal)
            user = await self._current_user(actor)
            if current.status is not MealStatus.OFFERED:
                raise InvalidStateError(
                    f"Meal {current.id} is {current.status}, expected offered"
                )
            if current.offered_by == user.id:
                raise SelfClaimError(f"User {user.id} offered meal {current.id}")
            now = self.clock()
            if current.offer_expiry_time is not None and now >= current.offer_expiry_time:
                raise OfferExpiredError(
                    f"Offer for meal {current.id} expired at "
                    f"{current.offer_expiry_time.isoformat()}"
                )
            swap = _matching_swap(
                await self.coordinator.pending_swaps(current.id), current
            )
            if swap is None:
                _logger.error("Offered meal %s has no pending swap record", current.id)
                raise SwapRecordMissingError(
                    f"No pending swap found for meal {current.id}"
                )
            claimed = replace(
                current,
                status=MealStatus.CLAIMED,
                claimed_by=user.id,
                claim_deadline_time=now + CLAIM_WINDOW,
            )
            completed = replace(
                swap,
                status=SwapStatus.COMPLETED,
                claimed_by=user.id,
                claimed_at=now,
                cq_points_earned=SWAP_COMPLETION_POINTS,
            )
            rewarded = replace(
                user,
                cq_score=user.cq_score + CLAIM_POINTS,
                meals_distributed=user.meals_distributed + 1,
            )
            await self.coordinator.commit(
                [
                    EntityChange(claimed, restore=current),
                    EntityChange(completed, restore=swap),
                    EntityChange(rewarded, restore=user),
                ],
                acting_user_id=user.id,
            )
        _logger.info("Meal %s claimed by %s", claimed.id, user.id)
        return TransitionResult(meal=claimed, user=rewarded, swap=completed)

    async def confirm_consumption(
        self, meal: Meal, was_consumed: bool, acting_user: User | None
    ) -> TransitionResult:
        """Record whether a claimed meal was actually eaten.

        Feedback is accepted once; a second confirmation raises
        AlreadyFeedbackProvidedError.
        """
        actor = _require_user(acting_user)
        async with self.locks.hold(meal.id, actor.id):
            current = await self._current_meal(meal)
            user = await self._current_user(actor)
            if current.feedback_provided:
                raise AlreadyFeedbackProvidedError(
                    f"Feedback already recorded for meal {current.id}"
                )
            if current.status is not MealStatus.CLAIMED:
                raise InvalidStateError(
                    f"Meal {current.id} is {current.status}, expected claimed"
                )
            deadline = current.claim_deadline_time
            if was_consumed and deadline is not None and self.clock() > deadline:
                raise ClaimExpiredError(
                    f"Claim on meal {current.id} lapsed at {deadline.isoformat()}"
                )
            confirmed = replace(
                current,
                status=MealStatus.CONSUMED if was_consumed else MealStatus.UNCLAIMED,
                actually_consumed=was_consumed,
                feedback_provided=True,
            )
            changes = [EntityChange(confirmed, restore=current)]
            updated_user = user
            if was_consumed:
                updated_user = replace(user, cq_score=user.cq_score + CONSUMPTION_POINTS)
                changes.append(EntityChange(updated_user, restore=user))
            await self.coordinator.commit(changes, acting_user_id=user.id)
        return TransitionResult(meal=confirmed, user=updated_user)

    async def _current_meal(self, meal: Meal) -> Meal:
        stored = await self.coordinator.get_meal(meal.id)
        if stored is None:
            raise MealNotFoundError(f"Meal {meal.id} is not listed")
        return stored

    async def _current_user(self, user: User) -> User:
        stored = await self.coordinator.get_user(user.id) or user
        if not stored.is_active:
            raise NotAuthenticatedError(f"User {stored.id} is deactivated")
        return stored


def _require_user(user: User | None) -> User:
    if user is None:
        raise NotAuthenticatedError("No signed-in user")
    return user


def _matching_swap(swaps: list[MealSwap], meal: Meal) -> MealSwap | None:
    candidates = [swap for swap in swaps if swap.offered_by == meal.offered_by]
    if not candidates:
        return None
    return max(candidates, key=lambda swap: swap.offered_at)
