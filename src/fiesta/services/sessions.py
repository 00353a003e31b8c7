"""Current-user session and leaderboard maintenance."""

import logging
from dataclasses import dataclass, replace
from typing import Protocol
from uuid import UUID

from fiesta.domain.errors import (
    NotAuthenticatedError,
    StoreUnavailableError,
    UserNotFoundError,
)
from fiesta.domain.models import User, UserRole
from fiesta.services.locks import KeyedLocks
from fiesta.services.sync import EntityChange, SyncCoordinator, rank_order
from fiesta.services.users import UserService

_logger = logging.getLogger(__name__)


class SessionPointerStore(Protocol):
    """Persistence interface for the current-user pointer."""

    def read(self) -> UUID | None:
        """Return the persisted user id, if any."""

    def write(self, user_id: UUID) -> None:
        """Persist the current user id."""

    def clear(self) -> None:
        """Remove the persisted user id."""


@dataclass
class SessionService:
    """Keeps the acting user across restarts and ranks the leaderboard."""

    pointer: SessionPointerStore
    coordinator: SyncCoordinator
    user_service: UserService
    locks: KeyedLocks

    @property
    def current_user(self) -> User | None:
        """Return the signed-in user from the latest snapshot."""
        return self.coordinator.snapshot.current_user

    @property
    def is_authenticated(self) -> bool:
        """Return True when a user is signed in."""
        return self.current_user is not None

    async def restore(self) -> User | None:
        """Resolve the persisted pointer against the active store.

        A pointer that cannot be resolved is cleared rather than kept.
        """
        user_id = self.pointer.read()
        if user_id is None:
            return None
        try:
            snapshot = await self.coordinator.refresh(user_id)
        except StoreUnavailableError:
            _logger.warning("Store unreachable while restoring session %s", user_id)
            self.pointer.clear()
            return None
        user = snapshot.current_user
        if user is None or not user.is_active:
            _logger.info("Clearing stale session pointer for %s", user_id)
            self.pointer.clear()
            self.coordinator.clear_user_context()
            return None
        return user

    async def start_session(self, user_id: UUID) -> User:
        """Sign in an identity already resolved by the auth collaborator."""
        snapshot = await self.coordinator.refresh(user_id)
        user = snapshot.current_user
        if user is None:
            raise UserNotFoundError(f"User {user_id} not found")
        if not user.is_active:
            self.coordinator.clear_user_context()
            raise NotAuthenticatedError(f"User {user_id} is deactivated")
        self.pointer.write(user.id)
        return user

    def end_session(self) -> None:
        """Invalidate the current session."""
        self.pointer.clear()
        self.coordinator.clear_user_context()

    async def register(
        self, name: str, email: str, role: UserRole = UserRole.STUDENT
    ) -> User:
        """Register a member and sign them in."""
        user = await self.user_service.register(name, email, role)
        self.pointer.write(user.id)
        await self.update_leaderboard()
        return self.current_user or user

    async def edit_profile(
        self, name: str | None = None, profile_image_url: str | None = None
    ) -> User:
        """Edit the signed-in user's profile."""
        user = self.current_user
        if user is None:
            raise NotAuthenticatedError("No signed-in user")
        return await self.user_service.update_profile(user, name, profile_image_url)

    async def deactivate(self, user_id: UUID) -> User:
        """Deactivate a member, ending the session if it is theirs."""
        user = await self.coordinator.get_user(user_id)
        if user is None:
            raise UserNotFoundError(f"User {user_id} not found")
        updated = await self.user_service.deactivate(user)
        current = self.current_user
        if current is not None and current.id == user_id:
            _logger.info("Ending session of deactivated user %s", user_id)
            self.end_session()
        return updated

    async def update_leaderboard(self) -> list[User]:
        """Rank all users by CQ score and persist changed ranks."""
        locked = {user.id for user in await self.coordinator.list_users()}
        async with self.locks.hold(*locked):
            ranked = rank_order(await self.coordinator.list_users())
            leaderboard: list[User] = []
            changes: list[EntityChange] = []
            for rank, user in enumerate(ranked, start=1):
                # users registered after the locks were taken are ranked next run
                if user.leaderboard_rank == rank or user.id not in locked:
                    leaderboard.append(user)
                    continue
                updated = replace(user, leaderboard_rank=rank)
                changes.append(EntityChange(updated, restore=user))
                leaderboard.append(updated)
            if changes:
                current = self.current_user
                await self.coordinator.commit(
                    changes, acting_user_id=current.id if current else None
                )
        return leaderboard
