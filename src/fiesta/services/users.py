"""Member registration and profile edits."""

from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from uuid import UUID, uuid4

from fiesta.domain.errors import EmailAlreadyRegisteredError, UserNotFoundError
from fiesta.domain.models import User, UserRole
from fiesta.services.locks import KeyedLocks
from fiesta.services.sync import EntityChange, SyncCoordinator


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class UserService:
    """Application service for member lifecycle actions."""

    coordinator: SyncCoordinator
    locks: KeyedLocks = field(default_factory=KeyedLocks)
    clock: Callable[[], datetime] = _utcnow

    async def register(
        self, name: str, email: str, role: UserRole = UserRole.STUDENT
    ) -> User:
        """Create a member with a unique, case-insensitive email."""
        normalized = email.strip().lower()
        async with self.locks.hold(f"email:{normalized}"):
            if await self.coordinator.find_user_by_email(normalized) is not None:
                raise EmailAlreadyRegisteredError(f"{normalized} is already registered")
            user = User(
                id=uuid4(),
                name=name.strip(),
                email=normalized,
                role=role,
                created_at=self.clock(),
            )
            await self.coordinator.commit([EntityChange(user)], acting_user_id=user.id)
        return user

    async def update_profile(
        self,
        user: User,
        name: str | None = None,
        profile_image_url: str | None = None,
    ) -> User:
        """Apply an explicit profile edit."""
        async with self.locks.hold(user.id):
            current = await self._require(user)
            updated = replace(
                current,
                name=name.strip() if name else current.name,
                profile_image_url=profile_image_url or current.profile_image_url,
            )
            await self.coordinator.commit(
                [EntityChange(updated, restore=current)], acting_user_id=current.id
            )
        return updated

    async def deactivate(self, user: User) -> User:
        """Deactivate a member; users are never deleted."""
        async with self.locks.hold(user.id):
            current = await self._require(user)
            updated = replace(current, is_active=False)
            await self.coordinator.commit(
                [EntityChange(updated, restore=current)],
                acting_user_id=self._acting_id(),
            )
        return updated

    async def _require(self, user: User) -> User:
        stored = await self.coordinator.get_user(user.id)
        if stored is None:
            raise UserNotFoundError(f"User {user.id} not found")
        return stored

    def _acting_id(self) -> UUID | None:
        current = self.coordinator.snapshot.current_user
        return current.id if current else None
