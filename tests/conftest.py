"""Shared test fixtures."""

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from fiesta.adapters.rows import encode_value, from_row, to_row
from fiesta.config import Settings
from fiesta.containers import AppContainer, build_container
from fiesta.domain.entities import Entity, EntityKind, kind_of
from fiesta.domain.errors import StoreUnavailableError
from fiesta.domain.meals import Meal, MealStatus, MealType, NutritionInfo
from fiesta.domain.models import User, UserRole
from fiesta.services.lifecycle import LifecycleEngine
from fiesta.services.locks import KeyedLocks
from fiesta.services.sync import SyncCoordinator

BASE_TIME = datetime(2025, 3, 10, 12, 0, tzinfo=UTC)


@dataclass
class InMemoryExchangeStore:
    """Exchange store over row dictionaries, with failure injection."""

    mode: str = "remote"
    tables: dict[EntityKind, dict[str, dict[str, object]]] = field(
        default_factory=lambda: {kind: {} for kind in EntityKind}
    )
    fail_reads: bool = False
    fail_write_kinds: set[EntityKind] = field(default_factory=set)
    write_delay: float = 0.0
    writes: list[Entity] = field(default_factory=list)

    async def fetch_all(
        self, kind: EntityKind, filters: Mapping[str, object] | None = None
    ) -> list[Entity]:
        await asyncio.sleep(0)
        if self.fail_reads:
            raise StoreUnavailableError(f"read {kind.collection} failed")
        wanted = {key: encode_value(value) for key, value in (filters or {}).items()}
        return [
            from_row(kind, row)
            for row in self.tables[kind].values()
            if all(row.get(key) == value for key, value in wanted.items())
        ]

    async def upsert(self, entity: Entity) -> None:
        await asyncio.sleep(self.write_delay)
        kind = kind_of(entity)
        if kind in self.fail_write_kinds:
            raise StoreUnavailableError(f"write {kind.collection} failed")
        row = to_row(entity)
        self.tables[kind][str(row["id"])] = row
        self.writes.append(entity)

    def put(self, *entities: Entity) -> None:
        for entity in entities:
            row = to_row(entity)
            self.tables[kind_of(entity)][str(row["id"])] = row

    def get(self, entity: Entity) -> Entity | None:
        kind = kind_of(entity)
        row = self.tables[kind].get(str(entity.id))
        return from_row(kind, row) if row is not None else None

    def all(self, kind: EntityKind) -> list[Entity]:
        return [from_row(kind, row) for row in self.tables[kind].values()]


@dataclass
class MemorySessionPointer:
    """Session pointer kept in memory."""

    user_id: UUID | None = None

    def read(self) -> UUID | None:
        return self.user_id

    def write(self, user_id: UUID) -> None:
        self.user_id = user_id

    def clear(self) -> None:
        self.user_id = None


@dataclass
class FakeClock:
    """Controllable clock."""

    now: datetime = BASE_TIME

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


def make_user(name: str = "Student", cq_score: float = 0.0, **overrides) -> User:
    values: dict[str, object] = {
        "id": uuid4(),
        "name": name,
        "email": f"{name.lower().replace(' ', '.')}.{uuid4().hex[:6]}@test.com",
        "role": UserRole.STUDENT,
        "cq_score": cq_score,
        "created_at": BASE_TIME,
    }
    values.update(overrides)
    return User(**values)


def make_meal(**overrides) -> Meal:
    values: dict[str, object] = {
        "id": uuid4(),
        "name": "Vegetable Curry",
        "description": "Curry with rice",
        "type": MealType.LUNCH,
        "date": BASE_TIME,
        "location": "Main Cafeteria",
        "nutrition": NutritionInfo(450, 12.0, 65.0, 15.0, ["Nuts"], ["Vegetarian"]),
    }
    values.update(overrides)
    return Meal(**values)


def offered(meal: Meal, by: User, expires_at: datetime) -> Meal:
    return replace(
        meal,
        status=MealStatus.OFFERED,
        offered_by=by.id,
        offer_expiry_time=expires_at,
    )


@pytest.fixture
def store() -> InMemoryExchangeStore:
    return InMemoryExchangeStore()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def coordinator(store: InMemoryExchangeStore) -> SyncCoordinator:
    return SyncCoordinator(store, timeout_seconds=1.0)


@pytest.fixture
def engine(coordinator: SyncCoordinator, clock: FakeClock) -> LifecycleEngine:
    return LifecycleEngine(coordinator, clock=clock, locks=KeyedLocks())


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        admin_token="admin-token",
        local_store_dir=tmp_path / "store",
        session_pointer_path=tmp_path / "session.json",
        store_timeout_seconds=1.0,
    )


@pytest.fixture
def container(
    settings: Settings, store: InMemoryExchangeStore
) -> AppContainer:
    return build_container(settings, store=store, pointer=MemorySessionPointer())
