"""Tests for sessions, registration and the leaderboard."""

import asyncio
from dataclasses import replace
from uuid import uuid4

import pytest

from fiesta.domain.errors import (
    EmailAlreadyRegisteredError,
    NotAuthenticatedError,
    UserNotFoundError,
)
from fiesta.domain.entities import EntityKind
from fiesta.domain.models import UserRole
from fiesta.services.locks import KeyedLocks
from fiesta.services.seed import sample_users
from fiesta.services.sessions import SessionService
from fiesta.services.users import UserService
from tests.conftest import BASE_TIME, MemorySessionPointer, make_user


@pytest.fixture
def pointer() -> MemorySessionPointer:
    return MemorySessionPointer()


@pytest.fixture
def sessions(coordinator, pointer, clock) -> SessionService:
    locks = KeyedLocks()
    return SessionService(
        pointer=pointer,
        coordinator=coordinator,
        user_service=UserService(coordinator, locks=locks, clock=clock),
        locks=locks,
    )


def test_register_signs_in_and_normalizes_email(sessions, pointer, store) -> None:
    user = asyncio.run(sessions.register(" Dana ", "Dana@Test.COM"))

    assert user.email == "dana@test.com"
    assert user.name == "Dana"
    assert user.role is UserRole.STUDENT
    assert user.created_at == BASE_TIME
    assert user.leaderboard_rank == 1
    assert pointer.user_id == user.id
    assert sessions.is_authenticated
    assert store.get(user).leaderboard_rank == 1


def test_register_rejects_duplicate_email_in_any_case(sessions, store) -> None:
    store.put(make_user("Dana", email="dana@test.com"))

    with pytest.raises(EmailAlreadyRegisteredError):
        asyncio.run(sessions.register("Dana Again", "DANA@test.com"))


def test_restore_resolves_pointer(sessions, pointer, store) -> None:
    alice = make_user("Alice")
    store.put(alice)
    pointer.write(alice.id)

    restored = asyncio.run(sessions.restore())

    assert restored == alice
    assert sessions.current_user == alice


def test_restore_clears_unknown_pointer(sessions, pointer) -> None:
    pointer.write(uuid4())

    assert asyncio.run(sessions.restore()) is None
    assert pointer.user_id is None
    assert not sessions.is_authenticated


def test_restore_clears_pointer_of_deactivated_user(sessions, pointer, store) -> None:
    alice = make_user("Alice", is_active=False)
    store.put(alice)
    pointer.write(alice.id)

    assert asyncio.run(sessions.restore()) is None
    assert pointer.user_id is None
    assert sessions.current_user is None


def test_restore_clears_pointer_when_store_unreachable(
    sessions, pointer, store
) -> None:
    alice = make_user("Alice")
    store.put(alice)
    pointer.write(alice.id)
    store.fail_reads = True

    assert asyncio.run(sessions.restore()) is None
    assert pointer.user_id is None


def test_start_session_requires_known_active_user(sessions, store) -> None:
    inactive = make_user("Inactive", is_active=False)
    store.put(inactive)

    with pytest.raises(UserNotFoundError):
        asyncio.run(sessions.start_session(uuid4()))
    with pytest.raises(NotAuthenticatedError):
        asyncio.run(sessions.start_session(inactive.id))
    assert sessions.current_user is None


def test_end_session_clears_pointer_and_user(sessions, pointer, store) -> None:
    alice = make_user("Alice")
    store.put(alice)
    asyncio.run(sessions.start_session(alice.id))

    sessions.end_session()

    assert pointer.user_id is None
    assert sessions.current_user is None
    assert not sessions.is_authenticated


def test_edit_profile_requires_session(sessions) -> None:
    with pytest.raises(NotAuthenticatedError):
        asyncio.run(sessions.edit_profile(name="Nobody"))


def test_edit_profile_updates_current_user(sessions, store) -> None:
    alice = make_user("Alice")
    store.put(alice)
    asyncio.run(sessions.start_session(alice.id))

    updated = asyncio.run(
        sessions.edit_profile(name="Alice B", profile_image_url="avatar.png")
    )

    assert updated.name == "Alice B"
    assert sessions.current_user.profile_image_url == "avatar.png"
    assert store.get(alice).email == alice.email


def test_deactivating_current_user_ends_session(sessions, pointer, store) -> None:
    alice = make_user("Alice")
    store.put(alice)
    asyncio.run(sessions.start_session(alice.id))

    deactivated = asyncio.run(sessions.deactivate(alice.id))

    assert deactivated.is_active is False
    assert store.get(alice).is_active is False
    assert pointer.user_id is None
    assert sessions.current_user is None


def test_leaderboard_ranks_by_score(sessions, store) -> None:
    store.put(*reversed(sample_users(BASE_TIME)))

    ranked = asyncio.run(sessions.update_leaderboard())

    assert [user.cq_score for user in ranked] == [85.0, 72.5, 0.0, 0.0]
    assert [user.leaderboard_rank for user in ranked] == [1, 2, 3, 4]
    assert [user.name for user in ranked[2:]] == ["Cafeteria Staff", "Admin User"]
    stored_ranks = sorted(user.leaderboard_rank for user in store.all(EntityKind.USER))
    assert stored_ranks == [1, 2, 3, 4]


def test_leaderboard_update_is_idempotent(sessions, store) -> None:
    store.put(*sample_users(BASE_TIME))
    first = asyncio.run(sessions.update_leaderboard())
    writes = len(store.writes)

    second = asyncio.run(sessions.update_leaderboard())

    assert second == first
    assert len(store.writes) == writes


def test_leaderboard_only_rewrites_changed_ranks(sessions, store) -> None:
    users = sample_users(BASE_TIME)
    store.put(*users)
    asyncio.run(sessions.update_leaderboard())
    store.writes.clear()
    store.put(replace(store.get(users[3]), cq_score=10.0))

    ranked = asyncio.run(sessions.update_leaderboard())

    assert [user.name for user in ranked[2:]] == ["Admin User", "Cafeteria Staff"]
    assert {user.name for user in store.writes} == {"Admin User", "Cafeteria Staff"}
    assert [user.leaderboard_rank for user in ranked] == [1, 2, 3, 4]
