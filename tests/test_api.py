"""Tests for the HTTP API."""

from uuid import uuid4

from fastapi.testclient import TestClient

from fiesta.api.app import create_app
from fiesta.domain.entities import EntityKind
from tests.conftest import make_meal, make_user

ADMIN = {"X-Admin-Token": "admin-token"}

MEAL_PAYLOAD = {
    "name": "Vegetable Curry",
    "description": "Curry with rice",
    "type": "lunch",
    "date": "2025-03-10T12:00:00+00:00",
    "location": "Main Cafeteria",
    "nutrition": {"calories": 450, "protein": 12, "carbs": 65, "fat": 15},
}


def _register(client: TestClient, name: str) -> dict:
    response = client.post(
        "/users", json={"name": name, "email": f"{name.lower()}@test.com"}
    )
    assert response.status_code == 201
    return response.json()["user"]


def test_health(container) -> None:
    with TestClient(create_app(container)) as client:
        response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "store": "remote", "stale": False}


def test_register_and_session(container) -> None:
    with TestClient(create_app(container)) as client:
        user = _register(client, "Alice")
        session = client.get("/session").json()
        duplicate = client.post(
            "/users", json={"name": "Alice", "email": "ALICE@test.com"}
        )
        ended = client.delete("/session")
        after = client.get("/session").json()

    assert user["email"] == "alice@test.com"
    assert user["leaderboard_rank"] == 1
    assert session["authenticated"] is True
    assert session["user"]["id"] == user["id"]
    assert duplicate.status_code == 409
    assert duplicate.json()["error"] == "EmailAlreadyRegisteredError"
    assert ended.status_code == 200
    assert after == {"authenticated": False, "user": None}


def test_exchange_flow(container) -> None:
    with TestClient(create_app(container)) as client:
        alice = _register(client, "Alice")
        published = client.post("/admin/meals", json=MEAL_PAYLOAD, headers=ADMIN)
        meal_id = published.json()["meal"]["id"]
        listing = client.get("/meals").json()
        offer = client.post(f"/meals/{meal_id}/offer")
        self_claim = client.post(f"/meals/{meal_id}/claim")
        impact = client.get("/me/impact").json()
        _register(client, "Bob")
        claim = client.post(f"/meals/{meal_id}/claim")
        confirm = client.post(
            f"/meals/{meal_id}/consumption", json={"was_consumed": True}
        )
        again = client.post(
            f"/meals/{meal_id}/consumption", json={"was_consumed": True}
        )
        leaderboard = client.get("/leaderboard").json()

    assert published.status_code == 201
    assert published.json()["meal"]["status"] == "available"
    assert [meal["id"] for meal in listing["available"]] == [meal_id]
    assert offer.status_code == 200
    assert offer.json()["meal"]["status"] == "offered"
    assert offer.json()["swap"]["status"] == "pending"
    assert offer.json()["user"]["cq_score"] == 1.0
    assert self_claim.status_code == 409
    assert impact["meals_saved"] == 1
    assert impact["formatted"] == {
        "co2": "2.5 kg",
        "water": "100 L",
        "energy": "3.0 kWh",
    }
    assert claim.status_code == 200
    assert claim.json()["meal"]["claimed_by"] != alice["id"]
    assert claim.json()["swap"]["cq_points_earned"] == 1.0
    assert confirm.status_code == 200
    assert confirm.json()["meal"]["status"] == "consumed"
    assert confirm.json()["user"]["cq_score"] == 1.0
    assert again.status_code == 409
    assert [user["name"] for user in leaderboard["users"]] == ["Alice", "Bob"]


def test_transitions_require_session(container, store) -> None:
    meal = make_meal()
    store.put(meal)

    with TestClient(create_app(container)) as client:
        response = client.post(f"/meals/{meal.id}/offer")

    assert response.status_code == 401


def test_unknown_meal_is_not_found(container) -> None:
    with TestClient(create_app(container)) as client:
        _register(client, "Alice")
        response = client.post(f"/meals/{uuid4()}/offer")

    assert response.status_code == 404


def test_claim_without_swap_record_reports_integrity_fault(
    container, store
) -> None:
    alice = make_user("Alice")
    meal = make_meal()
    store.put(alice, meal)

    with TestClient(create_app(container)) as client:
        client.post("/session", json={"user_id": str(alice.id)})
        client.post(f"/meals/{meal.id}/offer")
        store.tables[EntityKind.SWAP].clear()
        bob = make_user("Bob")
        store.put(bob)
        client.post("/session", json={"user_id": str(bob.id)})
        response = client.post(f"/meals/{meal.id}/claim")

    assert response.status_code == 500
    assert response.json()["error"] == "SwapRecordMissingError"


def test_store_outage_is_service_unavailable(container, store) -> None:
    with TestClient(create_app(container)) as client:
        store.fail_reads = True
        response = client.post("/session", json={"user_id": str(uuid4())})

    assert response.status_code == 503


def test_admin_requires_token(container) -> None:
    with TestClient(create_app(container)) as client:
        missing = client.post("/admin/meals", json=MEAL_PAYLOAD)
        wrong = client.post(
            "/admin/meals", json=MEAL_PAYLOAD, headers={"X-Admin-Token": "nope"}
        )

    assert missing.status_code == 401
    assert wrong.status_code == 401


def test_predictions_are_recorded_and_looked_up(container) -> None:
    payload = {
        "date": "2025-03-10T11:00:00+00:00",
        "meal_type": "lunch",
        "location": "Main Cafeteria",
        "predicted_attendance": 250,
        "confidence_score": 0.85,
        "weather_condition": "Sunny",
        "factors": [{"name": "Weather", "impact": 0.2}],
    }

    with TestClient(create_app(container)) as client:
        recorded = client.post("/admin/predictions", json=payload, headers=ADMIN)
        everything = client.get("/predictions").json()
        match = client.get(
            "/predictions",
            params={
                "day": "2025-03-10",
                "meal_type": "lunch",
                "location": "Main Cafeteria",
            },
        ).json()
        miss = client.get(
            "/predictions",
            params={
                "day": "2025-03-11",
                "meal_type": "lunch",
                "location": "Main Cafeteria",
            },
        ).json()

    assert recorded.status_code == 200
    assert len(everything["predictions"]) == 1
    assert match["predictions"][0]["predicted_attendance"] == 250
    assert match["predictions"][0]["factors"][0]["name"] == "Weather"
    assert miss == {"predictions": []}


def test_admin_deactivates_user(container, store) -> None:
    alice = make_user("Alice")
    store.put(alice)

    with TestClient(create_app(container)) as client:
        client.post("/session", json={"user_id": str(alice.id)})
        response = client.post(f"/admin/users/{alice.id}/deactivate", headers=ADMIN)
        session = client.get("/session").json()
        rejoin = client.post("/session", json={"user_id": str(alice.id)})

    assert response.json()["user"]["is_active"] is False
    assert session["authenticated"] is False
    assert rejoin.status_code == 401
