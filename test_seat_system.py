"""
HTTP-level tests for the seat booking service.
Covers request validation, status code mapping and end-to-end booking flows.
"""

import pytest

import app as app_module
from booking_orchestrator import BookingOrchestrator
from stress_test import check_status


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(app_module, "engine", BookingOrchestrator())
    app_module.app.config["TESTING"] = True
    with app_module.app.test_client() as client:
        yield client


def initialize(client, seat_count):
    return client.post("/initialize", json={"seat_count": seat_count})


def reserve(client, user_id, priority=1):
    return client.post("/reservations", json={"user_id": user_id, "priority": priority})


def verify_seat_invariant(client):
    status = client.get("/status").get_json()
    assert status["invariants_valid"], status["violations"]
    assert status["available_seats"] + status["reserved_seats"] == status["total_seats"]
    return status


# ============================================================================
# Validation
# ============================================================================

def test_initialize_requires_json_object(client):
    resp = client.post("/initialize", data="5", content_type="text/plain")
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "request body must be a JSON object"


@pytest.mark.parametrize("payload", [{}, {"seat_count": "5"}, {"seat_count": True}, {"seat_count": 2.5}])
def test_initialize_rejects_non_integer_count(client, payload):
    resp = client.post("/initialize", json=payload)
    assert resp.status_code == 400
    assert resp.get_json()["details"] == {"field": "seat_count"}


def test_initialize_rejects_non_positive_count(client):
    resp = initialize(client, 0)
    assert resp.status_code == 400
    assert resp.get_json()["outcome"] == "invalid_argument"


def test_release_rejects_inverted_range(client):
    initialize(client, 1)
    resp = client.post("/release", json={"lo": 9, "hi": 1})
    assert resp.status_code == 400


# ============================================================================
# Booking flows
# ============================================================================

def test_basic_booking(client):
    resp = initialize(client, 2)
    assert resp.status_code == 201
    assert resp.get_json() == {"outcome": "initialized", "seat_count": 2}

    resp = reserve(client, 1)
    assert resp.status_code == 201
    assert resp.get_json() == {"outcome": "reserved", "user_id": 1, "seat_id": 1}

    available = client.get("/available").get_json()
    assert available["available_seats"] == 1
    assert available["waitlist"] == 0
    verify_seat_invariant(client)


def test_duplicate_reservation_conflicts(client):
    initialize(client, 2)
    reserve(client, 1)
    resp = reserve(client, 1)
    assert resp.status_code == 409
    assert resp.get_json()["outcome"] == "duplicate_request"


def test_cancel_hands_seat_to_waiter(client):
    initialize(client, 2)
    reserve(client, 1)
    reserve(client, 2)
    assert reserve(client, 3, 5).get_json()["outcome"] == "waitlisted"

    resp = client.post("/reservations/cancel", json={"seat_id": 1, "user_id": 1})
    assert resp.status_code == 200
    assert resp.get_json()["reassigned"] == {"user_id": 3, "seat_id": 1}

    reservations = client.get("/reservations").get_json()["reservations"]
    assert reservations == [{"user_id": 3, "seat_id": 1}, {"user_id": 2, "seat_id": 2}]
    verify_seat_invariant(client)


def test_cancel_status_codes(client):
    initialize(client, 2)
    reserve(client, 1)

    assert client.post("/reservations/cancel", json={"seat_id": 1, "user_id": 5}).status_code == 404
    assert client.post("/reservations/cancel", json={"seat_id": 2, "user_id": 1}).status_code == 409


def test_add_seats_and_waitlist_management(client):
    initialize(client, 1)
    reserve(client, 1)
    reserve(client, 2, 3)
    reserve(client, 3, 9)
    reserve(client, 4, 1)

    waitlist = client.get("/waitlist").get_json()["waitlist"]
    assert [entry["user_id"] for entry in waitlist] == [3, 2, 4]

    resp = client.put("/waitlist/4/priority", json={"priority": 10})
    assert resp.status_code == 200
    assert client.put("/waitlist/99/priority", json={"priority": 1}).status_code == 404

    assert client.delete("/waitlist/2").status_code == 200
    assert client.delete("/waitlist/2").status_code == 404

    resp = client.post("/seats", json={"count": 3})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["total_seats"] == 4
    assert body["assignments"] == [{"user_id": 4, "seat_id": 2}, {"user_id": 3, "seat_id": 3}]

    status = verify_seat_invariant(client)
    assert status["available_seats"] == 1
    assert status["waitlist"] == 0


def test_release_range(client):
    initialize(client, 2)
    reserve(client, 1)
    reserve(client, 2)
    reserve(client, 3, 2)
    reserve(client, 10, 7)

    resp = client.post("/release", json={"lo": 1, "hi": 3})
    body = resp.get_json()
    assert resp.status_code == 200
    assert body["outcome"] == "seats_released"
    assert body["assignments"] == [{"user_id": 10, "seat_id": 1}]

    resp = client.post("/release", json={"lo": 50, "hi": 60})
    assert resp.get_json()["outcome"] == "nothing_to_release"
    verify_seat_invariant(client)


def test_health(client):
    body = client.get("/health").get_json()
    assert body["status"] == "healthy"
    assert body["initialized"] is False


def test_waitlist_routes_accept_negative_user_ids(client):
    initialize(client, 1)
    reserve(client, 1)
    assert reserve(client, -5, 2).get_json()["outcome"] == "waitlisted"

    resp = client.put("/waitlist/-5/priority", json={"priority": 7})
    assert resp.status_code == 200
    assert resp.get_json() == {"outcome": "priority_updated", "user_id": -5, "priority": 7}

    resp = client.delete("/waitlist/-5")
    assert resp.status_code == 200
    assert client.get("/waitlist").get_json()["waitlist"] == []


def test_stress_checks_pass_on_consistent_status(client):
    initialize(client, 1)
    reserve(client, 1)
    reserve(client, 2)
    assert check_status(client.get("/status").get_json()) == []


def test_stress_checks_flag_idle_seats_and_violations():
    status = {
        "total_seats": 3,
        "available_seats": 1,
        "reserved_seats": 1,
        "waitlist": 2,
        "invariants_valid": False,
        "violations": ["waitlist heap order violated"],
    }
    assert check_status(status) == [
        "seat count mismatch",
        "invariants violated: ['waitlist heap order violated']",
        "free seats left while users are waiting",
    ]
