"""
Tests for drug interaction endpoints.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import delete

from app.api.v1 import interactions
from app.db.models import DrugInteraction
from app.db.session import get_session_factory

CREATE = {
    "medicine1Id": 3,
    "medicine2Id": 1,
    "severity": "Major",
    "description": "Increased bleeding risk",
    "effects": "Additive anticoagulant and antiplatelet effect",
    "management": "Avoid combination",
}


@pytest.fixture
def stored(test_client: TestClient, api_key_headers: dict) -> dict:
    """Admin-created Warfarin/Aspirin interaction."""
    response = test_client.post("/api/v1/interactions", json=CREATE, headers=api_key_headers)
    assert response.status_code == 201
    return response.json()


def test_create_stores_canonical_pair(stored):
    """Pairs are stored low id first."""
    assert stored["medicine1Id"] == 1
    assert stored["medicine2Id"] == 3
    assert stored["severity"] == "Major"


def test_create_requires_api_key(test_client: TestClient):
    """Creating without an API key is unauthorized."""
    response = test_client.post("/api/v1/interactions", json=CREATE)

    assert response.status_code == 401


def test_create_rejects_invalid_api_key(test_client: TestClient):
    """A wrong API key is forbidden."""
    response = test_client.post(
        "/api/v1/interactions", json=CREATE, headers={"X-API-Key": "invalid-key"}
    )

    assert response.status_code == 403


def test_duplicate_in_reverse_order_conflicts(test_client, api_key_headers, stored):
    """The same pair in either order conflicts."""
    reverse = {**CREATE, "medicine1Id": 1, "medicine2Id": 3}

    response = test_client.post("/api/v1/interactions", json=reverse, headers=api_key_headers)

    assert response.status_code == 409
    assert response.json()["error"] == "DuplicateInteractionError"


def test_self_pair_rejected(test_client, api_key_headers):
    """A medicine cannot interact with itself."""
    body = {**CREATE, "medicine1Id": 2, "medicine2Id": 2}

    response = test_client.post("/api/v1/interactions", json=body, headers=api_key_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "InvalidPairError"


def test_unknown_severity_rejected(test_client, api_key_headers):
    """Severity must be one of the known levels."""
    body = {**CREATE, "severity": "Catastrophic"}

    response = test_client.post("/api/v1/interactions", json=body, headers=api_key_headers)

    assert response.status_code == 400
    assert "errors" in response.json()


def test_medicine_interactions(test_client, stored):
    """Lookups match the medicine on either side of the pair."""
    for medicine_id in (1, 3):
        response = test_client.get(f"/api/v1/interactions/medicine/{medicine_id}")

        assert response.status_code == 200
        data = response.json()
        assert [item["id"] for item in data] == [stored["id"]]
        assert data[0]["medicine1"]["name"] == "Aspirin"
        assert data[0]["medicine2"]["name"] == "Warfarin"


def test_medicine_without_interactions(test_client):
    """No stored interactions gives an empty list."""
    response = test_client.get("/api/v1/interactions/medicine/4")

    assert response.status_code == 200
    assert response.json() == []


def test_check_combination(test_client, stored):
    """Only pairs with stored interactions are reported."""
    response = test_client.post("/api/v1/interactions/check", json={"medicineIds": [4, 3, 1]})

    assert response.status_code == 200
    data = response.json()
    assert len(data) == 1
    assert data[0]["severity"] == "Major"
    assert data[0]["medicine2"]["otcRx"] == "Rx"


@pytest.mark.parametrize("ids", [[], [1], [2, 2]])
def test_check_needs_two_medicines(test_client, ids):
    """Fewer than two distinct medicines is rejected."""
    response = test_client.post("/api/v1/interactions/check", json={"medicineIds": ids})

    assert response.status_code == 400
    assert response.json()["error"] == "InsufficientInputError"


def test_check_rejects_malformed_body(test_client):
    """A non-list id field is a validation error."""
    response = test_client.post("/api/v1/interactions/check", json={"medicineIds": "1,2"})

    assert response.status_code == 400


@pytest.mark.parametrize("ids", [[True, 2], ["1", "2"], [1, 2.0]])
def test_check_requires_integer_ids(test_client, ids):
    """Booleans, numeric strings and floats are not medicine ids."""
    response = test_client.post("/api/v1/interactions/check", json={"medicineIds": ids})

    assert response.status_code == 400
    assert response.json()["error"] == "ValidationError"


def test_get_interaction(test_client, stored):
    """Interactions are fetched by id."""
    response = test_client.get(f"/api/v1/interactions/{stored['id']}")

    assert response.status_code == 200
    assert response.json()["description"] == CREATE["description"]


def test_get_unknown_interaction(test_client):
    """An unknown id is not found."""
    response = test_client.get("/api/v1/interactions/404")

    assert response.status_code == 404


def test_update_recanonicalizes(test_client, api_key_headers, stored):
    """Changing both sides stores the pair low id first."""
    response = test_client.patch(
        f"/api/v1/interactions/{stored['id']}",
        json={"medicine1Id": 4, "medicine2Id": 2, "severity": "Minor"},
        headers=api_key_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert (data["medicine1Id"], data["medicine2Id"]) == (2, 4)
    assert data["severity"] == "Minor"


def test_delete(test_client, api_key_headers, stored):
    """Deleted interactions are gone and a second delete is not found."""
    url = f"/api/v1/interactions/{stored['id']}"

    assert test_client.delete(url, headers=api_key_headers).status_code == 204
    assert test_client.delete(url, headers=api_key_headers).status_code == 404
    assert test_client.get("/api/v1/interactions/medicine/1").json() == []


def test_delete_requires_api_key(test_client, stored):
    """Deleting without an API key is unauthorized."""
    response = test_client.delete(f"/api/v1/interactions/{stored['id']}")

    assert response.status_code == 401


@pytest.fixture
def cached_client(test_client, memory_cache, monkeypatch):
    """Client whose interaction routes use the in-memory cache."""
    async def _get_cache_service():
        return memory_cache

    monkeypatch.setattr(interactions, "get_cache_service", _get_cache_service)
    return test_client


def test_check_served_from_cache(cached_client, memory_cache, stored):
    """A repeated check is answered from the cache without a fresh lookup."""
    first = cached_client.post("/api/v1/interactions/check", json={"medicineIds": [1, 3]})
    assert first.status_code == 200
    assert any(key.startswith("medinfo:interactions:") for key in memory_cache.store)

    session = get_session_factory()()
    try:
        session.execute(delete(DrugInteraction))
        session.commit()
    finally:
        session.close()

    second = cached_client.post("/api/v1/interactions/check", json={"medicineIds": [3, 1]})

    assert second.status_code == 200
    assert second.json() == first.json()
    assert second.json()[0]["medicine1"]["otcRx"] == "OTC"


def test_admin_write_invalidates_cached_checks(cached_client, api_key_headers, memory_cache, stored):
    """Checks after an interaction write see the new data."""
    url = "/api/v1/interactions/check"
    assert len(cached_client.post(url, json={"medicineIds": [1, 2, 3]}).json()) == 1
    generation = int(memory_cache.store["medinfo:interactions-generation"])

    body = {**CREATE, "medicine1Id": 2, "medicine2Id": 3, "description": "NSAID bleeding risk"}
    created = cached_client.post("/api/v1/interactions", json=body, headers=api_key_headers)
    assert created.status_code == 201

    data = cached_client.post(url, json={"medicineIds": [1, 2, 3]}).json()

    assert len(data) == 2
    assert created.json()["id"] in {item["id"] for item in data}
    assert int(memory_cache.store["medinfo:interactions-generation"]) == generation + 1
