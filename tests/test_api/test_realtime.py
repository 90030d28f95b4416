"""
Tests for the realtime interaction channel.
"""

import json

import pytest
from fastapi.testclient import TestClient

from app.api.v1.realtime import parse_medicine_ids, process_message


@pytest.fixture
def interaction(test_client: TestClient, api_key_headers: dict) -> dict:
    """Stored Aspirin/Warfarin interaction."""
    response = test_client.post(
        "/api/v1/interactions",
        json={
            "medicine1Id": 1,
            "medicine2Id": 3,
            "severity": "Major",
            "description": "Increased bleeding risk",
            "effects": "Additive anticoagulant effect",
        },
        headers=api_key_headers,
    )
    return response.json()


def check(ids) -> str:
    return json.dumps({"type": "check_interactions", "medicineIds": ids})


def test_check_over_websocket(test_client, interaction):
    """A check frame gets the interactions of the combination."""
    with test_client.websocket_connect("/ws") as websocket:
        websocket.send_text(check([3, 1, 4]))
        reply = websocket.receive_json()

    assert reply["type"] == "interactions_result"
    assert [item["id"] for item in reply["interactions"]] == [interaction["id"]]
    assert reply["interactions"][0]["medicine1"]["name"] == "Aspirin"


def test_no_interactions_is_empty_result(test_client):
    """A clean combination gets an empty result."""
    with test_client.websocket_connect("/ws") as websocket:
        websocket.send_text(check([2, 4]))
        reply = websocket.receive_json()

    assert reply == {"type": "interactions_result", "interactions": []}


def test_connection_survives_errors(test_client, interaction):
    """Error frames leave the connection open."""
    with test_client.websocket_connect("/ws") as websocket:
        websocket.send_text("not json")
        assert websocket.receive_json() == {"type": "error", "message": "Invalid JSON"}

        websocket.send_text(json.dumps({"type": "subscribe"}))
        assert websocket.receive_json()["type"] == "error"

        websocket.send_text(check([1]))
        assert websocket.receive_json() == {
            "type": "error",
            "message": "At least two valid medicine IDs are required",
        }

        websocket.send_text(check([1, 3]))
        reply = websocket.receive_json()

    assert reply["type"] == "interactions_result"
    assert len(reply["interactions"]) == 1


def test_binary_frames_are_handled(test_client, interaction):
    """Binary frames are decoded as UTF-8 JSON and the connection stays open."""
    with test_client.websocket_connect("/ws") as websocket:
        websocket.send_bytes(check([1, 3]).encode("utf-8"))
        reply = websocket.receive_json()
        assert reply["type"] == "interactions_result"
        assert [item["id"] for item in reply["interactions"]] == [interaction["id"]]

        websocket.send_bytes(b"\xff\xfe")
        assert websocket.receive_json() == {"type": "error", "message": "Invalid JSON"}

        websocket.send_text(check([2, 4]))
        assert websocket.receive_json() == {"type": "interactions_result", "interactions": []}


def test_duplicate_ids_report_resolver_error(test_client):
    """Resolver validation errors come back as error frames."""
    with test_client.websocket_connect("/ws") as websocket:
        websocket.send_text(check([2, 2]))
        reply = websocket.receive_json()

    assert reply["type"] == "error"
    assert "two medicines" in reply["message"]


@pytest.mark.parametrize("value", [
    None,
    "1,2",
    [1],
    [1, "2"],
    [1, 2.5],
    [True, 2],
    {"a": 1, "b": 2},
])
def test_parse_rejects_invalid_ids(value):
    """Anything but a list of two or more integers is rejected."""
    assert parse_medicine_ids(value) is None


def test_parse_accepts_integer_list():
    """Integer lists are passed through."""
    assert parse_medicine_ids([3, 1]) == [3, 1]


async def test_process_message_without_database_access():
    """Invalid ids are rejected before any lookup."""
    reply = await process_message(json.dumps({"type": "check_interactions", "medicineIds": [1]}))

    assert reply == {"type": "error", "message": "At least two valid medicine IDs are required"}


async def test_process_message_unknown_type():
    """Non-object frames are an unknown type."""
    reply = await process_message(json.dumps(["check_interactions"]))

    assert reply["type"] == "error"
