"""
Tests for errors, caller identification, caching and log formatting.
"""

import json
import logging

import pytest
from fastapi import HTTPException

from app.core.auth import get_current_user_id, verify_api_key
from app.core.cache import CacheService
from app.core.errors import (
    DependencyError,
    DuplicateInteractionError,
    InsufficientInputError,
    InvalidPairError,
    NotFoundError,
    ValidationError,
    error_body,
)
from app.core.logging import JSONFormatter
from app.schemas.common import ErrorResponse


@pytest.mark.parametrize("error,status_code", [
    (InvalidPairError("x"), 400),
    (InsufficientInputError("x"), 400),
    (NotFoundError("x"), 404),
    (DuplicateInteractionError("x"), 409),
    (DependencyError("x"), 500),
])
def test_error_status_codes(error, status_code):
    """Each domain error carries its HTTP status."""
    assert error.status_code == status_code


def test_validation_subclasses():
    """Pair and input errors are validation errors."""
    assert isinstance(InvalidPairError("x"), ValidationError)
    assert isinstance(InsufficientInputError("x"), ValidationError)


def test_error_body():
    """Error bodies carry the name, message and a timestamp."""
    body = error_body("NotFoundError", "Medicine not found")

    assert body["error"] == "NotFoundError"
    assert body["message"] == "Medicine not found"
    assert "timestamp" in body
    assert "errors" not in body

    detailed = error_body("ValidationError", "Invalid request data", [{"loc": ["body"]}])
    assert detailed["errors"] == [{"loc": ["body"]}]


def test_error_body_follows_error_response():
    """Bodies are serialized through ErrorResponse and drop empty field errors."""
    body = error_body("ValidationError", "Invalid request data", [])

    assert set(body) == {"error", "message", "timestamp"}
    assert isinstance(body["timestamp"], str)
    assert ErrorResponse.model_validate(body).error == "ValidationError"


async def test_user_id_parsed():
    """The caller id header is parsed as an integer."""
    assert await get_current_user_id("42") == 42


@pytest.mark.parametrize("value", [None, "", "abc", "0", "-1", "1.5"])
async def test_user_id_rejected(value):
    """Missing or non-positive caller ids are unauthorized."""
    with pytest.raises(HTTPException) as exc_info:
        await get_current_user_id(value)
    assert exc_info.value.status_code == 401


async def test_api_key_checks():
    """The admin key is required and must match."""
    assert await verify_api_key("test-api-key-12345") == "test-api-key-12345"

    with pytest.raises(HTTPException) as missing:
        await verify_api_key(None)
    assert missing.value.status_code == 401

    with pytest.raises(HTTPException) as wrong:
        await verify_api_key("nope")
    assert wrong.value.status_code == 403


def test_cache_key_ignores_order():
    """Cache keys do not depend on id order."""
    first = CacheService._generate_key("interactions", sorted({3, 1, 2}))
    second = CacheService._generate_key("interactions", sorted({2, 3, 1}))

    assert first == second
    assert first.startswith("medinfo:interactions:")


async def test_disabled_cache_is_a_noop():
    """Without Redis every cache call falls through."""
    cache = CacheService()
    await cache.connect()

    assert cache.is_connected is False
    assert await cache.get_interaction_generation() == 0
    assert await cache.get_interaction_check([1, 2], 0) is None
    assert await cache.set_interaction_check([1, 2], [], 0) is False
    assert await cache.invalidate_interactions() == 0


async def test_cached_check_is_read_back(memory_cache):
    """A check stored at the current generation is served for any id order."""
    generation = await memory_cache.get_interaction_generation()

    assert await memory_cache.set_interaction_check([3, 1], [{"id": 9}], generation)
    assert await memory_cache.get_interaction_check([1, 3, 3], generation) == [{"id": 9}]


async def test_write_during_check_is_not_cached(memory_cache):
    """A result read before an interaction write never reaches the cache."""
    generation = await memory_cache.get_interaction_generation()

    await memory_cache.invalidate_interactions()

    assert await memory_cache.set_interaction_check([1, 3], [{"id": 9}], generation) is False
    assert await memory_cache.get_interaction_generation() == generation + 1
    assert await memory_cache.get_interaction_check([1, 3], generation) is None
    assert await memory_cache.get_interaction_check([1, 3], generation + 1) is None


async def test_invalidation_drops_cached_checks(memory_cache):
    """Invalidation clears stored checks and moves to a new generation."""
    await memory_cache.set_interaction_check([1, 2], [], 0)

    assert await memory_cache.invalidate_interactions() == 1
    assert await memory_cache.get_interaction_check([1, 2], 0) is None
    assert await memory_cache.get_interaction_generation() == 1


def test_json_formatter_includes_extras():
    """JSON log lines carry extra fields."""
    record = logging.LogRecord("medinfo", logging.INFO, __file__, 1, "Schedule created", None, None)
    record.schedule_id = 7

    entry = json.loads(JSONFormatter().format(record))

    assert entry["message"] == "Schedule created"
    assert entry["schedule_id"] == 7
    assert entry["level"] == "INFO"
