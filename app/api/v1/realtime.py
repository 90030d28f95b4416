"""
Realtime interaction channel.

A WebSocket on which clients send medicine combinations and get interaction
results back. Each message is handled on its own: the channel keeps no
per-connection state and opens a fresh database session per request.
"""

import json
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from starlette.concurrency import run_in_threadpool

from app.core.errors import MedInfoError
from app.core.logging import get_logger
from app.core.metrics import record_check
from app.db.session import get_session_factory
from app.schemas.interaction import ErrorMessage, InteractionsResultMessage
from app.services.interaction_resolver import InteractionResolver

logger = get_logger(__name__)
router = APIRouter()

CHECK_INTERACTIONS = "check_interactions"

INVALID_IDS_MESSAGE = "At least two valid medicine IDs are required"
PROCESSING_ERROR_MESSAGE = "Error processing request"


def _error(message: str) -> dict[str, Any]:
    return ErrorMessage(message=message).model_dump(by_alias=True)


def parse_medicine_ids(value: Any) -> list[int] | None:
    """Return the ids if ``value`` is a list of at least two integers, else None."""
    if not isinstance(value, list) or len(value) < 2:
        return None
    # bool is an int subclass; true/false are not ids
    if any(isinstance(item, bool) or not isinstance(item, int) for item in value):
        return None
    return value


def _check(medicine_ids: list[int]) -> list:
    session = get_session_factory()()
    try:
        return InteractionResolver(session).check_combination(medicine_ids)
    finally:
        session.close()


async def process_message(raw: str) -> dict[str, Any]:
    """
    Handle one client frame and build the reply.

    Never raises: every failure becomes an ``error`` message.
    """
    try:
        message = json.loads(raw)
    except json.JSONDecodeError:
        return _error("Invalid JSON")

    if not isinstance(message, dict) or message.get("type") != CHECK_INTERACTIONS:
        kind = message.get("type") if isinstance(message, dict) else None
        return _error(f"Unknown message type: {kind}")

    medicine_ids = parse_medicine_ids(message.get("medicineIds"))
    if medicine_ids is None:
        return _error(INVALID_IDS_MESSAGE)

    try:
        interactions = await run_in_threadpool(_check, medicine_ids)
    except MedInfoError as e:
        if e.status_code >= 500:
            logger.error(f"Realtime interaction check failed: {e.message}")
            return _error(PROCESSING_ERROR_MESSAGE)
        return _error(e.message)
    except Exception as e:
        logger.error(f"Realtime interaction check failed: {e}", exc_info=e)
        return _error(PROCESSING_ERROR_MESSAGE)

    record_check("ws", interactions)
    reply = InteractionsResultMessage(interactions=interactions)
    return reply.model_dump(mode="json", by_alias=True)


@router.websocket("/ws")
async def interaction_channel(websocket: WebSocket):
    """
    WebSocket endpoint for realtime interaction checks.

    The connection stays open after errors; only the client closes it.
    """
    await websocket.accept()
    logger.info("Realtime client connected")

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))

            data = message.get("text")
            if data is None and message.get("bytes") is not None:
                try:
                    data = message["bytes"].decode("utf-8")
                except UnicodeDecodeError:
                    data = None

            if data is None:
                reply = _error("Invalid JSON")
            else:
                reply = await process_message(data)
            await websocket.send_json(reply)
    except WebSocketDisconnect:
        logger.info("Realtime client disconnected")
