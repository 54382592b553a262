"""Matchmaking WebSocket and stats endpoints."""
from __future__ import annotations

import json
import logging
from uuid import uuid4

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from ..schemas.matchmaking import (
    CancelMessage,
    FindPartnerMessage,
    MatchStatsResponse,
    SignalMessage,
    SkipMessage,
    parse_inbound,
)
from ..services import matchmaker
from ..services.registry import MatchConnection

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/stats", response_model=MatchStatsResponse)
async def match_stats() -> MatchStatsResponse:
    """Return current pool and session counts."""

    return matchmaker.manager.snapshot()


@router.websocket("/ws")
async def matchmaking_endpoint(websocket: WebSocket) -> None:
    """Anonymous pairing plus signal relay for a single client."""

    service = matchmaker.manager
    connection_id = uuid4().hex
    await websocket.accept()
    await service.connect(MatchConnection(connection_id=connection_id, send=websocket.send_json))

    try:
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(frame.get("code", 1000), frame.get("reason"))

            try:
                raw = _decode_frame(frame)
            except (KeyError, ValueError, UnicodeDecodeError):
                logger.warning("Ignoring non-JSON frame from %s", connection_id)
                continue

            try:
                message = parse_inbound(raw)
            except ValidationError as exc:
                logger.warning("Ignoring malformed message from %s: %s", connection_id, exc.errors())
                continue

            if isinstance(message, FindPartnerMessage):
                await service.find_partner(connection_id)
            elif isinstance(message, SkipMessage):
                await service.skip(connection_id)
            elif isinstance(message, CancelMessage):
                await service.cancel(connection_id)
            elif isinstance(message, SignalMessage):
                await service.signal(connection_id, message.signal, to=message.to)
    except WebSocketDisconnect:
        pass
    finally:
        await service.leave(connection_id)


def _decode_frame(frame: dict) -> object:
    """Decode a text or binary frame holding UTF-8 JSON."""

    text = frame.get("text")
    if text is None:
        text = frame["bytes"].decode("utf-8")
    return json.loads(text)
