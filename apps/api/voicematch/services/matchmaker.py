"""In-memory matchmaking service pairing anonymous callers and relaying signals."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable

from ..core.config import settings
from ..schemas.matchmaking import MatchStatsResponse
from .disconnect import DisconnectHandler
from .errors import InvalidTarget, NoActiveSession, UnknownConnection
from .messages import Outbound
from .pairing import PairingEngine
from .registry import ConnectionRegistry, ConnectionState, MatchConnection, SendCallable
from .relay import SignalRelay
from .session_table import SessionTable
from .waiting_pool import WaitingPool

logger = logging.getLogger(__name__)


class MatchmakingService:
    """Own the waiting pool and session table and serialize every mutation.

    Each entry point runs its core operation under one lock, resolves the
    recipients while still holding it, then delivers outside the lock without
    waiting for acknowledgement.
    """

    def __init__(self, *, enforce_signal_target: bool = True) -> None:
        self._registry = ConnectionRegistry()
        self._pool = WaitingPool()
        self._sessions = SessionTable()
        self._disconnects = DisconnectHandler(self._registry, self._pool, self._sessions)
        self._pairing = PairingEngine(self._registry, self._pool, self._sessions, self._disconnects)
        self._relay = SignalRelay(self._sessions, enforce_target=enforce_signal_target)
        self._lock = asyncio.Lock()

    async def connect(self, connection: MatchConnection) -> None:
        """Register a freshly accepted connection in the idle state."""

        async with self._lock:
            self._registry.register(connection)
        logger.info("User connected: %s", connection.connection_id)

    async def find_partner(self, connection_id: str) -> None:
        """Pair the caller or queue it; an existing session is skipped first."""

        async with self._lock:
            try:
                outbox = self._pairing.request_partner(connection_id)
            except UnknownConnection:
                logger.warning("find_partner from unknown connection %s ignored", connection_id)
                return
            deliveries = self._resolve(outbox)
        await self._deliver(deliveries)

    async def skip(self, connection_id: str) -> None:
        """Leave the current partner and immediately search for a new one."""

        async with self._lock:
            if connection_id not in self._registry:
                logger.warning("skip from unknown connection %s ignored", connection_id)
                return
            session = self._disconnects.teardown(connection_id)
            if session is not None:
                logger.info("User %s skipped %s", connection_id, session.partner_of(connection_id))
            outbox = self._pairing.request_partner(connection_id)
            deliveries = self._resolve(outbox)
        await self._deliver(deliveries)

    async def cancel(self, connection_id: str) -> None:
        """Stop searching or hang up while keeping the connection open."""

        async with self._lock:
            if connection_id not in self._registry:
                logger.warning("cancel from unknown connection %s ignored", connection_id)
                return
            self._disconnects.cancel(connection_id)

    async def signal(self, connection_id: str, payload: Any, to: str | None = None) -> None:
        """Relay an opaque payload to the caller's session partner."""

        async with self._lock:
            try:
                outbox = self._relay.relay(connection_id, payload, to=to)
            except NoActiveSession:
                logger.info("Dropped signal from %s: no active session", connection_id)
                return
            except InvalidTarget as exc:
                logger.warning("Dropped signal: %s", exc)
                return
            deliveries = self._resolve(outbox)
        await self._deliver(deliveries)

    async def leave(self, connection_id: str) -> None:
        """Forget a disconnected connection; the remaining partner is not notified."""

        async with self._lock:
            self._disconnects.leave(connection_id)

    def state_of(self, connection_id: str) -> ConnectionState | None:
        connection = self._registry.find(connection_id)
        return connection.state if connection else None

    def partner_of(self, connection_id: str) -> str | None:
        session = self._sessions.find(connection_id)
        return session.partner_of(connection_id) if session else None

    def waiting(self) -> list[str]:
        """Identifiers in the waiting pool, longest-waiting first."""

        return list(self._pool)

    def snapshot(self) -> MatchStatsResponse:
        return MatchStatsResponse(
            connections=len(self._registry),
            idle=self._registry.count(ConnectionState.IDLE),
            waiting=len(self._pool),
            paired=self._registry.count(ConnectionState.PAIRED),
            sessions=len(self._sessions),
        )

    def _resolve(self, outbox: Iterable[Outbound]) -> list[tuple[str, SendCallable, dict]]:
        deliveries = []
        for outbound in outbox:
            recipient = self._registry.find(outbound.recipient_id)
            if recipient is None:
                logger.info("Recipient %s is gone; message dropped", outbound.recipient_id)
                continue
            deliveries.append((outbound.recipient_id, recipient.send, outbound.message))
        return deliveries

    async def _deliver(self, deliveries: list[tuple[str, SendCallable, dict]]) -> None:
        if not deliveries:
            return

        results = await asyncio.gather(
            *(send(message) for _, send, message in deliveries), return_exceptions=True
        )
        for (recipient_id, _, message), result in zip(deliveries, results):
            if isinstance(result, Exception):
                logger.warning("Failed to deliver %s to %s: %s", message.get("type"), recipient_id, result)


manager = MatchmakingService(enforce_signal_target=settings.enforce_signal_target)
