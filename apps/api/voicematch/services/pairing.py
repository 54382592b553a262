"""Pair waiting connections into sessions and assign initiator roles."""
from __future__ import annotations

import logging

from .disconnect import DisconnectHandler
from .errors import PoolEmpty, SelfPairingDetected
from .messages import Outbound, partner_found
from .registry import ConnectionRegistry, ConnectionState, MatchConnection
from .session_table import Session, SessionTable
from .waiting_pool import WaitingPool

logger = logging.getLogger(__name__)


class PairingEngine:
    """Match requesting connections against the waiting pool.

    The engine is not safe for concurrent use on its own; callers serialize
    access (see ``MatchmakingService``).
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        pool: WaitingPool,
        sessions: SessionTable,
        disconnects: DisconnectHandler,
    ) -> None:
        self._registry = registry
        self._pool = pool
        self._sessions = sessions
        self._disconnects = disconnects

    def request_partner(self, connection_id: str) -> list[Outbound]:
        """Pair ``connection_id`` with the longest-waiting connection or enqueue it."""

        connection = self._registry.get(connection_id)
        logger.info("User %s looking for partner", connection_id)

        if connection.state is ConnectionState.PAIRED:
            self._disconnects.teardown(connection_id)
        elif connection.state is ConnectionState.WAITING:
            logger.debug("User %s is already waiting; keeping queue position", connection_id)
            return []

        for _ in range(len(self._pool)):
            try:
                partner = self._next_candidate(connection_id)
            except PoolEmpty:
                break
            except SelfPairingDetected:
                logger.warning("Dropped stale queue entry for %s matching itself", connection_id)
                continue
            if partner is None:
                continue
            return self._create_session(partner, connection)

        self._pool.enqueue(connection)
        logger.info("User %s added to queue", connection_id)
        return []

    def _next_candidate(self, connection_id: str) -> MatchConnection | None:
        partner_id = self._pool.dequeue_next()
        if partner_id == connection_id:
            raise SelfPairingDetected(connection_id)
        partner = self._registry.find(partner_id)
        if partner is None or partner.state is not ConnectionState.WAITING:
            logger.warning("Dropped stale queue entry %s", partner_id)
            return None
        return partner

    def _create_session(self, waiting: MatchConnection, newcomer: MatchConnection) -> list[Outbound]:
        session = Session(initiator_id=waiting.connection_id, responder_id=newcomer.connection_id)
        self._sessions.add(session)
        waiting.state = ConnectionState.PAIRED
        newcomer.state = ConnectionState.PAIRED
        logger.info(
            "Pairing %s with %s (session %s)",
            newcomer.connection_id,
            waiting.connection_id,
            session.session_id,
        )
        return [
            partner_found(newcomer.connection_id, waiting.connection_id, initiator=False),
            partner_found(waiting.connection_id, newcomer.connection_id, initiator=True),
        ]
