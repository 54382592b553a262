"""Reconcile departing or skipping connections with the pool and session table."""
from __future__ import annotations

import logging
from typing import Optional

from .registry import ConnectionRegistry, ConnectionState
from .session_table import Session, SessionTable
from .waiting_pool import WaitingPool

logger = logging.getLogger(__name__)


class DisconnectHandler:
    """Tear down pool entries and sessions for a single connection."""

    def __init__(self, registry: ConnectionRegistry, pool: WaitingPool, sessions: SessionTable) -> None:
        self._registry = registry
        self._pool = pool
        self._sessions = sessions

    def teardown(self, connection_id: str) -> Optional[Session]:
        """End the session of ``connection_id`` and return both members to idle.

        The remaining member is not notified here.
        """

        session = self._sessions.discard(connection_id)
        if session is None:
            return None
        for member_id in session.members:
            member = self._registry.find(member_id)
            if member is not None and member.state is ConnectionState.PAIRED:
                member.state = ConnectionState.IDLE
        logger.info("Session %s ended by %s", session.session_id, connection_id)
        return session

    def cancel(self, connection_id: str) -> Optional[Session]:
        """Stop searching or leave the current session, staying connected."""

        if self._pool.remove(connection_id):
            logger.info("User %s removed from queue", connection_id)
        session = self.teardown(connection_id)
        connection = self._registry.find(connection_id)
        if connection is not None:
            connection.state = ConnectionState.IDLE
        return session

    def leave(self, connection_id: str) -> Optional[Session]:
        """Forget a disconnected connection; safe to call more than once."""

        session = self.cancel(connection_id)
        if self._registry.remove(connection_id) is not None:
            logger.info("User disconnected: %s", connection_id)
        return session
