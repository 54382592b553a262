"""Active sessions keyed by each member's connection id."""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Dict, Optional
from uuid import uuid4

from .errors import NoActiveSession, SelfPairingDetected


@dataclass(frozen=True, slots=True)
class Session:
    """One active pairing; the initiator is the member that was waiting."""

    initiator_id: str
    responder_id: str
    session_id: str = field(default_factory=lambda: uuid4().hex)
    created_at: float = field(default_factory=time.time)

    def __post_init__(self) -> None:
        if self.initiator_id == self.responder_id:
            raise SelfPairingDetected(self.initiator_id)

    @property
    def members(self) -> tuple[str, str]:
        return (self.initiator_id, self.responder_id)

    def partner_of(self, connection_id: str) -> str:
        if connection_id == self.initiator_id:
            return self.responder_id
        if connection_id == self.responder_id:
            return self.initiator_id
        raise ValueError(f"{connection_id} is not a member of session {self.session_id}")

    def is_initiator(self, connection_id: str) -> bool:
        return connection_id == self.initiator_id


class SessionTable:
    """Map connection ids to their session, maintained in both directions."""

    def __init__(self) -> None:
        self._by_connection: Dict[str, Session] = {}

    def add(self, session: Session) -> None:
        for member in session.members:
            if member in self._by_connection:
                raise ValueError(f"{member} already belongs to an active session")
        for member in session.members:
            self._by_connection[member] = session

    def get(self, connection_id: str) -> Session:
        session = self._by_connection.get(connection_id)
        if session is None:
            raise NoActiveSession(connection_id)
        return session

    def find(self, connection_id: str) -> Optional[Session]:
        return self._by_connection.get(connection_id)

    def discard(self, connection_id: str) -> Optional[Session]:
        """Remove the session of ``connection_id`` for both members, if any."""

        session = self._by_connection.pop(connection_id, None)
        if session is None:
            return None
        for member in session.members:
            if self._by_connection.get(member) is session:
                self._by_connection.pop(member, None)
        return session

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._by_connection

    def __len__(self) -> int:
        """Number of distinct active sessions."""

        return len({session.session_id for session in self._by_connection.values()})
