"""Error taxonomy for matchmaking and signal relay."""
from __future__ import annotations


class MatchmakingError(RuntimeError):
    """Base class for matchmaking failures handled inside the service."""


class PoolEmpty(MatchmakingError):
    """Raised when the waiting pool has no candidate to hand out."""


class SelfPairingDetected(MatchmakingError):
    """Raised when a connection is dequeued as its own partner."""


class NoActiveSession(MatchmakingError):
    """Raised when a connection has no session to relay through."""


class InvalidTarget(MatchmakingError):
    """Raised when a signal names a target other than the session partner."""

    def __init__(self, sender_id: str, target_id: str | None, partner_id: str) -> None:
        super().__init__(f"{sender_id} addressed {target_id!r} but is paired with {partner_id}")
        self.sender_id = sender_id
        self.target_id = target_id
        self.partner_id = partner_id


class UnknownConnection(MatchmakingError):
    """Raised when an identifier does not belong to a live connection."""


class DuplicateConnection(MatchmakingError):
    """Raised when registering an identifier that is already live."""


class AlreadyWaiting(MatchmakingError):
    """Raised when enqueueing a connection that is already waiting."""


class AlreadyPaired(MatchmakingError):
    """Raised when enqueueing a connection that still has a session."""
