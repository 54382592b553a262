"""Forward opaque signaling payloads between the two members of a session."""
from __future__ import annotations

from typing import Any

from .errors import InvalidTarget
from .messages import Outbound, relayed_signal
from .session_table import SessionTable


class SignalRelay:
    """Route a member's signal to its session partner, and nobody else."""

    def __init__(self, sessions: SessionTable, *, enforce_target: bool = True) -> None:
        self._sessions = sessions
        self._enforce_target = enforce_target

    def relay(self, sender_id: str, payload: Any, to: str | None = None) -> list[Outbound]:
        """Return the outbound signal for the partner of ``sender_id``.

        Raises ``NoActiveSession`` when the sender is not paired and
        ``InvalidTarget`` when ``to`` names anyone but the partner.
        """

        session = self._sessions.get(sender_id)
        partner_id = session.partner_of(sender_id)
        if self._enforce_target and to != partner_id:
            raise InvalidTarget(sender_id, to, partner_id)
        return [relayed_signal(partner_id, sender_id, payload)]
