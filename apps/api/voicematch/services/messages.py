"""Outbound message construction for the matchmaking core."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..schemas.matchmaking import PartnerFoundMessage, RelayedSignalMessage


@dataclass(frozen=True, slots=True)
class Outbound:
    """A message addressed to a single connection."""

    recipient_id: str
    message: dict


def partner_found(recipient_id: str, partner_id: str, initiator: bool) -> Outbound:
    message = PartnerFoundMessage(partner_id=partner_id, initiator=initiator)
    return Outbound(recipient_id=recipient_id, message=message.model_dump(by_alias=True))


def relayed_signal(recipient_id: str, sender_id: str, payload: Any) -> Outbound:
    message = RelayedSignalMessage(sender_id=sender_id).model_dump(by_alias=True)
    # Attached after dumping so the payload object is never copied or coerced.
    message["signal"] = payload
    return Outbound(recipient_id=recipient_id, message=message)
