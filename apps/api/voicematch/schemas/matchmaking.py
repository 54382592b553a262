"""Wire contracts for the matchmaking WebSocket and stats endpoint."""
from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class FindPartnerMessage(BaseModel):
    type: Literal["find_partner"]


class SkipMessage(BaseModel):
    type: Literal["skip"]


class CancelMessage(BaseModel):
    type: Literal["cancel"]


class SignalMessage(BaseModel):
    type: Literal["signal"]
    to: str | None = Field(default=None, description="Connection id of the session partner")
    signal: Any = Field(..., description="Opaque negotiation payload, relayed verbatim")


InboundMessage = Annotated[
    Union[FindPartnerMessage, SkipMessage, CancelMessage, SignalMessage],
    Field(discriminator="type"),
]

_inbound_adapter: TypeAdapter[InboundMessage] = TypeAdapter(InboundMessage)


def parse_inbound(raw: object) -> InboundMessage:
    """Validate a decoded client frame; raises ``pydantic.ValidationError``."""

    return _inbound_adapter.validate_python(raw)


class PartnerFoundMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["partner_found"] = "partner_found"
    partner_id: str = Field(..., alias="partnerId")
    initiator: bool


class RelayedSignalMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["signal"] = "signal"
    sender_id: str = Field(..., alias="from")


class MatchStatsResponse(BaseModel):
    connections: int = Field(..., ge=0)
    idle: int = Field(..., ge=0)
    waiting: int = Field(..., ge=0)
    paired: int = Field(..., ge=0)
    sessions: int = Field(..., ge=0)
