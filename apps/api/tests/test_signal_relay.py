"""Tests for relaying signals between session members."""
from __future__ import annotations

import pytest

from voicematch.services.errors import InvalidTarget, NoActiveSession
from voicematch.services.relay import SignalRelay
from voicematch.services.session_table import Session, SessionTable


@pytest.fixture
def sessions() -> SessionTable:
    table = SessionTable()
    table.add(Session(initiator_id="x", responder_id="y"))
    return table


def test_signal_reaches_only_the_partner_verbatim(sessions):
    relay = SignalRelay(sessions)
    payload = {"type": "offer", "sdp": "v=0\r\no=- 46117 2 IN IP4 127.0.0.1\r\n"}

    outbox = relay.relay("x", payload, to="y")

    assert len(outbox) == 1
    assert outbox[0].recipient_id == "y"
    assert outbox[0].message == {"type": "signal", "from": "x", "signal": payload}
    assert outbox[0].message["signal"] is payload


def test_responder_can_answer_the_initiator(sessions):
    relay = SignalRelay(sessions)

    outbox = relay.relay("y", "answer-xyz", to="x")

    assert [(item.recipient_id, item.message) for item in outbox] == [
        ("x", {"type": "signal", "from": "y", "signal": "answer-xyz"})
    ]


def test_unpaired_sender_has_no_active_session(sessions):
    relay = SignalRelay(sessions)

    with pytest.raises(NoActiveSession):
        relay.relay("z", "offer-abc", to="x")


def test_signal_to_someone_else_is_rejected(sessions):
    relay = SignalRelay(sessions)

    with pytest.raises(InvalidTarget) as excinfo:
        relay.relay("x", "offer-abc", to="z")

    assert excinfo.value.partner_id == "y"

    with pytest.raises(InvalidTarget):
        relay.relay("x", "offer-abc")


def test_target_check_can_be_disabled(sessions):
    relay = SignalRelay(sessions, enforce_target=False)

    outbox = relay.relay("x", "offer-abc", to="z")

    assert outbox[0].recipient_id == "y"
