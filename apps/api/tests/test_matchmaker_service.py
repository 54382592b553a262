"""Tests for the lock-guarded matchmaking service."""
from __future__ import annotations

import asyncio

import pytest

from voicematch.services.errors import DuplicateConnection
from voicematch.services.matchmaker import MatchmakingService
from voicematch.services.registry import ConnectionState, MatchConnection


class DummyConnection:
    def __init__(self, connection_id: str) -> None:
        self.connection_id = connection_id
        self.messages: list[dict] = []

    async def send(self, message: dict) -> None:
        self.messages.append(message)

    def as_match_connection(self) -> MatchConnection:
        return MatchConnection(connection_id=self.connection_id, send=self.send)


async def _connect(service: MatchmakingService, *connection_ids: str) -> dict[str, DummyConnection]:
    clients = {connection_id: DummyConnection(connection_id) for connection_id in connection_ids}
    for client in clients.values():
        await service.connect(client.as_match_connection())
    return clients


@pytest.mark.asyncio
async def test_pairing_notifies_both_members_with_roles():
    service = MatchmakingService()
    clients = await _connect(service, "x", "y")

    await service.find_partner("x")
    assert clients["x"].messages == []

    await service.find_partner("y")

    assert clients["x"].messages == [{"type": "partner_found", "partnerId": "y", "initiator": True}]
    assert clients["y"].messages == [{"type": "partner_found", "partnerId": "x", "initiator": False}]
    assert service.partner_of("x") == "y"


@pytest.mark.asyncio
async def test_signal_is_delivered_once_to_partner_only():
    service = MatchmakingService()
    clients = await _connect(service, "x", "y", "z")
    await service.find_partner("x")
    await service.find_partner("y")
    for client in clients.values():
        client.messages.clear()

    await service.signal("x", "offer-abc", to="y")

    assert clients["y"].messages == [{"type": "signal", "from": "x", "signal": "offer-abc"}]
    assert clients["x"].messages == []
    assert clients["z"].messages == []


@pytest.mark.asyncio
async def test_signals_without_session_or_to_wrong_target_are_dropped():
    service = MatchmakingService()
    clients = await _connect(service, "x", "y", "z")

    await service.signal("x", "offer-abc", to="y")

    await service.find_partner("x")
    await service.find_partner("y")
    clients["y"].messages.clear()
    await service.signal("x", "offer-abc", to="z")

    assert all(client.messages == [] for client in (clients["y"], clients["z"]))


@pytest.mark.asyncio
async def test_partner_disconnect_is_silent_for_remaining_member():
    service = MatchmakingService()
    clients = await _connect(service, "x", "y")
    await service.find_partner("x")
    await service.find_partner("y")
    clients["y"].messages.clear()

    await service.leave("x")

    assert clients["y"].messages == []
    assert service.state_of("x") is None
    assert service.partner_of("y") is None
    assert service.state_of("y") is ConnectionState.IDLE

    await service.signal("y", "offer-abc", to="x")
    assert clients["x"].messages == []


@pytest.mark.asyncio
async def test_skip_requeues_skipper_and_leaves_partner_untouched():
    service = MatchmakingService()
    clients = await _connect(service, "x", "y")
    await service.find_partner("x")
    await service.find_partner("y")
    for client in clients.values():
        client.messages.clear()

    await service.skip("x")

    assert service.waiting() == ["x"]
    assert service.partner_of("y") is None
    assert clients["y"].messages == []

    await service.find_partner("y")
    assert clients["y"].messages == [{"type": "partner_found", "partnerId": "x", "initiator": False}]


@pytest.mark.asyncio
async def test_cancel_leaves_pool():
    service = MatchmakingService()
    await _connect(service, "x")
    await service.find_partner("x")

    await service.cancel("x")

    assert service.waiting() == []
    assert service.state_of("x") is ConnectionState.IDLE


@pytest.mark.asyncio
async def test_unknown_connections_are_ignored():
    service = MatchmakingService()

    await service.find_partner("ghost")
    await service.skip("ghost")
    await service.cancel("ghost")
    await service.signal("ghost", "offer-abc", to="x")
    await service.leave("ghost")

    assert service.snapshot().connections == 0


@pytest.mark.asyncio
async def test_concurrent_requests_never_double_pair():
    service = MatchmakingService()
    ids = [f"c{index}" for index in range(51)]
    clients = await _connect(service, *ids)

    await asyncio.gather(*(service.find_partner(connection_id) for connection_id in ids))

    stats = service.snapshot()
    assert stats.sessions == 25
    assert stats.paired == 50
    assert stats.waiting == 1

    waiting = service.waiting()
    for connection_id in ids:
        partner = service.partner_of(connection_id)
        if partner is None:
            assert waiting == [connection_id]
            continue
        assert partner != connection_id
        assert service.partner_of(partner) == connection_id
        assert connection_id not in waiting
        found = [m for m in clients[connection_id].messages if m["type"] == "partner_found"]
        assert len(found) == 1

    initiators = sum(
        1
        for client in clients.values()
        for message in client.messages
        if message["type"] == "partner_found" and message["initiator"]
    )
    assert initiators == 25


@pytest.mark.asyncio
async def test_failed_delivery_does_not_break_pairing():
    service = MatchmakingService()

    async def broken_send(message: dict) -> None:
        raise ConnectionResetError("socket closed")

    healthy = DummyConnection("y")
    await service.connect(MatchConnection(connection_id="x", send=broken_send))
    await service.connect(healthy.as_match_connection())

    await service.find_partner("x")
    await service.find_partner("y")

    assert healthy.messages == [{"type": "partner_found", "partnerId": "x", "initiator": False}]
    assert service.partner_of("x") == "y"


@pytest.mark.asyncio
async def test_snapshot_counts_states():
    service = MatchmakingService()
    await _connect(service, "x", "y", "z", "w")
    await service.find_partner("x")
    await service.find_partner("y")
    await service.find_partner("z")

    stats = service.snapshot()

    assert stats.model_dump() == {
        "connections": 4,
        "idle": 1,
        "waiting": 1,
        "paired": 2,
        "sessions": 1,
    }


@pytest.mark.asyncio
async def test_duplicate_connection_id_is_refused():
    service = MatchmakingService()
    await _connect(service, "x")

    with pytest.raises(DuplicateConnection):
        await service.connect(DummyConnection("x").as_match_connection())

    assert service.snapshot().connections == 1
