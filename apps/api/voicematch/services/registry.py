"""Registry of live matchmaking connections."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, Iterator, Optional

from .errors import DuplicateConnection, UnknownConnection

SendCallable = Callable[[dict], Awaitable[None]]


class ConnectionState(str, enum.Enum):
    IDLE = "idle"
    WAITING = "waiting"
    PAIRED = "paired"


@dataclass(slots=True)
class MatchConnection:
    """A network-attached client and its matchmaking state."""

    connection_id: str
    send: SendCallable
    state: ConnectionState = field(default=ConnectionState.IDLE)


class ConnectionRegistry:
    """Track live connections by identifier."""

    def __init__(self) -> None:
        self._connections: Dict[str, MatchConnection] = {}

    def register(self, connection: MatchConnection) -> None:
        if connection.connection_id in self._connections:
            raise DuplicateConnection(connection.connection_id)
        connection.state = ConnectionState.IDLE
        self._connections[connection.connection_id] = connection

    def get(self, connection_id: str) -> MatchConnection:
        connection = self._connections.get(connection_id)
        if connection is None:
            raise UnknownConnection(connection_id)
        return connection

    def find(self, connection_id: str) -> Optional[MatchConnection]:
        return self._connections.get(connection_id)

    def remove(self, connection_id: str) -> Optional[MatchConnection]:
        return self._connections.pop(connection_id, None)

    def count(self, state: ConnectionState) -> int:
        return sum(1 for connection in self._connections.values() if connection.state is state)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._connections

    def __len__(self) -> int:
        return len(self._connections)

    def __iter__(self) -> Iterator[MatchConnection]:
        return iter(list(self._connections.values()))
