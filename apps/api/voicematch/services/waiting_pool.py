"""FIFO pool of connections waiting for a partner."""
from __future__ import annotations

from collections import deque
from typing import Deque, Iterator

from .errors import AlreadyPaired, AlreadyWaiting, PoolEmpty
from .registry import ConnectionState, MatchConnection


class WaitingPool:
    """Ordered collection of waiting connection identifiers.

    The head of the pool is always the connection that has waited longest, so
    ``dequeue_next`` hands out partners in arrival order. An identifier is held
    at most once.
    """

    def __init__(self) -> None:
        self._queue: Deque[str] = deque()

    def enqueue(self, connection: MatchConnection) -> None:
        """Append ``connection`` to the tail and mark it as waiting."""

        if connection.state is ConnectionState.PAIRED:
            raise AlreadyPaired(connection.connection_id)
        if connection.state is ConnectionState.WAITING or connection.connection_id in self._queue:
            raise AlreadyWaiting(connection.connection_id)
        self._queue.append(connection.connection_id)
        connection.state = ConnectionState.WAITING

    def dequeue_next(self) -> str:
        """Remove and return the identifier at the head of the pool."""

        if not self._queue:
            raise PoolEmpty()
        return self._queue.popleft()

    def remove(self, connection_id: str) -> bool:
        """Drop ``connection_id`` if present; absent identifiers are ignored."""

        try:
            self._queue.remove(connection_id)
        except ValueError:
            return False
        return True

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._queue

    def __len__(self) -> int:
        return len(self._queue)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._queue))
