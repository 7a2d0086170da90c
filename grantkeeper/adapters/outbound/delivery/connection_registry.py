# grantkeeper/adapters/outbound/delivery/connection_registry.py

"""
In-process registry of live notification connections.

One registry instance is created per application and injected wherever
it is needed. Users are spread over shards, each guarded by its own
``asyncio.Lock``, so subscriptions of different users rarely contend.
"""

import asyncio
import logging
from typing import Dict, List, Set

from grantkeeper.application.ports.outbound import IConnection

# Configure logger
logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """
    Maps a user id to the set of its live connections.

    Attributes:
        shard_count: Number of lock-guarded shards
    """

    def __init__(self, shard_count: int = 16):
        if shard_count < 1:
            raise ValueError("shard_count must be at least 1")
        self.shard_count = shard_count
        self._shards: List[Dict[int, Set[IConnection]]] = [{} for _ in range(shard_count)]
        self._locks: List[asyncio.Lock] = [asyncio.Lock() for _ in range(shard_count)]

    def _shard_of(self, user_id: int) -> int:
        return hash(user_id) % self.shard_count

    async def subscribe(self, user_id: int, connection: IConnection) -> None:
        index = self._shard_of(user_id)
        async with self._locks[index]:
            self._shards[index].setdefault(user_id, set()).add(connection)
        logger.info(f"Connection {connection.connection_id} subscribed for user {user_id}")

    async def unsubscribe(self, user_id: int, connection: IConnection) -> bool:
        """
        Remove a connection. Idempotent.

        Returns:
            True if the connection was registered
        """
        index = self._shard_of(user_id)
        async with self._locks[index]:
            connections = self._shards[index].get(user_id)
            if not connections or connection not in connections:
                return False
            connections.discard(connection)
            if not connections:
                del self._shards[index][user_id]
        logger.info(f"Connection {connection.connection_id} unsubscribed for user {user_id}")
        return True

    async def connections_for(self, user_id: int) -> List[IConnection]:
        """Snapshot of the user's connections; later changes do not affect it."""
        index = self._shard_of(user_id)
        async with self._locks[index]:
            return list(self._shards[index].get(user_id, ()))

    async def count(self) -> int:
        total = 0
        for lock, shard in zip(self._locks, self._shards):
            async with lock:
                total += sum(len(connections) for connections in shard.values())
        return total

    async def users(self) -> List[int]:
        """User ids with at least one live connection."""
        result: List[int] = []
        for lock, shard in zip(self._locks, self._shards):
            async with lock:
                result.extend(shard.keys())
        return sorted(result)
