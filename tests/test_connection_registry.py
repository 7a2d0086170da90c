import asyncio

import pytest

from grantkeeper.adapters.outbound.delivery.connection_registry import ConnectionRegistry


class StubConnection:
    def __init__(self, connection_id):
        self.connection_id = connection_id

    async def send(self, payload):
        pass


class TestConnectionRegistry:

    async def test_subscribe_and_lookup(self, connection_registry):
        phone, laptop = StubConnection("phone"), StubConnection("laptop")

        await connection_registry.subscribe(7, phone)
        await connection_registry.subscribe(7, laptop)

        assert set(await connection_registry.connections_for(7)) == {phone, laptop}
        assert await connection_registry.connections_for(8) == []

    async def test_unsubscribe_is_idempotent(self, connection_registry):
        connection = StubConnection("c1")
        await connection_registry.subscribe(1, connection)

        assert await connection_registry.unsubscribe(1, connection) is True
        assert await connection_registry.unsubscribe(1, connection) is False
        assert await connection_registry.unsubscribe(99, connection) is False
        assert await connection_registry.users() == []

    async def test_lookup_returns_a_snapshot(self, connection_registry):
        first = StubConnection("first")
        await connection_registry.subscribe(1, first)

        snapshot = await connection_registry.connections_for(1)
        await connection_registry.subscribe(1, StubConnection("second"))
        await connection_registry.unsubscribe(1, first)

        assert snapshot == [first]

    async def test_count_and_users(self, connection_registry):
        for user_id in (3, 1, 2):
            await connection_registry.subscribe(user_id, StubConnection(f"u{user_id}"))
        await connection_registry.subscribe(1, StubConnection("u1-bis"))

        assert await connection_registry.count() == 4
        assert await connection_registry.users() == [1, 2, 3]

    async def test_instances_are_independent(self):
        one, other = ConnectionRegistry(), ConnectionRegistry()

        await one.subscribe(1, StubConnection("c"))

        assert await other.connections_for(1) == []
        assert await other.count() == 0

    async def test_concurrent_subscriptions(self, connection_registry):
        connections = [StubConnection(f"c{i}") for i in range(50)]

        await asyncio.gather(*(connection_registry.subscribe(i % 5, c) for i, c in enumerate(connections)))

        assert await connection_registry.count() == 50
        assert len(await connection_registry.connections_for(0)) == 10

    def test_shard_count_must_be_positive(self):
        with pytest.raises(ValueError):
            ConnectionRegistry(shard_count=0)
