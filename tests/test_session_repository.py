import asyncio
from datetime import timedelta

import pytest

from grantkeeper.domain.exceptions import NotFoundError


class TestSessionLifecycle:

    async def test_create_and_get(self, session_store, clock):
        session_id = await session_store.create({"account_id": 42, "acr": "urn:mace:low"}, timedelta(minutes=10))

        session = await session_store.get(session_id)

        assert session.id == session_id
        assert session.account_id == "42"
        assert session.data == {"account_id": 42, "acr": "urn:mace:low"}
        assert session.expires_at == clock() + timedelta(minutes=10)

    async def test_default_lifetime_comes_from_settings(self, session_store, clock):
        from grantkeeper.adapters.configuration.config import settings

        session_id = await session_store.create({"account_id": "a"})

        session = await session_store.get(session_id)
        assert session.expires_at == clock() + timedelta(seconds=settings.SESSION_TTL_SECONDS)

    async def test_session_ids_are_opaque_and_unique(self, session_store):
        ids = {await session_store.create({}, timedelta(minutes=1)) for _ in range(5)}

        assert len(ids) == 5
        assert all(len(session_id) >= 32 for session_id in ids)

    async def test_expired_session_is_not_found(self, session_store, clock):
        session_id = await session_store.create({"account_id": "a"}, timedelta(seconds=1))
        clock.advance(2)

        with pytest.raises(NotFoundError):
            await session_store.get(session_id)

    async def test_unknown_session_is_not_found(self, session_store):
        with pytest.raises(NotFoundError):
            await session_store.get("no-such-session")

    async def test_returned_payload_is_a_copy(self, session_store):
        session_id = await session_store.create({"nested": {"k": "v"}}, timedelta(minutes=1))

        session = await session_store.get(session_id)
        session.data["nested"]["k"] = "changed"

        assert (await session_store.get(session_id)).data == {"nested": {"k": "v"}}


class TestSessionUpdate:

    async def test_update_applies_mutator(self, session_store):
        session_id = await session_store.create({"account_id": "a", "logins": 1}, timedelta(minutes=5))

        updated = await session_store.update(session_id, lambda data: {**data, "logins": data["logins"] + 1})

        assert updated.data["logins"] == 2
        assert (await session_store.get(session_id)).data == {"account_id": "a", "logins": 2}

    async def test_update_tracks_account_change(self, session_store):
        session_id = await session_store.create({}, timedelta(minutes=5))

        updated = await session_store.update(session_id, lambda data: {**data, "account_id": "acc-9"})

        assert updated.account_id == "acc-9"
        assert await session_store.destroy_for_account("acc-9") == 1

    async def test_update_of_expired_session_is_not_found(self, session_store, clock):
        session_id = await session_store.create({}, timedelta(seconds=5))
        clock.advance(5)

        with pytest.raises(NotFoundError):
            await session_store.update(session_id, lambda data: data)

    async def test_mutator_must_return_a_dict(self, session_store):
        session_id = await session_store.create({"a": 1}, timedelta(minutes=5))

        with pytest.raises(ValueError):
            await session_store.update(session_id, lambda data: None)

        assert (await session_store.get(session_id)).data == {"a": 1}

    async def test_concurrent_updates_never_tear(self, session_store):
        session_id = await session_store.create({"writer": None, "stamp": None}, timedelta(minutes=5))

        def writer(name):
            return lambda data: {"writer": name, "stamp": f"{name}-stamp"}

        await asyncio.gather(*(session_store.update(session_id, writer(f"w{i}")) for i in range(5)))

        final = (await session_store.get(session_id)).data
        assert final["writer"] in {f"w{i}" for i in range(5)}
        assert final["stamp"] == f"{final['writer']}-stamp"


class TestSessionMaintenance:

    async def test_touch_extends_expiry(self, session_store, clock):
        session_id = await session_store.create({}, timedelta(seconds=30))
        clock.advance(20)

        touched = await session_store.touch(session_id, timedelta(seconds=30))
        clock.advance(20)

        assert touched.expires_at == clock() + timedelta(seconds=10)
        assert (await session_store.get(session_id)).id == session_id

    async def test_touch_cannot_revive_expired_session(self, session_store, clock):
        session_id = await session_store.create({}, timedelta(seconds=30))
        clock.advance(30)

        with pytest.raises(NotFoundError):
            await session_store.touch(session_id, timedelta(minutes=5))

    async def test_destroy_is_idempotent(self, session_store):
        session_id = await session_store.create({}, timedelta(minutes=5))

        await session_store.destroy(session_id)
        await session_store.destroy(session_id)

        with pytest.raises(NotFoundError):
            await session_store.get(session_id)

    async def test_sweep_removes_expired_sessions(self, session_store, clock):
        await session_store.create({}, timedelta(seconds=10))
        await session_store.create({}, timedelta(seconds=20))
        keep = await session_store.create({}, timedelta(minutes=10))
        clock.advance(20)

        assert await session_store.sweep_expired() == 2
        assert (await session_store.get(keep)).id == keep
        assert await session_store.sweep_expired() == 0

    async def test_destroy_for_account(self, session_store):
        first = await session_store.create({"account_id": "acc-1"}, timedelta(minutes=5))
        await session_store.create({"account_id": "acc-1"}, timedelta(minutes=5))
        other = await session_store.create({"account_id": "acc-2"}, timedelta(minutes=5))

        assert await session_store.destroy_for_account("acc-1") == 2

        with pytest.raises(NotFoundError):
            await session_store.get(first)
        assert (await session_store.get(other)).account_id == "acc-2"
