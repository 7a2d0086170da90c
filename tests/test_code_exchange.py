import asyncio
from datetime import timedelta

import pytest
import pytest_asyncio

from grantkeeper.adapters.configuration.config import settings
from grantkeeper.application.dtos.client_dto import ClientCreate
from grantkeeper.application.use_cases import CodeExchangeService
from grantkeeper.domain.exceptions import (
    AlreadyConsumedError,
    NotFoundError,
    RedirectMismatchError,
    StoreUnavailableError,
)
from grantkeeper.domain.models.grant_domain_model import GrantKind


class FailingConsumeStore:
    """Grant store whose consume never reaches the database."""

    def __init__(self, inner):
        self.inner = inner
        self.put_calls = 0

    def __getattr__(self, name):
        return getattr(self.inner, name)

    async def consume(self, id):
        raise StoreUnavailableError("consume timed out")

    async def put(self, grant):
        self.put_calls += 1
        return await self.inner.put(grant)


@pytest_asyncio.fixture
async def registered(client_registry):
    await client_registry.register(ClientCreate(
        client_id="C1",
        redirect_uris=["https://x/cb"],
        grant_types=["authorization_code", "refresh_token"],
    ))
    await client_registry.register(ClientCreate(client_id="C2", redirect_uris=["https://y/cb"]))


@pytest_asyncio.fixture
async def code(registered, issue_grant):
    return await issue_grant(account_id="acc-1", data={"scope": "openid offline_access"})


class TestCodeExchange:

    async def test_exchange_issues_tokens_in_the_code_family(self, code_exchange, grant_store, code):
        tokens = await code_exchange.exchange(code.id, "C1", "https://x/cb")

        assert tokens.grant_id == code.grant_id
        assert tokens.access_token.kind == GrantKind.ACCESS_TOKEN
        assert tokens.access_token.account_id == "acc-1"
        assert tokens.access_token.scope == "openid offline_access"
        assert tokens.refresh_token is not None
        assert tokens.refresh_token.grant_id == code.grant_id
        assert (await grant_store.get(tokens.access_token.id)).client_id == "C1"
        assert (await grant_store.get(code.id)).consumed is True

    async def test_client_without_refresh_grant_gets_access_token_only(self, code_exchange, registered, issue_grant):
        code = await issue_grant(client_id="C2")

        tokens = await code_exchange.exchange(code.id, "C2", "https://y/cb")

        assert tokens.refresh_token is None

    async def test_reused_code_revokes_the_family(self, code_exchange, grant_store, code):
        tokens = await code_exchange.exchange(code.id, "C1", "https://x/cb")

        with pytest.raises(AlreadyConsumedError):
            await code_exchange.exchange(code.id, "C1", "https://x/cb")

        for grant in (tokens.access_token, tokens.refresh_token):
            with pytest.raises(NotFoundError):
                await grant_store.get(grant.id)

    async def test_concurrent_exchanges_issue_tokens_once(self, code_exchange, code):
        results = await asyncio.gather(
            code_exchange.exchange(code.id, "C1", "https://x/cb"),
            code_exchange.exchange(code.id, "C1", "https://x/cb"),
            return_exceptions=True,
        )

        assert sum(isinstance(r, AlreadyConsumedError) for r in results) == 1
        assert sum(not isinstance(r, Exception) for r in results) == 1

    async def test_redirect_mismatch_leaves_code_unused(self, code_exchange, grant_store, code):
        with pytest.raises(RedirectMismatchError):
            await code_exchange.exchange(code.id, "C1", "https://x/cb/")

        assert (await grant_store.get(code.id)).consumed is False

    async def test_code_of_another_client_is_not_found(self, code_exchange, grant_store, code):
        with pytest.raises(NotFoundError):
            await code_exchange.exchange(code.id, "C2", "https://y/cb")

        assert (await grant_store.get(code.id)).consumed is False

    async def test_expired_code_is_not_found(self, code_exchange, code, clock):
        clock.advance(61)

        with pytest.raises(NotFoundError):
            await code_exchange.exchange(code.id, "C1", "https://x/cb")

    async def test_non_code_grant_is_not_found(self, code_exchange, registered, issue_grant):
        token = await issue_grant(GrantKind.ACCESS_TOKEN, client_id="C1")

        with pytest.raises(NotFoundError):
            await code_exchange.exchange(token.id, "C1", "https://x/cb")

    async def test_store_failure_rejects_the_exchange(self, grant_store, client_registry, clock, code):
        store = FailingConsumeStore(grant_store)
        service = CodeExchangeService(store, client_registry, clock=clock)

        with pytest.raises(StoreUnavailableError):
            await service.exchange(code.id, "C1", "https://x/cb")

        assert store.put_calls == 0


class TestIssueCode:

    async def test_issued_code_can_be_exchanged(self, code_exchange, grant_store, registered, clock):
        code = await code_exchange.issue_code("C1", "https://x/cb", "acc-7", data={"scope": "openid"})

        stored = await grant_store.get(code.id)
        assert stored.kind == GrantKind.AUTHORIZATION_CODE
        assert stored.grant_id == code.id
        assert stored.data == {"scope": "openid", "redirect_uri": "https://x/cb"}
        assert stored.exp == clock() + code_exchange.authorization_code_ttl

        tokens = await code_exchange.exchange(code.id, "C1", "https://x/cb")
        assert tokens.access_token.account_id == "acc-7"

    async def test_unregistered_redirect_issues_nothing(self, code_exchange, grant_store, registered):
        with pytest.raises(RedirectMismatchError):
            await code_exchange.issue_code("C1", "https://evil/cb", "acc-7")

        assert await grant_store.count_live_for_client("C1") == 0

    async def test_code_lifetime_defaults_to_settings(self, code_exchange):
        assert code_exchange.authorization_code_ttl == timedelta(seconds=settings.AUTHORIZATION_CODE_TTL_SECONDS)
