import pytest

from grantkeeper.application.dtos.client_dto import ClientCreate, ClientUpdate
from grantkeeper.domain.exceptions import (
    ClientInUseError,
    DuplicateClientIdError,
    InvalidClientSpecError,
    InvalidCredentialsError,
    NotFoundError,
    RedirectMismatchError,
)
from grantkeeper.domain.models.grant_domain_model import GrantKind
from grantkeeper.domain.services.client_validation import ClientSpecValidator


def web_client(client_id="C1", **overrides):
    fields = {"client_id": client_id, "redirect_uris": ["https://x/cb"]}
    fields.update(overrides)
    return ClientCreate(**fields)


class TestClientSpecValidator:

    @pytest.mark.parametrize("uri", [
        "https://app.example.com/callback",
        "http://localhost:8080/cb",
        "https://x/cb?foo=bar",
    ])
    def test_valid_web_redirect_uris(self, uri):
        valid, message = ClientSpecValidator.validate_redirect_uri(uri)
        assert valid, message

    @pytest.mark.parametrize("uri", [
        "",
        "/relative/cb",
        "https://x/cb#fragment",
        "https:///nohost",
        "https://x/c b",
        "com.example.app:/cb",
    ])
    def test_invalid_web_redirect_uris(self, uri):
        valid, _ = ClientSpecValidator.validate_redirect_uri(uri)
        assert not valid

    def test_native_clients_may_use_private_schemes(self):
        valid, message = ClientSpecValidator.validate_redirect_uri("com.example.app:/cb", "native")
        assert valid, message

    def test_code_flow_requires_a_redirect_uri(self):
        errors = ClientSpecValidator.validate({"grant_types": ["authorization_code"], "response_types": ["code"]})
        assert "redirect_uris" in errors

    def test_machine_client_needs_no_redirect_uri(self):
        errors = ClientSpecValidator.validate({
            "grant_types": ["client_credentials"],
            "response_types": ["none"],
        })
        assert errors == {}

    def test_unknown_values_are_reported_per_field(self):
        errors = ClientSpecValidator.validate({
            "redirect_uris": ["https://x/cb"],
            "grant_types": ["authorization_code", "password"],
            "scopes": ["openid", "root"],
            "token_endpoint_auth_method": "magic",
            "id_token_signed_response_alg": "none",
        })
        assert set(errors) == {"grant_types", "scopes", "token_endpoint_auth_method", "id_token_signed_response_alg"}

    @pytest.mark.parametrize("field", ["client_uri", "logo_uri"])
    def test_malformed_metadata_uri_is_a_field_error(self, field):
        errors = ClientSpecValidator.validate({"redirect_uris": ["https://x/cb"], field: "http://[bad"})
        assert set(errors) == {field}

    def test_ensure_valid_raises_with_field_details(self):
        with pytest.raises(InvalidClientSpecError) as exc_info:
            ClientSpecValidator.ensure_valid({"redirect_uris": ["not a uri"]})
        assert "redirect_uris" in exc_info.value.fields


class TestRegistration:

    async def test_register_confidential_client_returns_secret_once(self, client_registry, client_repository):
        registration = await client_registry.register(web_client())

        assert registration.client.client_id == "C1"
        assert registration.client_secret
        stored = await client_repository.get_by_client_id("C1")
        assert stored.client_secret != registration.client_secret
        assert not hasattr(registration.client, "client_secret")

    async def test_register_public_client_has_no_secret(self, client_registry):
        registration = await client_registry.register(web_client(token_endpoint_auth_method="none"))

        assert registration.client_secret is None
        assert (await client_registry.lookup("C1")).client_secret is None

    async def test_client_id_is_generated_when_omitted(self, client_registry):
        registration = await client_registry.register(ClientCreate(redirect_uris=["https://x/cb"]))

        assert len(registration.client.client_id) >= 16
        assert (await client_registry.lookup(registration.client.client_id)).redirect_uris == ["https://x/cb"]

    async def test_duplicate_client_id_is_rejected(self, client_registry):
        await client_registry.register(web_client())

        with pytest.raises(DuplicateClientIdError):
            await client_registry.register(web_client(redirect_uris=["https://y/cb"]))

    async def test_malformed_client_uri_is_an_invalid_spec(self, client_registry):
        with pytest.raises(InvalidClientSpecError) as exc_info:
            await client_registry.register(web_client(client_uri="http://[bad"))

        assert "client_uri" in exc_info.value.fields

    async def test_invalid_spec_registers_nothing(self, client_registry):
        with pytest.raises(InvalidClientSpecError):
            await client_registry.register(web_client(redirect_uris=[]))

        with pytest.raises(NotFoundError):
            await client_registry.lookup("C1")


class TestRedirectMatching:

    async def test_exact_match_only(self, client_registry):
        await client_registry.register(web_client(redirect_uris=["https://x/cb", "https://x/cb2"]))

        assert await client_registry.authorize_redirect("C1", "https://x/cb")
        assert await client_registry.authorize_redirect("C1", "https://x/cb2")
        for candidate in ("https://x/cb/", "https://X/cb", "https://x/cb?x=1", "https://x/c", "http://x/cb", "https://x/cb#"):
            assert not await client_registry.authorize_redirect("C1", candidate)

    async def test_unknown_client_never_matches(self, client_registry):
        assert not await client_registry.authorize_redirect("ghost", "https://x/cb")

    async def test_require_redirect_raises_on_mismatch(self, client_registry):
        await client_registry.register(web_client())

        assert (await client_registry.require_redirect("C1", "https://x/cb")).client_id == "C1"
        with pytest.raises(RedirectMismatchError):
            await client_registry.require_redirect("C1", "https://x/other")


class TestCaching:

    async def test_lookup_is_served_from_cache(self, client_registry, client_repository, client_cache, monotonic):
        await client_registry.register(web_client())
        await client_registry.lookup("C1")
        assert len(client_cache) == 1

        # Bypass the registry: the cache keeps the old value until its TTL runs out
        await client_repository.update("C1", {"redirect_uris": ["https://changed/cb"]})
        assert (await client_registry.lookup("C1")).redirect_uris == ["https://x/cb"]

        monotonic.advance(31)
        assert (await client_registry.lookup("C1")).redirect_uris == ["https://changed/cb"]

    async def test_update_is_visible_immediately(self, client_registry):
        await client_registry.register(web_client())
        assert await client_registry.authorize_redirect("C1", "https://x/cb")

        await client_registry.update("C1", ClientUpdate(redirect_uris=["https://y/cb"]))

        assert not await client_registry.authorize_redirect("C1", "https://x/cb")
        assert await client_registry.authorize_redirect("C1", "https://y/cb")

    async def test_delete_is_visible_immediately(self, client_registry):
        await client_registry.register(web_client())
        await client_registry.lookup("C1")

        await client_registry.delete("C1")

        with pytest.raises(NotFoundError):
            await client_registry.lookup("C1")

    async def test_changing_a_looked_up_client_leaves_the_cache_alone(self, client_registry):
        await client_registry.register(web_client())

        client = await client_registry.lookup("C1")
        client.redirect_uris.append("https://evil/cb")

        assert (await client_registry.lookup("C1")).redirect_uris == ["https://x/cb"]
        assert not await client_registry.authorize_redirect("C1", "https://evil/cb")

    def test_stale_read_is_not_cached_after_invalidation(self, client_cache):
        from grantkeeper.domain.models.client_domain_model import Client

        generation = client_cache.generation("C1")
        client_cache.invalidate("C1")

        assert client_cache.set(Client(id="C1", client_id="C1", client_secret=None), generation) is False
        assert client_cache.get("C1") is None


class TestUpdate:

    async def test_client_id_cannot_change(self, client_registry):
        await client_registry.register(web_client())

        with pytest.raises(InvalidClientSpecError):
            await client_registry.update("C1", ClientUpdate(client_id="C2"))

    async def test_merged_client_is_validated(self, client_registry):
        await client_registry.register(web_client())

        with pytest.raises(InvalidClientSpecError):
            await client_registry.update("C1", ClientUpdate(redirect_uris=[]))
        assert (await client_registry.lookup("C1")).redirect_uris == ["https://x/cb"]

    async def test_only_sent_fields_change(self, client_registry):
        await client_registry.register(web_client(client_name="Original"))

        updated = await client_registry.update("C1", ClientUpdate(scopes=["openid"]))

        assert updated.scopes == ["openid"]
        assert updated.client_name == "Original"
        assert updated.redirect_uris == ["https://x/cb"]

    async def test_switching_to_public_drops_secret(self, client_registry):
        registration = await client_registry.register(web_client())

        updated = await client_registry.update("C1", ClientUpdate(token_endpoint_auth_method="none"))

        assert updated.client_secret is None
        with pytest.raises(InvalidCredentialsError):
            await client_registry.authenticate("C1", registration.client_secret)

    async def test_update_of_unknown_client_is_not_found(self, client_registry):
        with pytest.raises(NotFoundError):
            await client_registry.update("ghost", ClientUpdate(client_name="x"))


class TestDelete:

    async def test_delete_with_live_grants_is_refused(self, client_registry, issue_grant):
        await client_registry.register(web_client())
        await issue_grant(client_id="C1")

        with pytest.raises(ClientInUseError) as exc_info:
            await client_registry.delete("C1")

        assert exc_info.value.live_grants == 1
        assert (await client_registry.lookup("C1")).client_id == "C1"

    async def test_cascade_revokes_grants(self, client_registry, grant_store, issue_grant):
        await client_registry.register(web_client())
        code = await issue_grant(client_id="C1")
        token = await issue_grant(GrantKind.ACCESS_TOKEN, client_id="C1", ttl=3600)

        await client_registry.delete("C1", cascade=True)

        with pytest.raises(NotFoundError):
            await client_registry.lookup("C1")
        for grant in (code, token):
            with pytest.raises(NotFoundError):
                await grant_store.get(grant.id)

    async def test_delete_after_grants_expired(self, client_registry, issue_grant, clock):
        await client_registry.register(web_client())
        await issue_grant(client_id="C1", ttl=10)
        clock.advance(10)

        await client_registry.delete("C1")

        assert await client_registry.list() == []

    async def test_delete_unknown_client_is_not_found(self, client_registry):
        with pytest.raises(NotFoundError):
            await client_registry.delete("ghost")


class TestSecrets:

    async def test_authenticate(self, client_registry):
        registration = await client_registry.register(web_client())

        client = await client_registry.authenticate("C1", registration.client_secret)

        assert client.client_id == "C1"
        with pytest.raises(InvalidCredentialsError):
            await client_registry.authenticate("C1", "wrong-secret")
        with pytest.raises(InvalidCredentialsError):
            await client_registry.authenticate("ghost", registration.client_secret)

    async def test_public_client_cannot_authenticate_with_secret(self, client_registry):
        await client_registry.register(web_client(token_endpoint_auth_method="none"))

        with pytest.raises(InvalidCredentialsError):
            await client_registry.authenticate("C1", "anything")

    async def test_rotate_secret_invalidates_old_secret(self, client_registry):
        original = await client_registry.register(web_client())

        rotated = await client_registry.rotate_secret("C1")

        assert rotated.client_secret != original.client_secret
        assert (await client_registry.authenticate("C1", rotated.client_secret)).client_id == "C1"
        with pytest.raises(InvalidCredentialsError):
            await client_registry.authenticate("C1", original.client_secret)

    async def test_rotate_secret_of_public_client_is_rejected(self, client_registry):
        await client_registry.register(web_client(token_endpoint_auth_method="none"))

        with pytest.raises(InvalidClientSpecError):
            await client_registry.rotate_secret("C1")


class TestListing:

    async def test_list_pages_through_clients(self, client_registry, clock):
        for index in range(3):
            await client_registry.register(web_client(client_id=f"C{index}"))
            clock.advance(1)

        everything = await client_registry.list()
        page = await client_registry.list(skip=1, limit=1)

        assert {c.client_id for c in everything} == {"C0", "C1", "C2"}
        assert len(page) == 1


class TestClientRepository:

    async def test_updates_within_the_same_second(self, client_registry, client_repository):
        await client_registry.register(web_client(client_name="Original"))

        first = await client_repository.update("C1", {"client_name": "renamed"})
        second = await client_repository.update("C1", {"client_name": "renamed again"})

        assert first.client_name == "renamed"
        assert second.client_name == "renamed again"
        assert second.updated_at == first.updated_at
        assert (await client_repository.get_by_client_id("C1")).client_name == "renamed again"

    async def test_rotating_twice_within_the_same_second(self, client_registry):
        await client_registry.register(web_client())

        first = await client_registry.rotate_secret("C1")
        second = await client_registry.rotate_secret("C1")

        assert (await client_registry.authenticate("C1", second.client_secret)).client_id == "C1"
        with pytest.raises(InvalidCredentialsError):
            await client_registry.authenticate("C1", first.client_secret)

    async def test_delete_with_referencing_grants_is_client_in_use(self, client_registry, client_repository,
                                                                   grant_store, issue_grant, clock):
        await client_registry.register(web_client())
        grant = await issue_grant(client_id="C1", ttl=10)
        clock.advance(10)

        # Expired but not yet swept: the row still references the client
        with pytest.raises(ClientInUseError):
            await client_repository.delete("C1")

        assert await grant_store.purge_for_client("C1") == 1
        await client_repository.delete("C1")
        assert await client_repository.get_by_client_id("C1") is None
        with pytest.raises(NotFoundError):
            await grant_store.get(grant.id)
