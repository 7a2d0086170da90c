# grantkeeper/application/use_cases/client_use_cases.py (async version)

"""
Service for client management.

This module implements the client registry: validated registration,
exact redirect URI matching, cached lookups, secret handling and the
guarded delete that refuses to orphan live grants.
"""

import logging
from dataclasses import asdict
from typing import Any, Dict, List, Optional, Union

from grantkeeper.adapters.outbound.cache.client_cache import ClientCache
from grantkeeper.adapters.outbound.security.credentials_manager import CredentialsManager
from grantkeeper.application.dtos.client_dto import (
    ClientCreate,
    ClientOutput,
    ClientRegistration,
    ClientUpdate,
)
from grantkeeper.application.ports.inbound import IClientRegistry
from grantkeeper.application.ports.outbound import IClientRepository, IGrantStore
from grantkeeper.domain.exceptions import (
    ClientInUseError,
    InvalidClientSpecError,
    InvalidCredentialsError,
    NotFoundError,
    RedirectMismatchError,
)
from grantkeeper.domain.models.client_domain_model import Client, TokenEndpointAuthMethod
from grantkeeper.domain.services.client_validation import ClientSpecValidator

logger = logging.getLogger(__name__)

# Fields an update may reset to null
NULLABLE_FIELDS = {"client_name", "client_uri", "logo_uri", "userinfo_signed_response_alg"}


class ClientRegistryService(IClientRegistry):
    """
    Service for client management.

    The cache is read-through and is invalidated synchronously by every
    write, before the write call returns.
    """

    def __init__(self, clients: IClientRepository, grants: IGrantStore, cache: Optional[ClientCache] = None):
        self.clients = clients
        self.grants = grants
        self.cache = cache if cache is not None else ClientCache()

    @staticmethod
    def _output(client: Client) -> ClientOutput:
        return ClientOutput.model_validate(client)

    async def _load(self, client_id: str) -> Client:
        client = await self.clients.get_by_client_id(client_id)
        if client is None:
            raise NotFoundError("Client", client_id)
        return client

    async def register(self, spec: ClientCreate) -> ClientRegistration:
        """
        Validate and register a new client.

        Args:
            spec: Registration data

        Returns:
            The registered client and, for confidential clients, the plain
            secret (only returned here)

        Raises:
            InvalidClientSpecError: If the registration data is invalid
            DuplicateClientIdError: If the client_id is taken
        """
        data = spec.model_dump()
        ClientSpecValidator.ensure_valid(data)

        client_id = data.pop("client_id") or CredentialsManager.generate_client_id()

        plain_secret = None
        hashed_secret = None
        if data["token_endpoint_auth_method"] != TokenEndpointAuthMethod.NONE.value:
            plain_secret = CredentialsManager.generate_client_secret()
            hashed_secret = await CredentialsManager.hash_secret(plain_secret)

        client = Client(id=client_id, client_id=client_id, client_secret=hashed_secret, **data)
        created = await self.clients.create(client)
        self.cache.invalidate(client_id)

        logger.info(f"Client registered: {client_id} ({'confidential' if plain_secret else 'public'})")
        return ClientRegistration(client=self._output(created), client_secret=plain_secret)

    async def lookup(self, client_id: str) -> Client:
        """
        Return a registered client, from the cache when possible.

        Raises:
            NotFoundError: If the client doesn't exist
        """
        cached = self.cache.get(client_id)
        if cached is not None:
            return cached

        generation = self.cache.generation(client_id)
        client = await self._load(client_id)
        self.cache.set(client, generation)
        return client

    async def authorize_redirect(self, client_id: str, redirect_uri: str) -> bool:
        """
        True iff ``redirect_uri`` equals a registered URI character for
        character. No normalisation, prefix or wildcard matching.
        """
        try:
            client = await self.lookup(client_id)
        except NotFoundError:
            return False
        return any(redirect_uri == registered for registered in client.redirect_uris)

    async def require_redirect(self, client_id: str, redirect_uri: str) -> Client:
        """
        Like :meth:`authorize_redirect` but raises on mismatch.

        Raises:
            RedirectMismatchError: If the URI is not registered for the client
        """
        if not await self.authorize_redirect(client_id, redirect_uri):
            logger.warning(f"Redirect URI mismatch for client {client_id}: {redirect_uri!r}")
            raise RedirectMismatchError(client_id, redirect_uri)
        return await self.lookup(client_id)

    async def update(self, client_id: str, changes: Union[ClientUpdate, Dict[str, Any]]) -> Client:
        """
        Apply administrative changes to a client.

        The merged client is validated as a whole. ``client_id`` cannot be
        changed. Moving a client to ``none`` drops its secret; moving a
        public client to a confidential method leaves it without a secret
        until :meth:`rotate_secret` is called.

        Raises:
            NotFoundError: If the client doesn't exist
            InvalidClientSpecError: If the merged client is invalid
        """
        data = changes.changes() if isinstance(changes, ClientUpdate) else dict(changes)

        requested_id = data.pop("client_id", None)
        if requested_id is not None and requested_id != client_id:
            raise InvalidClientSpecError(fields={"client_id": "client_id cannot be changed"})
        data.pop("id", None)
        data.pop("client_secret", None)
        data = {k: v for k, v in data.items() if v is not None or k in NULLABLE_FIELDS}

        current = await self._load(client_id)
        merged = asdict(current)
        merged.update(data)
        ClientSpecValidator.ensure_valid(merged)

        if data.get("token_endpoint_auth_method") == TokenEndpointAuthMethod.NONE.value:
            data["client_secret"] = None

        self.cache.invalidate(client_id)
        try:
            updated = await self.clients.update(client_id, data)
        finally:
            self.cache.invalidate(client_id)

        logger.info(f"Client updated: {client_id}")
        return updated

    async def delete(self, client_id: str, cascade: bool = False) -> None:
        """
        Delete a client.

        Args:
            client_id: Client identifier
            cascade: Revoke the live grants of the client instead of refusing

        Raises:
            NotFoundError: If the client doesn't exist
            ClientInUseError: If live grants reference it and cascade is off
        """
        await self._load(client_id)

        live = await self.grants.count_live_for_client(client_id)
        if live and not cascade:
            logger.warning(f"Refusing to delete client {client_id}: {live} live grant(s)")
            raise ClientInUseError(client_id, live)

        if live:
            await self.grants.revoke_for_client(client_id)

        self.cache.invalidate(client_id)
        try:
            await self.grants.purge_for_client(client_id)
            await self.clients.delete(client_id)
        finally:
            self.cache.invalidate(client_id)

        logger.info(f"Client deleted: {client_id} (cascade={cascade}, revoked={live})")

    async def list(self, skip: int = 0, limit: int = 100) -> List[Client]:
        return await self.clients.list(skip=skip, limit=limit)

    async def rotate_secret(self, client_id: str) -> ClientRegistration:
        """
        Replace the secret of a confidential client.

        Returns:
            The client and its new plain secret

        Raises:
            NotFoundError: If the client doesn't exist
            InvalidClientSpecError: If the client is public
        """
        client = await self._load(client_id)
        if not client.is_confidential:
            raise InvalidClientSpecError(
                "Public clients have no secret",
                fields={"token_endpoint_auth_method": "client uses 'none'"},
            )

        plain_secret = CredentialsManager.generate_client_secret()
        hashed_secret = await CredentialsManager.hash_secret(plain_secret)

        self.cache.invalidate(client_id)
        try:
            updated = await self.clients.update(client_id, {"client_secret": hashed_secret})
        finally:
            self.cache.invalidate(client_id)

        logger.info(f"Secret rotated for client {client_id}")
        return ClientRegistration(client=self._output(updated), client_secret=plain_secret)

    async def authenticate(self, client_id: str, client_secret: str) -> Client:
        """
        Authenticate a confidential client by its secret.

        Raises:
            InvalidCredentialsError: If the client is unknown, public, or the
                secret does not match
        """
        try:
            client = await self.lookup(client_id)
        except NotFoundError:
            logger.warning(f"Authentication attempt with non-existent client_id: {client_id}")
            raise InvalidCredentialsError("Invalid client credentials")

        if not client.is_confidential:
            logger.warning(f"Secret authentication attempt for public client: {client_id}")
            raise InvalidCredentialsError("Invalid client credentials")

        if not await CredentialsManager.verify_secret(client_secret, client.client_secret):
            logger.warning(f"Authentication attempt with incorrect secret: {client_id}")
            raise InvalidCredentialsError("Invalid client credentials")

        return client
