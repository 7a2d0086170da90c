# grantkeeper/adapters/outbound/persistence/repositories/client_repository.py (async version)

"""
Repository for client operations.

This module implements the repository that performs database operations
related to clients, implementing the IClientRepository interface.
"""

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from grantkeeper.adapters.outbound.persistence.models import ClientModel
from grantkeeper.adapters.outbound.persistence.repositories.base_repository import AsyncStoreBase
from grantkeeper.application.ports.outbound import IClientRepository
from grantkeeper.domain.exceptions import ClientInUseError, DuplicateClientIdError, NotFoundError
from grantkeeper.domain.models.client_domain_model import Client
from grantkeeper.domain.services.grant_service import utcnow

# Columns an update may touch; client_id and id are immutable
MUTABLE_FIELDS = (
    "client_secret",
    "redirect_uris",
    "grant_types",
    "response_types",
    "scopes",
    "client_name",
    "client_uri",
    "logo_uri",
    "token_endpoint_auth_method",
    "application_type",
    "subject_type",
    "id_token_signed_response_alg",
    "userinfo_signed_response_alg",
    "post_logout_redirect_uris",
)


class ClientRepository(AsyncStoreBase[ClientModel], IClientRepository):
    """
    Async implementation of the client repository.

    Works with domain ``Client`` objects only; validation and secret
    handling belong to the registry use case.
    """

    def __init__(
            self,
            session_factory: async_sessionmaker,
            clock: Callable[[], datetime] = utcnow,
            timeout: Optional[float] = None,
    ):
        super().__init__(ClientModel, session_factory, clock=clock, timeout=timeout)

    def _to_domain(self, row: ClientModel) -> Client:
        return Client(
            id=row.id,
            client_id=row.client_id,
            client_secret=row.client_secret,
            redirect_uris=list(row.redirect_uris or []),
            grant_types=list(row.grant_types or []),
            response_types=list(row.response_types or []),
            scopes=list(row.scopes or []),
            client_name=row.client_name,
            client_uri=row.client_uri,
            logo_uri=row.logo_uri,
            token_endpoint_auth_method=row.token_endpoint_auth_method,
            application_type=row.application_type,
            subject_type=row.subject_type,
            id_token_signed_response_alg=row.id_token_signed_response_alg,
            userinfo_signed_response_alg=row.userinfo_signed_response_alg,
            post_logout_redirect_uris=list(row.post_logout_redirect_uris or []),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    async def get_by_client_id(self, client_id: str) -> Optional[Client]:
        """
        Find a client by client_id.

        Args:
            client_id: Client identifier

        Returns:
            Client found or None if it doesn't exist

        Raises:
            StoreUnavailableError: In case of database error
        """
        async def operation(db: AsyncSession) -> Optional[Client]:
            result = await db.execute(select(ClientModel).where(ClientModel.client_id == client_id))
            row = result.scalar_one_or_none()
            return self._to_domain(row) if row is not None else None

        return await self._run("get_by_client_id", operation)

    async def create(self, client: Client) -> Client:
        """
        Persist a new client.

        Raises:
            DuplicateClientIdError: If the client_id is already registered
            StoreUnavailableError: In case of database error
        """
        now = self.clock()

        async def operation(db: AsyncSession) -> Client:
            row = ClientModel(
                id=client.id or client.client_id,
                client_id=client.client_id,
                created_at=now,
                updated_at=now,
                **{field: getattr(client, field) for field in MUTABLE_FIELDS},
            )
            db.add(row)
            await db.flush()
            return self._to_domain(row)

        def on_conflict(error):
            if self._is_unique_violation(error):
                return DuplicateClientIdError(client.client_id)
            return None

        created = await self._run("create", operation, on_conflict=on_conflict)
        self.logger.info(f"Client created: {created.id} (client_id: {client.client_id})")
        return created

    async def update(self, client_id: str, changes: Dict[str, Any]) -> Client:
        """
        Apply field changes to a client.

        Keys outside the mutable column set are ignored, so neither
        ``client_id`` nor ``id`` can change here.

        Raises:
            NotFoundError: If the client doesn't exist
        """
        now = self.clock()
        update_data = {k: v for k, v in changes.items() if k in MUTABLE_FIELDS}

        async def operation(db: AsyncSession) -> Client:
            result = await db.execute(
                select(ClientModel).where(ClientModel.client_id == client_id).with_for_update()
            )
            row = result.scalar_one_or_none()
            if row is None:
                raise NotFoundError("Client", client_id)

            for field, value in update_data.items():
                setattr(row, field, value)
            row.updated_at = now

            await db.flush()
            return self._to_domain(row)

        updated = await self._run("update", operation)
        self.logger.info(f"Client {client_id} updated ({', '.join(sorted(update_data)) or 'no fields'})")
        return updated

    async def delete(self, client_id: str) -> None:
        """
        Remove a client.

        Raises:
            NotFoundError: If the client doesn't exist
            ClientInUseError: If grant rows still reference the client
        """
        async def operation(db: AsyncSession) -> int:
            result = await db.execute(
                delete(ClientModel)
                .where(ClientModel.client_id == client_id)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount or 0

        removed = await self._run(
            "delete",
            operation,
            on_conflict=lambda error: ClientInUseError(client_id),
        )
        if not removed:
            raise NotFoundError("Client", client_id)

        self.logger.info(f"Client {client_id} removed")

    async def list(self, skip: int = 0, limit: int = 100) -> List[Client]:
        async def operation(db: AsyncSession) -> List[Client]:
            result = await db.execute(
                select(ClientModel)
                .order_by(ClientModel.created_at, ClientModel.client_id)
                .offset(skip)
                .limit(limit)
            )
            return [self._to_domain(row) for row in result.scalars().all()]

        return await self._run("list", operation)
