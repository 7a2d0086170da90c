# grantkeeper/adapters/outbound/persistence/repositories/grant_repository.py (async version)

"""
Repository for grant records.

Implements IGrantStore on top of SQLAlchemy. Expiry is enforced in every
read predicate, so a grant past its ``exp`` is indistinguishable from one
that never existed. Single use is enforced by a compare-and-set UPDATE in
the database.
"""

from datetime import datetime
from typing import Callable, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from grantkeeper.adapters.outbound.persistence.models import GrantModel
from grantkeeper.adapters.outbound.persistence.repositories.base_repository import AsyncStoreBase
from grantkeeper.application.ports.outbound import IGrantStore
from grantkeeper.domain.exceptions import AlreadyConsumedError, DuplicateIdError, NotFoundError
from grantkeeper.domain.models.grant_domain_model import Grant, GrantKind
from grantkeeper.domain.services.grant_service import utcnow


class GrantRepository(AsyncStoreBase[GrantModel], IGrantStore):
    """
    Async implementation of the grant store.
    """

    def __init__(
            self,
            session_factory: async_sessionmaker,
            clock: Callable[[], datetime] = utcnow,
            timeout: Optional[float] = None,
    ):
        super().__init__(GrantModel, session_factory, clock=clock, timeout=timeout)

    def _to_domain(self, row: GrantModel) -> Grant:
        return Grant(
            id=row.id,
            kind=GrantKind(row.kind),
            client_id=row.client_id,
            exp=row.exp,
            account_id=row.account_id,
            grant_id=row.grant_id,
            jti=row.jti,
            iat=row.iat,
            user_code=row.user_code,
            data=self._copy_payload(row.data or {}),
            consumed=bool(row.consumed),
            consumed_at=row.consumed_at,
        )

    async def put(self, grant: Grant) -> Grant:
        """
        Insert a new grant.

        Raises:
            ValueError: If the grant has no expiry
            DuplicateIdError: If a grant with the same id exists
            NotFoundError: If the grant names an unregistered client
            StoreUnavailableError: If the store cannot be reached
        """
        if grant.exp is None:
            raise ValueError("A grant requires an expiry")

        async def operation(db: AsyncSession) -> Grant:
            db.add(GrantModel(
                id=grant.id,
                grant_id=grant.grant_id or grant.id,
                user_code=grant.user_code,
                client_id=grant.client_id,
                account_id=grant.account_id,
                kind=GrantKind(grant.kind).value,
                jti=grant.jti,
                iat=grant.iat,
                exp=grant.exp,
                data=self._copy_payload(grant.data or {}),
                consumed=grant.consumed,
                consumed_at=grant.consumed_at,
            ))
            await db.flush()
            return grant

        def on_conflict(error):
            if self._is_unique_violation(error):
                return DuplicateIdError("Grant", grant.id)
            if self._is_foreign_key_violation(error):
                return NotFoundError("Client", grant.client_id)
            return None

        stored = await self._run("put", operation, on_conflict=on_conflict)
        self.logger.info(f"Grant stored: {grant.id} ({GrantKind(grant.kind).value}, client {grant.client_id})")
        return stored

    async def get(self, id: str) -> Grant:
        """Return the grant while ``now < exp``; NotFoundError otherwise."""
        now = self.clock()

        async def operation(db: AsyncSession) -> Grant:
            result = await db.execute(
                select(GrantModel).where(GrantModel.id == id, GrantModel.exp > now)
            )
            row = result.scalar_one_or_none()
            if row is None:
                raise NotFoundError("Grant", id)
            return self._to_domain(row)

        return await self._run("get", operation)

    async def consume(self, id: str) -> Grant:
        """
        Mark a grant consumed exactly once.

        The UPDATE only matches an unconsumed, unexpired row, so among
        concurrent callers exactly one gets the row back. The others are told
        apart by a follow-up read in the same transaction: a grant that is
        still live was consumed by someone else, anything else is absent.

        Returns:
            The consumed grant

        Raises:
            AlreadyConsumedError: If the grant was consumed before
            NotFoundError: If the grant is absent, expired or revoked
            StoreUnavailableError: On timeout or store failure; the consume
                must then be treated as failed
        """
        now = self.clock()

        async def operation(db: AsyncSession) -> Grant:
            result = await db.execute(
                update(GrantModel)
                .where(
                    GrantModel.id == id,
                    GrantModel.consumed.is_(False),
                    GrantModel.exp > now,
                )
                .values(consumed=True, consumed_at=now)
                .returning(GrantModel.id)
                .execution_options(synchronize_session=False)
            )
            if result.scalar_one_or_none() is not None:
                consumed = await db.execute(select(GrantModel).where(GrantModel.id == id))
                return self._to_domain(consumed.scalar_one())

            existing = await db.execute(
                select(GrantModel.consumed).where(GrantModel.id == id, GrantModel.exp > now)
            )
            if existing.scalar_one_or_none() is not None:
                raise AlreadyConsumedError(id)
            raise NotFoundError("Grant", id)

        try:
            grant = await self._run("consume", operation)
        except AlreadyConsumedError:
            self.logger.warning(f"Grant {id} presented again after consumption")
            raise

        self.logger.info(f"Grant consumed: {id}")
        return grant

    async def revoke_family(self, grant_id: str) -> int:
        """
        Expire every live grant sharing ``grant_id``.

        Revocation is a logical delete (``exp = now``); the sweep removes the
        rows later. Calling it twice revokes nothing the second time.
        """
        now = self.clock()

        async def operation(db: AsyncSession) -> int:
            result = await db.execute(
                update(GrantModel)
                .where(GrantModel.grant_id == grant_id, GrantModel.exp > now)
                .values(exp=now)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount or 0

        revoked = await self._run("revoke_family", operation)
        self.logger.info(f"Grant family {grant_id} revoked ({revoked} grant(s))")
        return revoked

    async def sweep_expired(self) -> int:
        now = self.clock()

        async def operation(db: AsyncSession) -> int:
            result = await db.execute(
                delete(GrantModel)
                .where(GrantModel.exp <= now)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount or 0

        removed = await self._run("sweep_expired", operation)
        if removed:
            self.logger.info(f"Swept {removed} expired grant(s)")
        return removed

    async def find_by_user_code(self, user_code: str) -> Grant:
        """Device flow lookup; same expiry policy as :meth:`get`."""
        now = self.clock()

        async def operation(db: AsyncSession) -> Grant:
            result = await db.execute(
                select(GrantModel)
                .where(GrantModel.user_code == user_code, GrantModel.exp > now)
                .order_by(GrantModel.iat.desc())
                .limit(1)
            )
            row = result.scalar_one_or_none()
            if row is None:
                raise NotFoundError("Grant", user_code)
            return self._to_domain(row)

        return await self._run("find_by_user_code", operation)

    async def find_by_grant_id(self, grant_id: str, kind: GrantKind) -> Grant:
        now = self.clock()
        kind_value = GrantKind(kind).value

        async def operation(db: AsyncSession) -> Grant:
            result = await db.execute(
                select(GrantModel)
                .where(
                    GrantModel.grant_id == grant_id,
                    GrantModel.kind == kind_value,
                    GrantModel.exp > now,
                )
                .order_by(GrantModel.iat.desc())
                .limit(1)
            )
            row = result.scalar_one_or_none()
            if row is None:
                raise NotFoundError(kind_value, grant_id)
            return self._to_domain(row)

        return await self._run("find_by_grant_id", operation)

    async def destroy(self, id: str) -> None:
        async def operation(db: AsyncSession) -> int:
            result = await db.execute(
                delete(GrantModel)
                .where(GrantModel.id == id)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount or 0

        if await self._run("destroy", operation):
            self.logger.info(f"Grant destroyed: {id}")

    async def count_live_for_client(self, client_id: str) -> int:
        now = self.clock()

        async def operation(db: AsyncSession) -> int:
            result = await db.execute(
                select(func.count())
                .select_from(GrantModel)
                .where(GrantModel.client_id == client_id, GrantModel.exp > now)
            )
            return result.scalar() or 0

        return await self._run("count_live_for_client", operation)

    async def revoke_for_client(self, client_id: str) -> int:
        now = self.clock()

        async def operation(db: AsyncSession) -> int:
            result = await db.execute(
                update(GrantModel)
                .where(GrantModel.client_id == client_id, GrantModel.exp > now)
                .values(exp=now)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount or 0

        revoked = await self._run("revoke_for_client", operation)
        self.logger.info(f"Revoked {revoked} grant(s) of client {client_id}")
        return revoked

    async def purge_for_client(self, client_id: str) -> int:
        """Delete the dead grants of a client so the client row can go."""
        now = self.clock()

        async def operation(db: AsyncSession) -> int:
            result = await db.execute(
                delete(GrantModel)
                .where(GrantModel.client_id == client_id, GrantModel.exp <= now)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount or 0

        return await self._run("purge_for_client", operation)
