# grantkeeper/adapters/outbound/persistence/repositories/session_repository.py (async version)

"""
Repository for provider sessions.

Sessions are opaque handles with a TTL. A session at or past its
``expires_at`` behaves exactly like a missing one.
"""

from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from grantkeeper.adapters.configuration.config import settings
from grantkeeper.adapters.outbound.persistence.models import SessionModel
from grantkeeper.adapters.outbound.persistence.repositories.base_repository import AsyncStoreBase
from grantkeeper.application.ports.outbound import ISessionStore
from grantkeeper.domain.exceptions import NotFoundError
from grantkeeper.domain.models.session_domain_model import Session
from grantkeeper.domain.services.grant_service import GrantService, utcnow


class SessionRepository(AsyncStoreBase[SessionModel], ISessionStore):
    """
    Async implementation of the session store.
    """

    def __init__(
            self,
            session_factory: async_sessionmaker,
            clock: Callable[[], datetime] = utcnow,
            timeout: Optional[float] = None,
    ):
        super().__init__(SessionModel, session_factory, clock=clock, timeout=timeout)

    def _to_domain(self, row: SessionModel) -> Session:
        return Session(
            id=row.id,
            expires_at=row.expires_at,
            account_id=row.account_id,
            data=self._copy_payload(row.data or {}),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    @staticmethod
    def _account_of(payload: Dict[str, Any]) -> Optional[str]:
        account_id = payload.get("account_id")
        return str(account_id) if account_id is not None else None

    async def create(self, initial_payload: Dict[str, Any], ttl: Optional[timedelta] = None) -> str:
        """
        Create a session.

        Args:
            initial_payload: Session payload; its ``account_id`` key, when
                present, is also stored in its own column
            ttl: Lifetime of the session; defaults to ``SESSION_TTL_SECONDS``

        Returns:
            The new opaque session id
        """
        session_id = GrantService.new_grant_id()
        payload = self._copy_payload(dict(initial_payload or {}))
        if ttl is None:
            ttl = timedelta(seconds=settings.SESSION_TTL_SECONDS)
        expires_at = self.clock() + ttl

        async def operation(db: AsyncSession) -> str:
            db.add(SessionModel(
                id=session_id,
                account_id=self._account_of(payload),
                data=payload,
                expires_at=expires_at,
            ))
            await db.flush()
            return session_id

        await self._run("create", operation)
        self.logger.info(f"Session created, expires at {expires_at.isoformat()}")
        return session_id

    async def get(self, id: str) -> Session:
        now = self.clock()

        async def operation(db: AsyncSession) -> Session:
            result = await db.execute(
                select(SessionModel).where(SessionModel.id == id, SessionModel.expires_at > now)
            )
            row = result.scalar_one_or_none()
            if row is None:
                raise NotFoundError("Session", id)
            return self._to_domain(row)

        return await self._run("get", operation)

    async def update(self, id: str, mutator: Callable[[Dict[str, Any]], Dict[str, Any]]) -> Session:
        """
        Replace the payload with ``mutator(payload)``.

        The row is locked for the read (``SELECT ... FOR UPDATE`` where the
        backend supports it) and the complete new payload is written by one
        guarded UPDATE, so concurrent updates never interleave partially.

        Raises:
            NotFoundError: If the session is absent or expired
        """
        now = self.clock()

        async def operation(db: AsyncSession) -> Session:
            result = await db.execute(
                select(SessionModel)
                .where(SessionModel.id == id, SessionModel.expires_at > now)
                .with_for_update()
            )
            row = result.scalar_one_or_none()
            if row is None:
                raise NotFoundError("Session", id)

            payload = mutator(self._copy_payload(row.data or {}))
            if not isinstance(payload, dict):
                raise ValueError("Session mutator must return a dict")
            payload = self._copy_payload(payload)

            written = await db.execute(
                update(SessionModel)
                .where(SessionModel.id == id, SessionModel.expires_at > now)
                .values(data=payload, account_id=self._account_of(payload), updated_at=now)
                .returning(SessionModel.expires_at, SessionModel.created_at)
                .execution_options(synchronize_session=False)
            )
            stamps = written.first()
            if stamps is None:
                raise NotFoundError("Session", id)

            return Session(
                id=id,
                expires_at=stamps.expires_at,
                account_id=self._account_of(payload),
                data=payload,
                created_at=stamps.created_at,
                updated_at=now,
            )

        return await self._run("update", operation)

    async def touch(self, id: str, new_ttl: timedelta) -> Session:
        now = self.clock()
        expires_at = now + new_ttl

        async def operation(db: AsyncSession) -> Session:
            result = await db.execute(
                update(SessionModel)
                .where(SessionModel.id == id, SessionModel.expires_at > now)
                .values(expires_at=expires_at, updated_at=now)
                .returning(SessionModel.id)
                .execution_options(synchronize_session=False)
            )
            if result.scalar_one_or_none() is None:
                raise NotFoundError("Session", id)
            refreshed = await db.execute(select(SessionModel).where(SessionModel.id == id))
            return self._to_domain(refreshed.scalar_one())

        return await self._run("touch", operation)

    async def destroy(self, id: str) -> None:
        async def operation(db: AsyncSession) -> int:
            result = await db.execute(
                delete(SessionModel)
                .where(SessionModel.id == id)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount or 0

        if await self._run("destroy", operation):
            self.logger.info("Session destroyed")

    async def sweep_expired(self) -> int:
        now = self.clock()

        async def operation(db: AsyncSession) -> int:
            result = await db.execute(
                delete(SessionModel)
                .where(SessionModel.expires_at <= now)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount or 0

        removed = await self._run("sweep_expired", operation)
        if removed:
            self.logger.info(f"Swept {removed} expired session(s)")
        return removed

    async def destroy_for_account(self, account_id: str) -> int:
        """Log an account out everywhere."""

        async def operation(db: AsyncSession) -> int:
            result = await db.execute(
                delete(SessionModel)
                .where(SessionModel.account_id == str(account_id))
                .execution_options(synchronize_session=False)
            )
            return result.rowcount or 0

        removed = await self._run("destroy_for_account", operation)
        self.logger.info(f"Destroyed {removed} session(s) of account {account_id}")
        return removed
