# grantkeeper/adapters/outbound/persistence/repositories/notification_repository.py (async version)

"""
Repository for notifications.

Every query is scoped to the recipient: a notification owned by another
user is reported as not found.
"""

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from grantkeeper.adapters.outbound.persistence.models import NotificationModel
from grantkeeper.adapters.outbound.persistence.repositories.base_repository import AsyncStoreBase
from grantkeeper.application.ports.outbound import INotificationRepository
from grantkeeper.domain.exceptions import NotFoundError
from grantkeeper.domain.models.notification_domain_model import Notification
from grantkeeper.domain.services.grant_service import utcnow


class NotificationRepository(AsyncStoreBase[NotificationModel], INotificationRepository):
    """
    Async implementation of the notification repository.
    """

    def __init__(
            self,
            session_factory: async_sessionmaker,
            clock: Callable[[], datetime] = utcnow,
            timeout: Optional[float] = None,
    ):
        super().__init__(NotificationModel, session_factory, clock=clock, timeout=timeout)

    @staticmethod
    def _to_domain(row: NotificationModel) -> Notification:
        return Notification(
            id=row.id,
            user_id=row.user_id,
            notification_type_id=row.notification_type_id,
            title=row.title,
            message=row.message,
            link_url=row.link_url,
            is_read=bool(row.is_read),
            created_at=row.created_at,
            read_at=row.read_at,
        )

    async def create(
            self,
            user_id: int,
            notification_type_id: int,
            title: str,
            message: str,
            link_url: Optional[str] = None,
    ) -> Notification:
        """
        Persist a notification. The row is committed when this returns.

        Returns:
            The stored notification with its identifier
        """
        now = self.clock()

        async def operation(db: AsyncSession) -> Notification:
            row = NotificationModel(
                user_id=user_id,
                notification_type_id=notification_type_id,
                title=title,
                message=message,
                link_url=link_url,
                is_read=False,
                created_at=now,
            )
            db.add(row)
            await db.flush()
            return self._to_domain(row)

        notification = await self._run("create", operation)
        self.logger.info(f"Notification {notification.id} created for user {user_id}")
        return notification

    async def get_for_user(self, user_id: int, notification_id: int) -> Notification:
        async def operation(db: AsyncSession) -> Notification:
            result = await db.execute(
                select(NotificationModel).where(
                    NotificationModel.id == notification_id,
                    NotificationModel.user_id == user_id,
                )
            )
            row = result.scalar_one_or_none()
            if row is None:
                raise NotFoundError("Notification", notification_id)
            return self._to_domain(row)

        return await self._run("get_for_user", operation)

    async def list_for_user(
            self,
            user_id: int,
            unread_only: bool = False,
            limit: int = 20,
            offset: int = 0,
    ) -> List[Notification]:
        """List a user's notifications, newest first."""

        async def operation(db: AsyncSession) -> List[Notification]:
            query = select(NotificationModel).where(NotificationModel.user_id == user_id)
            if unread_only:
                query = query.where(NotificationModel.is_read.is_(False))
            query = (
                query.order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())
                .offset(offset)
                .limit(limit)
            )
            result = await db.execute(query)
            return [self._to_domain(row) for row in result.scalars().all()]

        return await self._run("list_for_user", operation)

    async def unread_count(self, user_id: int) -> int:
        async def operation(db: AsyncSession) -> int:
            result = await db.execute(
                select(func.count())
                .select_from(NotificationModel)
                .where(NotificationModel.user_id == user_id, NotificationModel.is_read.is_(False))
            )
            return result.scalar() or 0

        return await self._run("unread_count", operation)

    async def statistics(self, user_id: int) -> Dict[str, Any]:
        """
        Totals for a user's notifications.

        Returns:
            Dictionary with ``total``, ``unread``, ``read`` and ``by_type``
            (notification_type_id to count)
        """
        async def operation(db: AsyncSession) -> Dict[str, Any]:
            result = await db.execute(
                select(
                    NotificationModel.notification_type_id,
                    NotificationModel.is_read,
                    func.count(),
                )
                .where(NotificationModel.user_id == user_id)
                .group_by(NotificationModel.notification_type_id, NotificationModel.is_read)
            )
            stats: Dict[str, Any] = {"total": 0, "unread": 0, "read": 0, "by_type": {}}
            for type_id, is_read, count in result.all():
                stats["total"] += count
                stats["read" if is_read else "unread"] += count
                stats["by_type"][type_id] = stats["by_type"].get(type_id, 0) + count
            return stats

        return await self._run("statistics", operation)

    async def mark_as_read(self, user_id: int, notification_id: int) -> Notification:
        now = self.clock()

        async def operation(db: AsyncSession) -> Notification:
            result = await db.execute(
                select(NotificationModel).where(
                    NotificationModel.id == notification_id,
                    NotificationModel.user_id == user_id,
                )
            )
            row = result.scalar_one_or_none()
            if row is None:
                raise NotFoundError("Notification", notification_id)
            if not row.is_read:
                row.is_read = True
                row.read_at = now
                await db.flush()
            return self._to_domain(row)

        return await self._run("mark_as_read", operation)

    async def mark_all_as_read(self, user_id: int) -> int:
        now = self.clock()

        async def operation(db: AsyncSession) -> int:
            result = await db.execute(
                update(NotificationModel)
                .where(NotificationModel.user_id == user_id, NotificationModel.is_read.is_(False))
                .values(is_read=True, read_at=now)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount or 0

        updated = await self._run("mark_all_as_read", operation)
        self.logger.info(f"Marked {updated} notification(s) of user {user_id} as read")
        return updated

    async def delete(self, user_id: int, notification_id: int) -> None:
        async def operation(db: AsyncSession) -> int:
            result = await db.execute(
                delete(NotificationModel)
                .where(NotificationModel.id == notification_id, NotificationModel.user_id == user_id)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount or 0

        if not await self._run("delete", operation):
            raise NotFoundError("Notification", notification_id)
        self.logger.info(f"Notification {notification_id} of user {user_id} removed")

    async def bulk_delete(self, user_id: int, notification_ids: Sequence[int]) -> int:
        """Delete the listed notifications owned by the user; others are skipped."""
        ids = list(notification_ids)
        if not ids:
            return 0

        async def operation(db: AsyncSession) -> int:
            result = await db.execute(
                delete(NotificationModel)
                .where(NotificationModel.user_id == user_id, NotificationModel.id.in_(ids))
                .execution_options(synchronize_session=False)
            )
            return result.rowcount or 0

        removed = await self._run("bulk_delete", operation)
        self.logger.info(f"Removed {removed} of {len(ids)} notification(s) of user {user_id}")
        return removed

    async def delete_all(self, user_id: int) -> int:
        async def operation(db: AsyncSession) -> int:
            result = await db.execute(
                delete(NotificationModel)
                .where(NotificationModel.user_id == user_id)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount or 0

        removed = await self._run("delete_all", operation)
        self.logger.info(f"Removed all {removed} notification(s) of user {user_id}")
        return removed
