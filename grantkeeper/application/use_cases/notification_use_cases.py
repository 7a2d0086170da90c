# grantkeeper/application/use_cases/notification_use_cases.py (async version)

"""
Service for notifications.

Publishing stores the notification first and only then tries the live
connections of the recipient. Delivery is best effort: a broken or slow
connection is pruned and logged, never reported to the publisher.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

from grantkeeper.adapters.configuration.config import settings
from grantkeeper.adapters.outbound.delivery.connection_registry import ConnectionRegistry
from grantkeeper.application.dtos.notification_dto import NotificationCreate, PublishResult
from grantkeeper.application.ports.inbound import INotificationFanout
from grantkeeper.application.ports.outbound import IConnection, INotificationRepository
from grantkeeper.domain.exceptions import DeliveryUnavailableError
from grantkeeper.domain.models.notification_domain_model import Notification

logger = logging.getLogger(__name__)

# Internal error: the server gave up on this connection
PRUNED_CLOSE_CODE = 1011


class NotificationFanoutService(INotificationFanout):
    """
    Service for publishing and managing notifications.

    Attributes:
        notifications: Durable notification store
        registry: Live connections, injected per application
        delivery_timeout: Seconds allowed for one delivery to one connection
    """

    def __init__(
            self,
            notifications: INotificationRepository,
            registry: ConnectionRegistry,
            delivery_timeout: Optional[float] = None,
    ):
        self.notifications = notifications
        self.registry = registry
        self.delivery_timeout = settings.DELIVERY_TIMEOUT_SECONDS if delivery_timeout is None else delivery_timeout

    async def _deliver(self, connection: IConnection, payload: Dict[str, Any]) -> Optional[DeliveryUnavailableError]:
        try:
            await asyncio.wait_for(connection.send(payload), timeout=self.delivery_timeout)
            return None
        except asyncio.CancelledError:
            raise
        except Exception as e:
            return DeliveryUnavailableError(connection.connection_id, e)

    async def _close(self, connection: IConnection) -> None:
        try:
            await asyncio.wait_for(connection.close(code=PRUNED_CLOSE_CODE), timeout=self.delivery_timeout)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.debug(f"Closing pruned connection {connection.connection_id} failed: {e}")

    async def deliver(self, notification: Notification) -> PublishResult:
        """
        Push a stored notification to every live connection of its recipient.

        Deliveries run concurrently, each under its own timeout. Failed
        connections are unsubscribed and closed.
        """
        result = PublishResult(notification=notification)

        connections = await self.registry.connections_for(notification.user_id)
        if not connections:
            logger.debug(f"No live connection for user {notification.user_id}; notification {notification.id} stored only")
            return result

        payload = notification.to_delivery_payload()
        outcomes = await asyncio.gather(*(self._deliver(c, payload) for c in connections))

        for connection, error in zip(connections, outcomes):
            if error is None:
                result.delivered += 1
                continue

            result.failed += 1
            result.failed_connections.append(connection.connection_id)
            logger.warning(f"{error} (user {notification.user_id}, notification {notification.id}); pruning")
            await self.registry.unsubscribe(notification.user_id, connection)
            await self._close(connection)

        return result

    async def publish(self, user_id: int, notification: NotificationCreate) -> PublishResult:
        """
        Persist a notification, then deliver it live.

        Args:
            user_id: Recipient
            notification: Notification content

        Returns:
            The stored notification and the delivery counts

        Raises:
            StoreUnavailableError: If the notification could not be stored;
                nothing is delivered in that case
        """
        stored = await self.notifications.create(
            user_id=user_id,
            notification_type_id=notification.notification_type_id,
            title=notification.title,
            message=notification.message,
            link_url=notification.link_url,
        )
        result = await self.deliver(stored)
        logger.info(
            f"Notification {stored.id} published to user {user_id} "
            f"(delivered={result.delivered}, failed={result.failed})"
        )
        return result

    async def publish_many(self, user_ids: Sequence[int], notification: NotificationCreate) -> List[PublishResult]:
        """Publish the same content to several recipients, one after another."""
        results = []
        for user_id in dict.fromkeys(user_ids):
            results.append(await self.publish(user_id, notification))
        return results

    async def list_for_user(self, user_id: int, unread_only: bool = False,
                            limit: int = 20, offset: int = 0) -> List[Notification]:
        return await self.notifications.list_for_user(user_id, unread_only=unread_only, limit=limit, offset=offset)

    async def unread_count(self, user_id: int) -> int:
        return await self.notifications.unread_count(user_id)

    async def statistics(self, user_id: int) -> Dict[str, Any]:
        return await self.notifications.statistics(user_id)

    async def mark_as_read(self, user_id: int, notification_id: int) -> Notification:
        return await self.notifications.mark_as_read(user_id, notification_id)

    async def mark_all_as_read(self, user_id: int) -> int:
        return await self.notifications.mark_all_as_read(user_id)

    async def delete(self, user_id: int, notification_id: int) -> None:
        await self.notifications.delete(user_id, notification_id)

    async def bulk_delete(self, user_id: int, notification_ids: Sequence[int]) -> int:
        return await self.notifications.bulk_delete(user_id, notification_ids)

    async def delete_all(self, user_id: int) -> int:
        return await self.notifications.delete_all(user_id)
