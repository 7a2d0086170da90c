# grantkeeper/adapters/inbound/api/v1/endpoints/notification_endpoint.py

"""
Notification endpoints.

Users manage their own notifications (identity from the bearer JWT).
Publishing is an admin operation. Live delivery goes over the WebSocket
endpoint, which registers the socket in the connection registry for as
long as it stays open.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Query, Response, WebSocket, WebSocketDisconnect, status
from fastapi_pagination import LimitOffsetParams

from grantkeeper.adapters.inbound.api.deps import (
    get_connection_registry,
    get_current_user_id,
    get_notification_service,
    require_admin,
)
from grantkeeper.adapters.outbound.delivery.connection_registry import ConnectionRegistry
from grantkeeper.adapters.outbound.delivery.websocket_connection import WebSocketConnection
from grantkeeper.adapters.outbound.security.credentials_manager import CredentialsManager
from grantkeeper.application.dtos.notification_dto import (
    AffectedCount,
    BulkDelete,
    NotificationOutput,
    NotificationStatistics,
    PublishOutput,
    PublishRequest,
    UnreadCount,
)
from grantkeeper.application.use_cases.notification_use_cases import NotificationFanoutService
from grantkeeper.domain.exceptions import InvalidCredentialsError
from grantkeeper.shared.utils.pagination import limit_offset_params

# Configure logger
logger = logging.getLogger(__name__)

router = APIRouter()
ws_router = APIRouter()


@router.post(
    "/publish",
    response_model=List[PublishOutput],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def publish_notification(
        body: PublishRequest,
        service: NotificationFanoutService = Depends(get_notification_service),
):
    """Store a notification for each user and push it to their live connections."""
    results = await service.publish_many(body.user_ids, body.notification)
    return [
        PublishOutput(
            notification=NotificationOutput.model_validate(result.notification),
            delivered=result.delivered,
            failed=result.failed,
        )
        for result in results
    ]


@router.get("", response_model=List[NotificationOutput])
async def list_notifications(
        unread_only: bool = Query(False),
        params: LimitOffsetParams = Depends(limit_offset_params),
        user_id: int = Depends(get_current_user_id),
        service: NotificationFanoutService = Depends(get_notification_service),
):
    """List the caller's notifications, newest first."""
    notifications = await service.list_for_user(
        user_id, unread_only=unread_only, limit=params.limit, offset=params.offset
    )
    return [NotificationOutput.model_validate(n) for n in notifications]


@router.get("/unread-count", response_model=UnreadCount)
async def unread_count(
        user_id: int = Depends(get_current_user_id),
        service: NotificationFanoutService = Depends(get_notification_service),
):
    return UnreadCount(unread=await service.unread_count(user_id))


@router.get("/statistics", response_model=NotificationStatistics)
async def statistics(
        user_id: int = Depends(get_current_user_id),
        service: NotificationFanoutService = Depends(get_notification_service),
):
    return NotificationStatistics(**await service.statistics(user_id))


@router.post("/read-all", response_model=AffectedCount)
async def mark_all_as_read(
        user_id: int = Depends(get_current_user_id),
        service: NotificationFanoutService = Depends(get_notification_service),
):
    return AffectedCount(count=await service.mark_all_as_read(user_id))


@router.post("/bulk-delete", response_model=AffectedCount)
async def bulk_delete(
        body: BulkDelete,
        user_id: int = Depends(get_current_user_id),
        service: NotificationFanoutService = Depends(get_notification_service),
):
    return AffectedCount(count=await service.bulk_delete(user_id, body.notification_ids))


@router.post("/{notification_id}/read", response_model=NotificationOutput)
async def mark_as_read(
        notification_id: int,
        user_id: int = Depends(get_current_user_id),
        service: NotificationFanoutService = Depends(get_notification_service),
):
    return NotificationOutput.model_validate(await service.mark_as_read(user_id, notification_id))


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(
        notification_id: int,
        user_id: int = Depends(get_current_user_id),
        service: NotificationFanoutService = Depends(get_notification_service),
):
    await service.delete(user_id, notification_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("", response_model=AffectedCount)
async def delete_all(
        user_id: int = Depends(get_current_user_id),
        service: NotificationFanoutService = Depends(get_notification_service),
):
    return AffectedCount(count=await service.delete_all(user_id))


@ws_router.websocket("/ws/notifications")
async def notifications_socket(
        websocket: WebSocket,
        token: str = Query(""),
        registry: ConnectionRegistry = Depends(get_connection_registry),
):
    """
    Live notification channel.

    The socket is subscribed under the token's user once accepted and
    unsubscribed when it closes. A socket pruned by the fan-out is closed
    with code 1011. Text frames ``ping`` are answered with a
    ``pong`` event; anything else from the client is ignored.
    """
    try:
        user_id = await CredentialsManager.verify_access_token(token)
    except InvalidCredentialsError as e:
        logger.warning(f"WebSocket connection rejected: {e}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    connection = WebSocketConnection(websocket)
    await registry.subscribe(user_id, connection)

    try:
        await connection.send({"type": "connected", "connection_id": connection.connection_id, "user_id": user_id})
        while True:
            message = await websocket.receive_text()
            if message.strip().lower() == "ping":
                await connection.send({"type": "pong"})
    except WebSocketDisconnect:
        logger.info(f"WebSocket {connection.connection_id} of user {user_id} disconnected")
    except RuntimeError as e:
        # Raised by starlette once the socket was closed from our side
        logger.info(f"WebSocket {connection.connection_id} of user {user_id} closed: {e}")
    finally:
        await registry.unsubscribe(user_id, connection)
