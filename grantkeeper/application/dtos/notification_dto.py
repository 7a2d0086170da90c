# grantkeeper/application/dtos/notification_dto.py

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field

from grantkeeper.application.dtos.base_dto import CustomBaseModel
from grantkeeper.domain.models.notification_domain_model import Notification


class NotificationCreate(CustomBaseModel):
    """Content of a notification to publish."""
    notification_type_id: int = Field(..., ge=1)
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    link_url: Optional[str] = None


class NotificationOutput(CustomBaseModel):
    id: int
    user_id: int
    notification_type_id: int
    title: str
    message: str
    link_url: Optional[str] = None
    is_read: bool
    created_at: Optional[datetime] = None
    read_at: Optional[datetime] = None


class NotificationStatistics(CustomBaseModel):
    total: int
    unread: int
    read: int
    by_type: Dict[int, int] = Field(default_factory=dict)


class UnreadCount(CustomBaseModel):
    unread: int


class BulkDelete(CustomBaseModel):
    notification_ids: List[int] = Field(..., min_length=1, max_length=500)


class AffectedCount(CustomBaseModel):
    count: int


class PublishRequest(CustomBaseModel):
    """Admin request publishing one notification to several users."""
    user_ids: List[int] = Field(..., min_length=1)
    notification: NotificationCreate


class PublishOutput(CustomBaseModel):
    notification: NotificationOutput
    delivered: int
    failed: int


@dataclass
class PublishResult:
    """
    Outcome of one publish.

    ``delivered`` and ``failed`` count live connections; the notification
    itself is stored whatever they say.
    """
    notification: Notification
    delivered: int = 0
    failed: int = 0
    failed_connections: List[str] = field(default_factory=list)
