# grantkeeper/domain/models/notification_domain_model.py

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

DELIVERY_EVENT_TYPE = "notification"


@dataclass
class Notification:
    """Durable notification record; one recipient per row."""
    id: int
    user_id: int
    notification_type_id: int
    title: str
    message: str
    link_url: Optional[str] = None
    is_read: bool = False
    created_at: Optional[datetime] = None
    read_at: Optional[datetime] = None

    def to_delivery_payload(self) -> Dict[str, Any]:
        """
        Build the live-delivery event.

        The stable ``id`` lets a client that receives the same notification
        over two channels drop the duplicate.
        """
        return {
            "type": DELIVERY_EVENT_TYPE,
            "id": self.id,
            "user_id": self.user_id,
            "notification_type_id": self.notification_type_id,
            "title": self.title,
            "message": self.message,
            "link_url": self.link_url,
            "is_read": self.is_read,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
