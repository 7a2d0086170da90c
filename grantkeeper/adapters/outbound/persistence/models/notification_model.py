# grantkeeper/adapters/outbound/persistence/models/notification_model.py

"""
ORM model for the durable notification record.
"""

from sqlalchemy import Column, Integer, BigInteger, String, Text, Boolean, DateTime, Index, func
from grantkeeper.adapters.outbound.persistence.models.base_model import Base


class NotificationModel(Base):
    """
    System of record for "did the user ever receive this".

    Attributes:
        id: Stable identifier, also sent with every live delivery
        user_id: Recipient
        notification_type_id: Lookup id of the notification type
        title / message / link_url: Content
        is_read / read_at: Read state
        created_at: Creation time; defines delivery order per recipient
    """
    __tablename__ = "notifications"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    user_id = Column(BigInteger, nullable=False, index=True)
    notification_type_id = Column(Integer, nullable=False, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    link_url = Column(Text, nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    read_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("notifications_user_unread_idx", "user_id", "is_read"),
    )

    def __repr__(self) -> str:
        return f"<NotificationModel(id={self.id}, user_id={self.user_id}, is_read={self.is_read})>"
