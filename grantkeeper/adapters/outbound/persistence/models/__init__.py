# grantkeeper/adapters/outbound/persistence/models/__init__.py

"""
ORM models.

Importing this package registers every table on ``Base.metadata``.
"""

from grantkeeper.adapters.outbound.persistence.models.base_model import Base
from grantkeeper.adapters.outbound.persistence.models.client_model import ClientModel
from grantkeeper.adapters.outbound.persistence.models.grant_model import GrantModel
from grantkeeper.adapters.outbound.persistence.models.session_model import SessionModel
from grantkeeper.adapters.outbound.persistence.models.notification_model import NotificationModel

__all__ = [
    "Base",
    "ClientModel",
    "GrantModel",
    "SessionModel",
    "NotificationModel",
]
