# grantkeeper/adapters/outbound/persistence/repositories/__init__.py (async version)

"""
Store repositories.

Each repository implements one outbound port on top of SQLAlchemy and is
built with the application's session factory.
"""

from grantkeeper.adapters.outbound.persistence.repositories.base_repository import AsyncStoreBase
from grantkeeper.adapters.outbound.persistence.repositories.client_repository import ClientRepository
from grantkeeper.adapters.outbound.persistence.repositories.grant_repository import GrantRepository
from grantkeeper.adapters.outbound.persistence.repositories.notification_repository import NotificationRepository
from grantkeeper.adapters.outbound.persistence.repositories.session_repository import SessionRepository

__all__ = [
    "AsyncStoreBase",
    "ClientRepository",
    "GrantRepository",
    "NotificationRepository",
    "SessionRepository",
]
