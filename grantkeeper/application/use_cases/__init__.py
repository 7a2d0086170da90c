# grantkeeper/application/use_cases/__init__.py (async version)

"""
Application service module.

This package contains the application services that implement the business logic
of the application, organized according to functional domains.
"""

# Export service classes for easier imports
from grantkeeper.application.use_cases.client_use_cases import ClientRegistryService
from grantkeeper.application.use_cases.notification_use_cases import NotificationFanoutService
from grantkeeper.application.use_cases.code_exchange_use_cases import CodeExchangeService

# Export all services
__all__ = [
    "ClientRegistryService",
    "NotificationFanoutService",
    "CodeExchangeService",
]
