# grantkeeper/adapters/inbound/api/deps.py (async version)

"""
Dependencies for injection into API endpoints.

This module defines functions that provide dependencies via
FastAPI Depends() for authentication and access to the services built
at startup (see ``main.lifespan``).
"""

import logging
from typing import Optional

from fastapi import Request, Security
from fastapi.requests import HTTPConnection
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from grantkeeper.adapters.outbound.delivery.connection_registry import ConnectionRegistry
from grantkeeper.adapters.outbound.security.credentials_manager import CredentialsManager
from grantkeeper.application.use_cases.client_use_cases import ClientRegistryService
from grantkeeper.application.use_cases.notification_use_cases import NotificationFanoutService
from grantkeeper.domain.exceptions import InvalidCredentialsError

# Configure logger
logger = logging.getLogger(__name__)

# Bearer scheme; missing credentials are reported by the dependencies below
bearer_scheme = HTTPBearer(auto_error=False)


########################################################################
# Services
########################################################################

def get_client_registry(request: Request) -> ClientRegistryService:
    return request.app.state.client_registry


def get_notification_service(connection: HTTPConnection) -> NotificationFanoutService:
    return connection.app.state.notification_service


def get_connection_registry(connection: HTTPConnection) -> ConnectionRegistry:
    return connection.app.state.connection_registry


########################################################################
# Authentication
########################################################################

async def require_admin(
        credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
) -> None:
    """
    Check the admin bearer token.

    Raises:
        InvalidCredentialsError: If the token is missing or wrong
    """
    if credentials is None:
        raise InvalidCredentialsError("Missing admin token")
    try:
        CredentialsManager.verify_admin_token(credentials.credentials)
    except InvalidCredentialsError:
        logger.warning("Admin endpoint called with an invalid token")
        raise


async def get_current_user_id(
        credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
) -> int:
    """
    Get the id of the calling user from the bearer JWT.

    Returns:
        User id contained in the token's ``sub``

    Raises:
        InvalidCredentialsError: If the token is missing, invalid or expired
    """
    if credentials is None:
        raise InvalidCredentialsError("Missing bearer token")
    return await CredentialsManager.verify_access_token(credentials.credentials)
