# grantkeeper/adapters/inbound/api/v1/router.py

from fastapi import APIRouter
from grantkeeper.adapters.inbound.api.v1.endpoints import client_endpoint, notification_endpoint

api_router = APIRouter()

# Client registry (admin)
api_router.include_router(client_endpoint.router, prefix="/oidc/clients", tags=["Clients"])

# Notifications (REST and live channel)
api_router.include_router(notification_endpoint.router, prefix="/notifications", tags=["Notifications"])
api_router.include_router(notification_endpoint.ws_router, tags=["Notifications"])
