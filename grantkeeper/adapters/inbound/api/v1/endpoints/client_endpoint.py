# grantkeeper/adapters/inbound/api/v1/endpoints/client_endpoint.py

"""
Admin endpoints for OAuth/OIDC client registration.

Every route requires the admin bearer token.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi_pagination import LimitOffsetParams

from grantkeeper.adapters.inbound.api.deps import get_client_registry, require_admin
from grantkeeper.application.dtos.client_dto import (
    ClientCreate,
    ClientOutput,
    ClientRegistration,
    ClientUpdate,
)
from grantkeeper.application.use_cases.client_use_cases import ClientRegistryService
from grantkeeper.shared.utils.pagination import limit_offset_params

# Configure logger
logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])


@router.post("", response_model=ClientRegistration, status_code=status.HTTP_201_CREATED)
async def register_client(
        spec: ClientCreate,
        registry: ClientRegistryService = Depends(get_client_registry),
):
    """
    Register a client.

    The plain ``client_secret`` of a confidential client is only returned
    by this call and by secret rotation.
    """
    return await registry.register(spec)


@router.get("", response_model=List[ClientOutput])
async def list_clients(
        params: LimitOffsetParams = Depends(limit_offset_params),
        registry: ClientRegistryService = Depends(get_client_registry),
):
    clients = await registry.list(skip=params.offset, limit=params.limit)
    return [ClientOutput.model_validate(client) for client in clients]


@router.get("/{client_id}", response_model=ClientOutput)
async def get_client(
        client_id: str,
        registry: ClientRegistryService = Depends(get_client_registry),
):
    return ClientOutput.model_validate(await registry.lookup(client_id))


@router.put("/{client_id}", response_model=ClientOutput)
async def update_client(
        client_id: str,
        changes: ClientUpdate,
        registry: ClientRegistryService = Depends(get_client_registry),
):
    return ClientOutput.model_validate(await registry.update(client_id, changes))


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_client(
        client_id: str,
        cascade: bool = Query(False, description="Revoke live grants of the client instead of refusing"),
        registry: ClientRegistryService = Depends(get_client_registry),
):
    await registry.delete(client_id, cascade=cascade)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{client_id}/rotate-secret", response_model=ClientRegistration)
async def rotate_client_secret(
        client_id: str,
        registry: ClientRegistryService = Depends(get_client_registry),
):
    return await registry.rotate_secret(client_id)
