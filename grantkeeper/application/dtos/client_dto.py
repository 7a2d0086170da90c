# grantkeeper/application/dtos/client_dto.py

"""
Schemas for OAuth/OIDC client data.

Pydantic DTOs for validation and serialization of client registrations.
Protocol rules that span several fields live in ``ClientSpecValidator``.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from grantkeeper.application.dtos.base_dto import CustomBaseModel
from grantkeeper.domain.models.client_domain_model import (
    DEFAULT_GRANT_TYPES,
    DEFAULT_RESPONSE_TYPES,
    DEFAULT_SCOPES,
)


class ClientMetadata(CustomBaseModel):
    """
    Registration metadata shared by creation and output schemas.
    """
    redirect_uris: List[str] = Field(default_factory=list, description="Exact redirect URIs")
    grant_types: List[str] = Field(default_factory=lambda: list(DEFAULT_GRANT_TYPES))
    response_types: List[str] = Field(default_factory=lambda: list(DEFAULT_RESPONSE_TYPES))
    scopes: List[str] = Field(default_factory=lambda: list(DEFAULT_SCOPES))
    client_name: Optional[str] = Field(None, description="Human readable name")
    client_uri: Optional[str] = None
    logo_uri: Optional[str] = None
    token_endpoint_auth_method: str = Field(
        "client_secret_basic",
        description="'none' registers a public client without a secret",
    )
    application_type: str = "web"
    subject_type: str = "public"
    id_token_signed_response_alg: str = "RS256"
    userinfo_signed_response_alg: Optional[str] = None
    post_logout_redirect_uris: List[str] = Field(default_factory=list)


class ClientCreate(ClientMetadata):
    """
    Schema for registering a client.

    ``client_id`` is generated when omitted.
    """
    client_id: Optional[str] = Field(None, min_length=1, max_length=255, description="Requested client identifier")


class ClientUpdate(CustomBaseModel):
    """
    Schema for updating a client. Only the fields sent are changed.

    ``client_id`` is accepted so that an attempt to change it can be
    rejected explicitly instead of silently ignored.
    """
    client_id: Optional[str] = None
    redirect_uris: Optional[List[str]] = None
    grant_types: Optional[List[str]] = None
    response_types: Optional[List[str]] = None
    scopes: Optional[List[str]] = None
    client_name: Optional[str] = None
    client_uri: Optional[str] = None
    logo_uri: Optional[str] = None
    token_endpoint_auth_method: Optional[str] = None
    application_type: Optional[str] = None
    subject_type: Optional[str] = None
    id_token_signed_response_alg: Optional[str] = None
    userinfo_signed_response_alg: Optional[str] = None
    post_logout_redirect_uris: Optional[List[str]] = None


class ClientOutput(ClientMetadata):
    """
    Schema for returning client data without exposing the secret hash.
    """
    client_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ClientRegistration(CustomBaseModel):
    """
    Result of a registration or secret rotation.

    ``client_secret`` is the plain secret; this is the only time it is shown.
    """
    client: ClientOutput
    client_secret: Optional[str] = Field(None, description="Plain secret, returned once")


class ClientCredentials(CustomBaseModel):
    """Schema for authenticating a confidential client."""
    client_id: str
    client_secret: str
