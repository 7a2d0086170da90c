# grantkeeper/adapters/outbound/persistence/models/client_model.py

"""
ORM model for registered OAuth 2.0 / OIDC clients.
"""

from sqlalchemy import Column, String, Text, DateTime, func
from grantkeeper.adapters.outbound.persistence.models.base_model import Base
from grantkeeper.adapters.outbound.persistence.models.types import JSONType


class ClientModel(Base):
    """
    A registered relying party.

    Attributes:
        id: Primary key (equal to client_id unless given explicitly)
        client_id: Public, unique and immutable identifier
        client_secret: bcrypt hash of the secret; NULL for public clients
        redirect_uris: Exact redirect URIs accepted at the authorization endpoint
        grant_types / response_types / scopes: Allowed protocol values
        created_at / updated_at: Audit timestamps
    """
    __tablename__ = "oidc_clients"

    id = Column(String(255), primary_key=True)
    client_id = Column(String(255), unique=True, nullable=False, index=True)
    client_secret = Column(Text, nullable=True)
    redirect_uris = Column(JSONType, nullable=False, default=list)
    grant_types = Column(JSONType, nullable=False, default=lambda: ["authorization_code"])
    response_types = Column(JSONType, nullable=False, default=lambda: ["code"])
    scopes = Column(JSONType, nullable=False, default=lambda: ["openid", "profile", "email"])
    client_name = Column(String(255), nullable=True)
    client_uri = Column(Text, nullable=True)
    logo_uri = Column(Text, nullable=True)
    token_endpoint_auth_method = Column(String(50), nullable=False, default="client_secret_basic")
    application_type = Column(String(50), nullable=False, default="web")
    subject_type = Column(String(50), nullable=False, default="public")
    id_token_signed_response_alg = Column(String(50), nullable=False, default="RS256")
    userinfo_signed_response_alg = Column(String(50), nullable=True)
    post_logout_redirect_uris = Column(JSONType, nullable=False, default=list)
    created_at = Column(DateTime, server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime, server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<ClientModel(client_id={self.client_id})>"
