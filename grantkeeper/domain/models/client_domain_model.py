# grantkeeper/domain/models/client_domain_model.py

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

DEFAULT_GRANT_TYPES = ["authorization_code"]
DEFAULT_RESPONSE_TYPES = ["code"]
DEFAULT_SCOPES = ["openid", "profile", "email"]


class GrantType(str, Enum):
    """Grant types a client may be registered for."""
    AUTHORIZATION_CODE = "authorization_code"
    REFRESH_TOKEN = "refresh_token"
    CLIENT_CREDENTIALS = "client_credentials"
    IMPLICIT = "implicit"
    DEVICE_CODE = "urn:ietf:params:oauth:grant-type:device_code"


class ResponseType(str, Enum):
    """Response types a client may request at the authorization endpoint."""
    CODE = "code"
    ID_TOKEN = "id_token"
    CODE_ID_TOKEN = "code id_token"
    ID_TOKEN_TOKEN = "id_token token"
    CODE_TOKEN = "code token"
    CODE_ID_TOKEN_TOKEN = "code id_token token"
    NONE = "none"


class Scope(str, Enum):
    OPENID = "openid"
    PROFILE = "profile"
    EMAIL = "email"
    ADDRESS = "address"
    PHONE = "phone"
    OFFLINE_ACCESS = "offline_access"


class TokenEndpointAuthMethod(str, Enum):
    CLIENT_SECRET_BASIC = "client_secret_basic"
    CLIENT_SECRET_POST = "client_secret_post"
    CLIENT_SECRET_JWT = "client_secret_jwt"
    PRIVATE_KEY_JWT = "private_key_jwt"
    NONE = "none"


class ApplicationType(str, Enum):
    WEB = "web"
    NATIVE = "native"


class SubjectType(str, Enum):
    PUBLIC = "public"
    PAIRWISE = "pairwise"


SIGNING_ALGORITHMS = {
    "RS256", "RS384", "RS512",
    "PS256", "PS384", "PS512",
    "ES256", "ES384", "ES512",
    "EdDSA", "HS256", "HS384", "HS512",
}


@dataclass
class Client:
    """Domain model for a registered OAuth/OIDC relying party."""
    id: str
    client_id: str  # Public identifier, immutable
    client_secret: Optional[str]  # Hashed secret, None for public clients
    redirect_uris: List[str] = field(default_factory=list)
    grant_types: List[str] = field(default_factory=lambda: list(DEFAULT_GRANT_TYPES))
    response_types: List[str] = field(default_factory=lambda: list(DEFAULT_RESPONSE_TYPES))
    scopes: List[str] = field(default_factory=lambda: list(DEFAULT_SCOPES))
    client_name: Optional[str] = None
    client_uri: Optional[str] = None
    logo_uri: Optional[str] = None
    token_endpoint_auth_method: str = TokenEndpointAuthMethod.CLIENT_SECRET_BASIC.value
    application_type: str = ApplicationType.WEB.value
    subject_type: str = SubjectType.PUBLIC.value
    id_token_signed_response_alg: str = "RS256"
    userinfo_signed_response_alg: Optional[str] = None
    post_logout_redirect_uris: List[str] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_confidential(self) -> bool:
        return self.token_endpoint_auth_method != TokenEndpointAuthMethod.NONE.value
