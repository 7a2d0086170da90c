# grantkeeper/domain/models/grant_domain_model.py

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class GrantKind(str, Enum):
    """Closed set of artifact kinds held by the grant store."""
    AUTHORIZATION_CODE = "AuthorizationCode"
    ACCESS_TOKEN = "AccessToken"
    REFRESH_TOKEN = "RefreshToken"
    DEVICE_CODE = "DeviceCode"
    CLIENT_CREDENTIALS = "ClientCredentials"
    BACKCHANNEL_AUTHENTICATION_REQUEST = "BackchannelAuthenticationRequest"
    REGISTRATION_ACCESS_TOKEN = "RegistrationAccessToken"
    INITIAL_ACCESS_TOKEN = "InitialAccessToken"


@dataclass
class Grant:
    """
    A single issued artifact (code, token, device code...).

    ``grant_id`` groups the artifacts issued from one authorization so the
    whole family can be revoked together. ``data`` is owned by the protocol
    layer and stored as-is.
    """
    id: str
    kind: GrantKind
    client_id: str
    exp: datetime
    account_id: Optional[str] = None
    grant_id: Optional[str] = None
    jti: Optional[str] = None
    iat: Optional[datetime] = None
    user_code: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    consumed: bool = False
    consumed_at: Optional[datetime] = None

    def __post_init__(self):
        if not isinstance(self.kind, GrantKind):
            self.kind = GrantKind(self.kind)
        if self.grant_id is None:
            # A lone grant is a family of one
            self.grant_id = self.id

    @property
    def scope(self) -> str:
        return self.data.get("scope", "")
