# grantkeeper/domain/services/grant_service.py

import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from grantkeeper.domain.models.grant_domain_model import Grant, GrantKind


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, matching the DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class GrantService:
    """
    Domain service for building grant records.
    """

    @staticmethod
    def new_grant_id() -> str:
        """Opaque, unguessable identifier for a grant or session."""
        return secrets.token_urlsafe(32)

    @staticmethod
    def issue(
            kind: GrantKind,
            client_id: str,
            ttl: timedelta,
            account_id: Optional[str] = None,
            grant_id: Optional[str] = None,
            data: Optional[Dict[str, Any]] = None,
            now: Optional[datetime] = None,
    ) -> Grant:
        """
        Create a fresh, unconsumed grant.

        Args:
            kind: Artifact kind
            client_id: Owning client
            ttl: Lifetime of the artifact
            account_id: Owning account (None for client credentials)
            grant_id: Family identifier; defaults to the new grant's own id
            data: Protocol payload (scope, nonce, PKCE challenge, claims)
            now: Issue time, defaults to the current UTC time

        Returns:
            The new Grant, not yet persisted
        """
        issued_at = now or utcnow()
        return Grant(
            id=GrantService.new_grant_id(),
            kind=kind,
            client_id=client_id,
            account_id=account_id,
            grant_id=grant_id,
            jti=str(uuid.uuid4()),
            iat=issued_at,
            exp=issued_at + ttl,
            data=dict(data or {}),
        )
