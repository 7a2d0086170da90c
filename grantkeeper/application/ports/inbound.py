# grantkeeper/application/ports/inbound.py

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from grantkeeper.application.dtos.client_dto import ClientCreate, ClientUpdate, ClientRegistration
from grantkeeper.application.dtos.notification_dto import NotificationCreate, PublishResult
from grantkeeper.application.dtos.token_dto import TokenPair
from grantkeeper.domain.models.client_domain_model import Client
from grantkeeper.domain.models.grant_domain_model import Grant
from grantkeeper.domain.models.notification_domain_model import Notification


class IClientRegistry(ABC):
    """Interface for client registration use cases."""

    @abstractmethod
    async def register(self, spec: ClientCreate) -> ClientRegistration:
        """Validate and register a new client."""
        pass

    @abstractmethod
    async def lookup(self, client_id: str) -> Client:
        """Return a registered client."""
        pass

    @abstractmethod
    async def authorize_redirect(self, client_id: str, redirect_uri: str) -> bool:
        """True iff redirect_uri exactly matches a registered URI."""
        pass

    @abstractmethod
    async def update(self, client_id: str, changes: ClientUpdate) -> Client:
        """Apply administrative changes to a client."""
        pass

    @abstractmethod
    async def delete(self, client_id: str, cascade: bool = False) -> None:
        """Delete a client, refusing while live grants reference it unless cascading."""
        pass


class INotificationFanout(ABC):
    """Interface for notification publishing."""

    @abstractmethod
    async def publish(self, user_id: int, notification: NotificationCreate) -> PublishResult:
        """Persist a notification, then deliver it to the recipient's live connections."""
        pass

    @abstractmethod
    async def publish_many(self, user_ids: Sequence[int], notification: NotificationCreate) -> List[PublishResult]:
        """Publish the same notification to several recipients."""
        pass


class ICodeExchange(ABC):
    """Interface for the authorization code exchange."""

    @abstractmethod
    async def issue_code(self, client_id: str, redirect_uri: str, account_id: str,
                         data: Optional[Dict[str, Any]] = None) -> Grant:
        """Store a new authorization code after checking the redirect URI."""
        pass

    @abstractmethod
    async def exchange(self, code: str, client_id: str, redirect_uri: str) -> TokenPair:
        """Redeem an authorization code for an access/refresh token pair."""
        pass
