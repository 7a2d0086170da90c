# grantkeeper/application/ports/outbound.py

from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Any, Callable, Dict, List, Optional, Sequence

from grantkeeper.domain.models.client_domain_model import Client
from grantkeeper.domain.models.grant_domain_model import Grant, GrantKind
from grantkeeper.domain.models.notification_domain_model import Notification
from grantkeeper.domain.models.session_domain_model import Session


class IGrantStore(ABC):
    """Durable store of grant records."""

    @abstractmethod
    async def put(self, grant: Grant) -> Grant:
        """Insert a new grant; DuplicateIdError on collision."""
        pass

    @abstractmethod
    async def get(self, id: str) -> Grant:
        """Return a live grant; NotFoundError when absent or expired."""
        pass

    @abstractmethod
    async def consume(self, id: str) -> Grant:
        """Atomically mark a grant consumed; AlreadyConsumedError for every caller but one."""
        pass

    @abstractmethod
    async def revoke_family(self, grant_id: str) -> int:
        """Expire every grant sharing grant_id. Idempotent."""
        pass

    @abstractmethod
    async def sweep_expired(self) -> int:
        """Delete grants whose expiry has passed."""
        pass

    @abstractmethod
    async def find_by_user_code(self, user_code: str) -> Grant:
        """Device-flow lookup by user code."""
        pass

    @abstractmethod
    async def find_by_grant_id(self, grant_id: str, kind: GrantKind) -> Grant:
        """Return the live member of a family with the given kind."""
        pass

    @abstractmethod
    async def destroy(self, id: str) -> None:
        """Hard delete one grant. Idempotent."""
        pass

    @abstractmethod
    async def count_live_for_client(self, client_id: str) -> int:
        """Number of non-expired grants referencing a client."""
        pass

    @abstractmethod
    async def revoke_for_client(self, client_id: str) -> int:
        """Expire every live grant referencing a client."""
        pass

    @abstractmethod
    async def purge_for_client(self, client_id: str) -> int:
        """Delete the expired grants of a client."""
        pass


class IClientRepository(ABC):
    """Durable store of client registrations."""

    @abstractmethod
    async def get_by_client_id(self, client_id: str) -> Optional[Client]:
        """Get client by client_id."""
        pass

    @abstractmethod
    async def create(self, client: Client) -> Client:
        """Insert a client; DuplicateClientIdError on collision."""
        pass

    @abstractmethod
    async def update(self, client_id: str, changes: Dict[str, Any]) -> Client:
        """Apply field changes to an existing client."""
        pass

    @abstractmethod
    async def delete(self, client_id: str) -> None:
        """Delete a client; ClientInUseError when grants still reference it."""
        pass

    @abstractmethod
    async def list(self, skip: int = 0, limit: int = 100) -> List[Client]:
        """List clients ordered by creation time."""
        pass


class ISessionStore(ABC):
    """Durable store of provider sessions."""

    @abstractmethod
    async def create(self, initial_payload: Dict[str, Any], ttl: Optional[timedelta] = None) -> str:
        """Create a session and return its opaque id."""
        pass

    @abstractmethod
    async def get(self, id: str) -> Session:
        """Return a live session; NotFoundError when absent or expired."""
        pass

    @abstractmethod
    async def update(self, id: str, mutator: Callable[[Dict[str, Any]], Dict[str, Any]]) -> Session:
        """Replace the payload with mutator(payload) atomically."""
        pass

    @abstractmethod
    async def touch(self, id: str, new_ttl: timedelta) -> Session:
        """Extend or shorten the session lifetime."""
        pass

    @abstractmethod
    async def destroy(self, id: str) -> None:
        """Delete a session. Idempotent."""
        pass

    @abstractmethod
    async def sweep_expired(self) -> int:
        """Delete sessions whose expiry has passed."""
        pass

    @abstractmethod
    async def destroy_for_account(self, account_id: str) -> int:
        """Delete every session of an account."""
        pass


class INotificationRepository(ABC):
    """Durable store of notifications, always scoped to the recipient."""

    @abstractmethod
    async def create(self, user_id: int, notification_type_id: int, title: str,
                     message: str, link_url: Optional[str] = None) -> Notification:
        pass

    @abstractmethod
    async def get_for_user(self, user_id: int, notification_id: int) -> Notification:
        pass

    @abstractmethod
    async def list_for_user(self, user_id: int, unread_only: bool = False,
                            limit: int = 20, offset: int = 0) -> List[Notification]:
        pass

    @abstractmethod
    async def unread_count(self, user_id: int) -> int:
        pass

    @abstractmethod
    async def statistics(self, user_id: int) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def mark_as_read(self, user_id: int, notification_id: int) -> Notification:
        pass

    @abstractmethod
    async def mark_all_as_read(self, user_id: int) -> int:
        pass

    @abstractmethod
    async def delete(self, user_id: int, notification_id: int) -> None:
        pass

    @abstractmethod
    async def bulk_delete(self, user_id: int, notification_ids: Sequence[int]) -> int:
        pass

    @abstractmethod
    async def delete_all(self, user_id: int) -> int:
        pass


class IConnection(ABC):
    """A live delivery channel to one device of a user."""

    connection_id: str

    @abstractmethod
    async def send(self, payload: Dict[str, Any]) -> None:
        """Deliver one event; raises on a broken connection."""
        pass

    @abstractmethod
    async def close(self, code: int = 1000) -> None:
        """Close the channel; the peer sees the connection end."""
        pass
