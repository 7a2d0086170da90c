# grantkeeper/domain/exceptions.py

"""
Domain exceptions for the grant, session, client and notification stores.

These exceptions are framework-free: each one carries an ``internal_code``
that the inbound adapters translate into a transport-level response
(see ``shared/middleware/exception_middleware.py``).
"""

from typing import Any, Dict, Optional


class DomainException(Exception):
    """
    Base exception for every error raised by the domain and its ports.
    """

    internal_code = "DOMAIN_ERROR"

    def __init__(self, message: str = "", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class NotFoundError(DomainException):
    """
    Identifier absent or, for grants and sessions, past its expiry.

    Both causes share this single error so callers cannot tell an expired
    artifact from one that never existed.
    """

    internal_code = "NOT_FOUND"

    def __init__(self, resource: str = "Resource", resource_id: Any = None):
        resource_info = f" (ID: {resource_id})" if resource_id is not None else ""
        super().__init__(f"{resource} not found{resource_info}")
        self.resource = resource
        self.resource_id = resource_id


class DuplicateIdError(DomainException):
    """Insertion collided with an existing identifier."""

    internal_code = "DUPLICATE_ID"

    def __init__(self, resource: str = "Resource", resource_id: Any = None):
        resource_info = f" (ID: {resource_id})" if resource_id is not None else ""
        super().__init__(f"{resource} already exists{resource_info}")
        self.resource = resource
        self.resource_id = resource_id


class DuplicateClientIdError(DuplicateIdError):
    """A client with the requested client_id is already registered."""

    internal_code = "DUPLICATE_CLIENT_ID"

    def __init__(self, client_id: str):
        super().__init__("Client", client_id)


class AlreadyConsumedError(DomainException):
    """
    A consumable grant was redeemed a second time.

    Exchange handlers answer with ``invalid_grant`` and revoke the grant
    family, since reuse of a code points at an intercepted code.
    """

    internal_code = "ALREADY_CONSUMED"

    def __init__(self, grant_id: Any = None):
        super().__init__("Grant already used")
        self.grant_id = grant_id


class InvalidClientSpecError(DomainException):
    """Client registration data failed validation."""

    internal_code = "INVALID_CLIENT_SPEC"

    def __init__(self, detail: str = "Invalid client specification", fields: Optional[Dict[str, str]] = None):
        field_errors = ""
        if fields:
            field_errors = ": " + ", ".join([f"{field}: {error}" for field, error in fields.items()])
        super().__init__(f"{detail}{field_errors}", details=fields)
        self.fields = fields or {}


class RedirectMismatchError(DomainException):
    """The redirect URI is not an exact member of the client's registered set."""

    internal_code = "REDIRECT_MISMATCH"

    def __init__(self, client_id: str, redirect_uri: str):
        super().__init__(f"Redirect URI not registered for client {client_id}")
        self.client_id = client_id
        self.redirect_uri = redirect_uri


class ClientInUseError(DomainException):
    """Client deletion refused because live grants still reference it."""

    internal_code = "CLIENT_IN_USE"

    def __init__(self, client_id: str, live_grants: Optional[int] = None):
        count_info = f"{live_grants} live" if live_grants is not None else "existing"
        super().__init__(
            f"Client {client_id} is referenced by {count_info} grant(s)",
            details={"live_grants": live_grants},
        )
        self.client_id = client_id
        self.live_grants = live_grants


class DeliveryUnavailableError(DomainException):
    """
    A live connection existed but delivery to it failed.

    Never propagated to the domain action that triggered the notification.
    """

    internal_code = "DELIVERY_UNAVAILABLE"

    def __init__(self, connection_id: str, original_error: Optional[BaseException] = None):
        error_info = f": {original_error!r}" if original_error is not None else ""
        super().__init__(f"Delivery to connection {connection_id} failed{error_info}")
        self.connection_id = connection_id
        self.original_error = original_error


class StoreUnavailableError(DomainException):
    """
    The durable store could not be reached or did not answer in time.

    Distinct from the domain errors above: the request may have been valid,
    the caller should retry later.
    """

    internal_code = "STORE_UNAVAILABLE"

    def __init__(self, detail: str = "Store unavailable", original_error: Optional[BaseException] = None):
        error_info = f": {original_error}" if original_error is not None else ""
        super().__init__(f"{detail}{error_info}")
        self.original_error = original_error


class InvalidCredentialsError(DomainException):
    """Caller credentials (client secret, bearer token) were rejected."""

    internal_code = "INVALID_CREDENTIALS"

    def __init__(self, detail: str = "Invalid credentials"):
        super().__init__(detail)
