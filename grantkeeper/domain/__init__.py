# grantkeeper/domain/__init__.py

"""
Domain components: pure models, validation services and the error taxonomy.

Nothing in this package depends on the web framework or the ORM.
"""

from grantkeeper.domain.exceptions import (
    DomainException,
    NotFoundError,
    DuplicateIdError,
    DuplicateClientIdError,
    AlreadyConsumedError,
    InvalidClientSpecError,
    RedirectMismatchError,
    ClientInUseError,
    DeliveryUnavailableError,
    StoreUnavailableError,
    InvalidCredentialsError,
)

__all__ = [
    "DomainException",
    "NotFoundError",
    "DuplicateIdError",
    "DuplicateClientIdError",
    "AlreadyConsumedError",
    "InvalidClientSpecError",
    "RedirectMismatchError",
    "ClientInUseError",
    "DeliveryUnavailableError",
    "StoreUnavailableError",
    "InvalidCredentialsError",
]
