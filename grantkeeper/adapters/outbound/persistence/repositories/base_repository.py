# grantkeeper/adapters/outbound/persistence/repositories/base_repository.py (async version)

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Generic, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from grantkeeper.adapters.configuration.config import settings
from grantkeeper.adapters.outbound.persistence.database import get_db_context
from grantkeeper.adapters.outbound.persistence.models.base_model import Base
from grantkeeper.domain.exceptions import DomainException, StoreUnavailableError
from grantkeeper.domain.services.grant_service import utcnow

# Define generic type for SQLAlchemy models
ModelType = TypeVar("ModelType", bound=Base)
ResultType = TypeVar("ResultType")

# Configure logger
logger = logging.getLogger(__name__)


class AsyncStoreBase(Generic[ModelType]):
    """
    Async base class for the store repositories.

    Every public operation goes through :meth:`_run`, which opens its own
    session from the injected factory, commits or rolls back, and bounds the
    whole call with a timeout. Infrastructure failures come out as
    ``StoreUnavailableError``; domain errors raised by the operation pass
    through unchanged.

    Attributes:
        model: SQLAlchemy model class
        session_factory: ``async_sessionmaker`` shared with the rest of the app
        clock: Callable returning the current naive UTC time
        timeout: Seconds allowed for one store call
        logger: Configured logger for the class
    """

    def __init__(
            self,
            model: Type[ModelType],
            session_factory: async_sessionmaker,
            clock: Callable[[], datetime] = utcnow,
            timeout: Optional[float] = None,
    ):
        """
        Initialize the repository with an SQLAlchemy model.

        Args:
            model: SQLAlchemy model class associated with this repository
            session_factory: Factory producing ``AsyncSession`` objects
            clock: Time source, replaced by a fake clock in tests
            timeout: Per-call timeout; defaults to ``STORE_TIMEOUT_SECONDS``
        """
        self.model = model
        self.session_factory = session_factory
        self.clock = clock
        self.timeout = settings.STORE_TIMEOUT_SECONDS if timeout is None else timeout
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    async def _execute(self, operation: Callable[[AsyncSession], Awaitable[ResultType]]) -> ResultType:
        async with get_db_context(self.session_factory) as db:
            return await operation(db)

    async def _run(
            self,
            name: str,
            operation: Callable[[AsyncSession], Awaitable[ResultType]],
            on_conflict: Optional[Callable[[IntegrityError], Optional[DomainException]]] = None,
    ) -> ResultType:
        """
        Run one store operation in its own transaction.

        Args:
            name: Operation name used in log lines
            operation: Coroutine function receiving the session
            on_conflict: Maps an ``IntegrityError`` to a domain error, or None

        Returns:
            Whatever ``operation`` returns

        Raises:
            DomainException: Raised by the operation or built by ``on_conflict``
            StoreUnavailableError: On timeout, driver or network failure
        """
        try:
            return await asyncio.wait_for(self._execute(operation), timeout=self.timeout)

        except DomainException:
            raise

        except IntegrityError as e:
            error = on_conflict(e) if on_conflict is not None else None
            if error is not None:
                self.logger.warning(f"{name} on {self.model.__name__} rejected: {error}")
                raise error from e
            self.logger.error(f"Integrity error in {name} on {self.model.__name__}: {str(e)}")
            raise StoreUnavailableError(
                detail=f"Error in {name} on {self.model.__name__}",
                original_error=e
            ) from e

        except asyncio.TimeoutError as e:
            self.logger.error(f"{name} on {self.model.__name__} timed out after {self.timeout}s")
            raise StoreUnavailableError(
                detail=f"{name} on {self.model.__name__} timed out",
                original_error=e
            ) from e

        except (SQLAlchemyError, OSError) as e:
            self.logger.error(f"Error in {name} on {self.model.__name__}: {str(e)}")
            raise StoreUnavailableError(
                detail=f"Error in {name} on {self.model.__name__}",
                original_error=e
            ) from e

    @staticmethod
    def _is_unique_violation(error: IntegrityError) -> bool:
        error_msg = str(error).lower()
        return "unique" in error_msg or "duplicate" in error_msg

    @staticmethod
    def _is_foreign_key_violation(error: IntegrityError) -> bool:
        return "foreign key" in str(error).lower()

    @staticmethod
    def _copy_payload(value: Any) -> Any:
        """Detach a JSON payload from the ORM row before handing it out."""
        if isinstance(value, dict):
            return {k: AsyncStoreBase._copy_payload(v) for k, v in value.items()}
        if isinstance(value, list):
            return [AsyncStoreBase._copy_payload(v) for v in value]
        return value
