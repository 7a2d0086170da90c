# grantkeeper/shared/middleware/__init__.py (async version)

from grantkeeper.shared.middleware.exception_middleware import AsyncExceptionMiddleware
from grantkeeper.shared.middleware.logging_middleware import AsyncRequestLoggingMiddleware

# Export all for easy imports
__all__ = [
    "AsyncExceptionMiddleware",
    "AsyncRequestLoggingMiddleware",
]
