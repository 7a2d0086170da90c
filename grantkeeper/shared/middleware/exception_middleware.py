# grantkeeper/shared/middleware/exception_middleware.py (async version)

"""
Middleware for centralized exception handling.

This module defines middleware that intercepts exceptions and formats
appropriate error responses for the client.
"""

import time
import logging
import traceback
from typing import Callable

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from grantkeeper.domain.exceptions import DomainException
from grantkeeper.adapters.configuration.config import settings

# Configure logger
logger = logging.getLogger(__name__)

# Mapping from the domain 'internal_code' to the HTTP status
STATUS_BY_CODE = {
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "DUPLICATE_ID": status.HTTP_409_CONFLICT,
    "DUPLICATE_CLIENT_ID": status.HTTP_409_CONFLICT,
    "CLIENT_IN_USE": status.HTTP_409_CONFLICT,
    "ALREADY_CONSUMED": status.HTTP_400_BAD_REQUEST,
    "INVALID_CLIENT_SPEC": status.HTTP_400_BAD_REQUEST,
    "REDIRECT_MISMATCH": status.HTTP_400_BAD_REQUEST,
    "INVALID_CREDENTIALS": status.HTTP_401_UNAUTHORIZED,
    "STORE_UNAVAILABLE": status.HTTP_503_SERVICE_UNAVAILABLE,
}

# Codes reported with the OAuth 2.0 error name expected by token clients
OAUTH_ERROR_BY_CODE = {
    "ALREADY_CONSUMED": "invalid_grant",
    "REDIRECT_MISMATCH": "invalid_grant",
}


def client_host(request: Request) -> str:
    return request.client.host if request.client else "N/A"


def domain_error_response(exc: DomainException, path: str = "") -> JSONResponse:
    """Build the JSON error response for a domain exception."""
    status_code = STATUS_BY_CODE.get(exc.internal_code, status.HTTP_400_BAD_REQUEST)

    if exc.internal_code == "STORE_UNAVAILABLE":
        logger.error(f"Store unavailable: {str(exc)} | Path: {path}")
        detail = "Service temporarily unavailable" if settings.ENVIRONMENT == "production" else str(exc)
    else:
        logger.warning(f"Domain exception: {str(exc)} | Code: {exc.internal_code} | Path: {path}")
        detail = str(exc)

    content = {
        "detail": detail,
        "code": exc.internal_code,
    }
    if exc.details:
        content["errors"] = exc.details
    if exc.internal_code in OAUTH_ERROR_BY_CODE:
        content["error"] = OAUTH_ERROR_BY_CODE[exc.internal_code]

    response = JSONResponse(status_code=status_code, content=content)
    if status_code == status.HTTP_503_SERVICE_UNAVAILABLE:
        response.headers["Retry-After"] = "1"
    return response


class AsyncExceptionMiddleware(BaseHTTPMiddleware):
    """
    Middleware for centralized exception handling.
    Captures specific exceptions and formats the response accordingly.
    """

    async def dispatch(self, request: Request, call_next: Callable):
        start_time = time.time()
        try:
            response = await call_next(request)
            process_time = time.time() - start_time
            response.headers["X-Process-Time"] = str(process_time)
            return response

        except DomainException as exc:
            return domain_error_response(exc, request.url.path)

        except ValueError as exc:
            logger.warning(
                f"Validation error: {str(exc)} | "
                f"Path: {request.url.path} | "
                f"Client: {client_host(request)}"
            )
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={
                    "detail": str(exc),
                    "code": "VALIDATION_ERROR"
                }
            )

        except Exception as exc:
            if settings.ENVIRONMENT == "production":
                error_message = "Internal server error"
                logger.exception(
                    f"Unhandled exception: Type={type(exc).__name__} | "
                    f"Path: {request.url.path} | "
                    f"Client: {client_host(request)}"
                )
            else:
                error_message = str(exc)
                logger.exception(
                    f"Unhandled exception: {str(exc)} | "
                    f"Path: {request.url.path} | "
                    f"Client: {client_host(request)}\n"
                    f"Traceback: {traceback.format_exc()}"
                )
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "detail": error_message,
                    "code": "INTERNAL_SERVER_ERROR"
                }
            )
