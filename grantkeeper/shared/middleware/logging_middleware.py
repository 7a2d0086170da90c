# grantkeeper/shared/middleware/logging_middleware.py (async version)

"""
Middleware for HTTP request logging.

Logs one line per request and one per response, tagged with a request id
that is also returned in the ``X-Request-ID`` header.
"""

import time
import uuid
import logging
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from grantkeeper.adapters.configuration.config import settings

# Configure logger
logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class AsyncRequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for request logging.

    Query strings may carry tokens (the WebSocket endpoint takes one), so
    they are only logged outside production.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        request.state.request_id = request_id

        if settings.ENVIRONMENT == "production":
            logger.info(f"[{request_id}] Request: {request.method} {request.url.path}")
        else:
            query_params = dict(request.query_params)
            logger.info(
                f"[{request_id}] Request: {request.method} {request.url.path} | "
                f"Query: {query_params if query_params else 'N/A'} | "
                f"Client: {request.client.host if request.client else 'N/A'}"
            )

        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time

        logger.info(
            f"[{request_id}] Response: {response.status_code} for {request.method} {request.url.path} | "
            f"Time: {process_time:.4f}s"
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
