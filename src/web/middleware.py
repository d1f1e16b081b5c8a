"""
Web tier Middleware

This module provides middleware for X-Request-Id handling and request logging.
"""

import time
import logging
import uuid
from typing import Callable, Optional
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-Id"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Middleware to tag each request with an id and log it.

    This middleware:
    1. Reuses X-Request-Id from the request headers or generates one
    2. Stores it in request.state for use by route handlers
    3. Logs every request with its id, status and latency
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id

        start_time = time.time()

        logger.info(
            f"Incoming request: {request.method} {request.url.path}",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "client": request.client.host if request.client else None,
            }
        )

        try:
            response = await call_next(request)
        except Exception as e:
            latency_ms = (time.time() - start_time) * 1000
            logger.error(
                f"Request failed: {request.method} {request.url.path} - Error: {str(e)}",
                extra={
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                    "error": str(e),
                    "latency_ms": round(latency_ms, 2),
                },
                exc_info=True
            )
            raise

        latency_ms = (time.time() - start_time) * 1000
        logger.info(
            f"Request completed: {request.method} {request.url.path} - Status: {response.status_code}",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "latency_ms": round(latency_ms, 2),
            }
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def get_request_id(request: Request) -> Optional[str]:
    """
    Helper function to get the request id from request state.

    Args:
        request: The FastAPI request object

    Returns:
        Request id if the middleware ran, None otherwise
    """
    return getattr(request.state, "request_id", None)
