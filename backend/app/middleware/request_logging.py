"""
Request/response logging middleware for tracking API interactions.
"""
import logging
import re
import time
import uuid
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.core.logging_config import request_id_context

logger = logging.getLogger(__name__)

_SESSION_PATH = re.compile(r"/test/session/(?P<session_id>[^/]+)")


def extract_session_id(path: str) -> Optional[str]:
    """Session ID embedded in a session endpoint path, if any."""
    match = _SESSION_PATH.search(path)
    return match.group("session_id") if match else None


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to log incoming requests and outgoing responses.

    Logs:
    - Request method and path
    - Response status code and duration
    - Test session ID for session endpoints

    Every request gets a correlation ID (``X-Request-ID`` header, generated
    if absent) that is echoed on the response and attached to every log
    record emitted while the request is handled.
    """

    # Paths that are polled frequently and only logged at DEBUG
    QUIET_PATHS = ("/health", "/ping")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Process request and log details.

        Args:
            request: Incoming request
            call_next: Next middleware/endpoint in chain

        Returns:
            Response from the endpoint
        """
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request_id_context.set(request_id)

        start_time = time.time()
        method = request.method
        path = str(request.url.path)
        client_host = request.client.host if request.client else "unknown"
        quiet = path.endswith(self.QUIET_PATHS)

        extra_fields = {
            "method": method,
            "path": path,
            "client_host": client_host,
        }
        session_id = extract_session_id(path)
        if session_id:
            extra_fields["session_id"] = session_id

        logger.log(
            logging.DEBUG if quiet else logging.INFO,
            "Incoming request",
            extra=extra_fields,
        )

        response = await call_next(request)

        duration_ms = round((time.time() - start_time) * 1000, 2)
        status_code = response.status_code

        response.headers["X-Request-ID"] = request_id

        extra_fields = {
            **extra_fields,
            "status_code": status_code,
            "duration_ms": duration_ms,
        }

        if status_code >= 500:
            logger.error("Server error response", extra=extra_fields)
        elif status_code >= 400:
            logger.warning("Client error response", extra=extra_fields)
        else:
            logger.log(
                logging.DEBUG if quiet else logging.INFO,
                "Request completed",
                extra=extra_fields,
            )

        return response
