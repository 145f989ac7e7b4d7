"""
Request context middleware for log correlation.

- Generates or accepts X-Request-ID and echoes it on the response
- Binds the request id and the gateway-forwarded caller id to the logging
  context, so every record emitted while serving the request carries both
- Logs each request's outcome; slow requests and server errors as warnings
"""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from lms.logging_config import get_logger, request_id_var, user_id_var

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
USER_ID_HEADER = "X-User-Id"
SLOW_REQUEST_MS = 1000


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind request/caller ids to the logging context and log the outcome."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        request_token = request_id_var.set(request_id)
        # Unverified here; get_current_user resolves it against the users table.
        user_token = user_id_var.set(request.headers.get(USER_ID_HEADER))

        try:
            start = time.perf_counter()
            response = await call_next(request)
            duration_ms = round((time.perf_counter() - start) * 1000, 1)
            response.headers[REQUEST_ID_HEADER] = request_id

            fields = {
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            }
            if response.status_code >= 500:
                logger.warning("Request failed", extra=fields)
            elif duration_ms > SLOW_REQUEST_MS:
                logger.warning("Slow request", extra=fields)
            else:
                logger.debug("Request completed", extra=fields)
            return response
        finally:
            user_id_var.reset(user_token)
            request_id_var.reset(request_token)
