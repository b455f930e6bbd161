"""Request middleware for track ids and access logging."""

import logging
import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from templatehub.core.logging import bind_track_id, get_track_id, reset_track_id

logger = logging.getLogger(__name__)

TRACK_ID_HEADER = "X-Track-Id"


class TrackIdMiddleware(BaseHTTPMiddleware):
    """Bind a track id for the request and echo it on the response.

    The id comes from the ``X-Track-Id`` header or is generated.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        token = bind_track_id(request.headers.get(TRACK_ID_HEADER))
        start = time.perf_counter()
        try:
            response = await call_next(request)
            duration_ms = (time.perf_counter() - start) * 1000
            logger.info(
                "%s %s -> %s (%.1f ms)",
                request.method,
                request.url.path,
                response.status_code,
                duration_ms,
            )
            response.headers[TRACK_ID_HEADER] = get_track_id() or ""
            return response
        except Exception:
            logger.exception("%s %s failed", request.method, request.url.path)
            raise
        finally:
            reset_track_id(token)
