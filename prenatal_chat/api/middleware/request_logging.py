"""Per-request access logging, enabled by ``server.log_requests``."""

import logging
import time

from fastapi import Request
from fastapi.responses import Response

logger = logging.getLogger(__name__)


async def log_requests(request: Request, call_next) -> Response:
    """Log method, path, status and duration of each request."""
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(
        "%s %s -> %d (%.1fms)",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
    )
    return response
