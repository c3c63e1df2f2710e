"""Request logging for local development"""

import logging
import time

from fastapi import Request

logger = logging.getLogger("placefinder.requests")


async def log_requests(request: Request, call_next):
    """Log method, path and duration; never payloads or query strings (they may carry keys)"""
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = int((time.perf_counter() - start) * 1000)
    logger.info("[%s] %s - %dms", request.method, request.url.path, duration_ms)
    return response
