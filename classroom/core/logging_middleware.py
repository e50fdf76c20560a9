import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start = time.monotonic()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "%s %s raised after %.2fs",
                request.method,
                request.url.path,
                time.monotonic() - start,
            )
            raise

        duration = time.monotonic() - start
        # client errors and failures stand out in the log
        level = logging.WARNING if response.status_code >= 400 else logging.INFO
        logger.log(
            level,
            "%s %s -> %s (%.2fs)",
            request.method,
            request.url.path,
            response.status_code,
            duration,
        )

        return response
