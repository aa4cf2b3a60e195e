import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

log = logging.getLogger("foodlink.access")

class AuditMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start = time.time()
        response = await call_next(request)
        log.info(
            "%s %s -> %s (%d ms) ip=%s",
            request.method,
            request.url.path,
            response.status_code,
            int((time.time() - start) * 1000),
            request.client.host if request.client else None,
        )
        return response
