import logging
import time
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from homefax.core.logging import request_id_var

logger = logging.getLogger("homefax.access")


class RequestIdMiddleware(BaseHTTPMiddleware):
    """
    Every request gets an id (client-supplied or generated), echoed in the response
    header, exposed as request.state.request_id and stamped on every log record.
    """

    def __init__(self, app, header_name: str = "X-Request-Id"):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        rid = request.headers.get(self.header_name) or str(uuid.uuid4())
        request.state.request_id = rid
        token = request_id_var.set(rid)
        started = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "[http] %s %s -> %s %.1fms",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            extra={"request_id": rid},
        )
        response.headers[self.header_name] = rid
        return response
