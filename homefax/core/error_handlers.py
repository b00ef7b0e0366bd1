from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from homefax.core.errors import HomeFaxError, MalformedConfirmation, TransactionTimedOut

logger = logging.getLogger(__name__)


async def homefax_error_handler(request: Request, exc: HomeFaxError) -> JSONResponse:
    ctx = exc.context()
    ctx["request_id"] = getattr(request.state, "request_id", None)
    ctx["path"] = request.url.path

    if isinstance(exc, MalformedConfirmation) or exc.status_code >= 500:
        logger.error("[error] %s", exc, extra=ctx)
    else:
        logger.warning("[error] %s", exc, extra=ctx)

    body = {"detail": str(exc), "code": exc.code}
    if isinstance(exc, TransactionTimedOut):
        # outcome unknown: tell the client what to poll instead of resubmitting
        body["txHash"] = exc.tx_hash
    return JSONResponse(status_code=exc.status_code, content=body)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HomeFaxError, homefax_error_handler)
