from contextlib import asynccontextmanager
from typing import Optional

from homefax.core.config import get_settings
from homefax.core.logging import configure_logging
from homefax.core.middleware import RequestIdMiddleware
from homefax.core.error_handlers import register_error_handlers
from homefax.api.v1.router import v1_router
from homefax.ledger.client import LedgerClient
from homefax.ledger.web3_client import Web3LedgerClient
from homefax.services.content_store import ContentStore, GatewayContentStore

from fastapi import FastAPI
import logging

logger = logging.getLogger(__name__)


def create_app(
    ledger: Optional[LedgerClient] = None,
    content_store: Optional[ContentStore] = None,
) -> FastAPI:
    """
    The ledger adapter and content store are built here (or injected) and live on
    app.state; controllers get them per request through homefax.core.deps_ledger.
    """
    settings = get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.ledger is None and settings.ledger_configured:
            app.state.ledger = Web3LedgerClient.from_settings(settings)
        if app.state.ledger is None:
            logger.warning("[startup] ledger not configured; blockchain routes will return 503")
        if app.state.content_store is None:
            app.state.content_store = GatewayContentStore.from_settings(settings)
        try:
            yield
        finally:
            if app.state.ledger is not None:
                await app.state.ledger.aclose()
            if app.state.content_store is not None:
                await app.state.content_store.aclose()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.ledger = ledger
    app.state.content_store = content_store

    # Middleware: Request ID
    app.add_middleware(RequestIdMiddleware, header_name=settings.request_id_header)

    register_error_handlers(app)

    # API v1
    app.include_router(v1_router, prefix=settings.api_prefix)

    return app


app = create_app()
