from __future__ import annotations

from typing import Optional

from fastapi import Depends, HTTPException, Request

from homefax.core.config import Settings, get_settings
from homefax.ledger.client import LedgerClient
from homefax.services.authorization_guard import AuthorizationGuard
from homefax.services.content_gate import ContentGate
from homefax.services.content_store import ContentStore
from homefax.services.purchase_service import PurchaseService
from homefax.services.registry_service import RegistryService
from homefax.services.storage_service import StorageService
from homefax.services.tx_runner import TxRunner


def get_ledger(request: Request) -> LedgerClient:
    ledger = getattr(request.app.state, "ledger", None)
    if ledger is None:
        raise HTTPException(status_code=503, detail="Ledger not configured.")
    return ledger


def get_content_store(request: Request) -> Optional[ContentStore]:
    return getattr(request.app.state, "content_store", None)


def get_guard(
    ledger: LedgerClient = Depends(get_ledger),
    settings: Settings = Depends(get_settings),
) -> AuthorizationGuard:
    return AuthorizationGuard(ledger, confirmation_timeout=settings.ledger_confirmation_timeout_seconds)


def get_tx_runner(
    ledger: LedgerClient = Depends(get_ledger),
    settings: Settings = Depends(get_settings),
) -> TxRunner:
    return TxRunner(ledger, confirmation_timeout=settings.ledger_confirmation_timeout_seconds)


def get_registry_service(
    ledger: LedgerClient = Depends(get_ledger),
    guard: AuthorizationGuard = Depends(get_guard),
    runner: TxRunner = Depends(get_tx_runner),
) -> RegistryService:
    return RegistryService(ledger, guard, runner)


def get_purchase_service(
    ledger: LedgerClient = Depends(get_ledger),
    guard: AuthorizationGuard = Depends(get_guard),
    runner: TxRunner = Depends(get_tx_runner),
) -> PurchaseService:
    return PurchaseService(ledger, guard, runner)


def get_content_gate(
    ledger: LedgerClient = Depends(get_ledger),
    guard: AuthorizationGuard = Depends(get_guard),
) -> ContentGate:
    return ContentGate(ledger, guard)


def get_storage_service(
    store: Optional[ContentStore] = Depends(get_content_store),
    settings: Settings = Depends(get_settings),
) -> StorageService:
    if store is None:
        raise HTTPException(status_code=503, detail="Content store not configured.")
    return StorageService(store, max_upload_bytes=settings.content_max_upload_bytes)
