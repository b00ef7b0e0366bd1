# homefax/api/v1/blockchain.py
from __future__ import annotations

import base64
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from homefax.core.auth_deps import require_wallet_address
from homefax.core.deps_ledger import (
    get_content_gate,
    get_content_store,
    get_guard,
    get_ledger,
    get_purchase_service,
    get_registry_service,
)
from homefax.ledger.addresses import normalize_address
from homefax.schemas.registry import (
    AuthorizationStatusResponse,
    CreatePropertyRequest,
    CreateReportRequest,
    PropertyCreatedResponse,
    PropertyIdsResponse,
    PropertyOut,
    PropertyResponse,
    PurchaseRequest,
    PurchaseResponse,
    PurchaseStatusResponse,
    ReportContentResponse,
    ReportCreatedResponse,
    ReportIdsResponse,
    ReportOut,
    ReportResponse,
)
from homefax.ledger.client import LedgerClient
from homefax.services.authorization_guard import AuthorizationGuard
from homefax.services.content_gate import ContentGate
from homefax.services.content_store import ContentStore
from homefax.services.purchase_service import PurchaseService
from homefax.services.registry_service import PropertyView, RegistryService, ReportView

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/blockchain")


def _property_out(p: PropertyView) -> PropertyOut:
    return PropertyOut(
        id=p.id,
        propertyAddress=p.address,
        city=p.city,
        state=p.state,
        zipCode=p.zip_code,
        owner=p.owner,
        createdAtIso=p.created_at.isoformat(),
        updatedAtIso=p.updated_at.isoformat(),
        isVerified=p.verified,
    )


def _report_out(r: ReportView) -> ReportOut:
    return ReportOut(
        id=r.id,
        propertyId=r.property_id,
        reportType=r.report_type,
        reportHash=r.content_ref,
        creator=r.creator,
        price=r.price,
        createdAtIso=r.created_at.isoformat(),
        isVerified=r.verified,
    )


# ─────────────────────────────────────────────
# AUTHORIZATION
# ─────────────────────────────────────────────

@router.get("/authorization", response_model=AuthorizationStatusResponse)
async def get_authorization(
    wallet: str = Depends(require_wallet_address),
    ledger: LedgerClient = Depends(get_ledger),
):
    return AuthorizationStatusResponse(address=wallet, authorized=await ledger.is_authorized(wallet))


@router.delete("/authorization", response_model=AuthorizationStatusResponse)
async def revoke_authorization(
    wallet: str = Depends(require_wallet_address),
    guard: AuthorizationGuard = Depends(get_guard),
):
    revoked = await guard.revoke(wallet)
    logger.info("[blockchain] revoke authorization address=%s revoked=%s", wallet, revoked)
    return AuthorizationStatusResponse(address=wallet, authorized=False, changed=revoked)


# ─────────────────────────────────────────────
# PROPERTIES
# ─────────────────────────────────────────────

@router.post("/property", response_model=PropertyCreatedResponse, status_code=201)
async def create_property(
    req: CreatePropertyRequest,
    wallet: str = Depends(require_wallet_address),
    svc: RegistryService = Depends(get_registry_service),
):
    logger.info("[blockchain] create property owner=%s", wallet)
    property_id = await svc.create_property(
        wallet,
        address=req.propertyAddress,
        city=req.city,
        state=req.state,
        zip_code=req.zipCode,
    )
    return PropertyCreatedResponse(propertyId=property_id)


@router.get("/property/{propertyId}", response_model=PropertyResponse)
async def get_property(
    propertyId: int,
    wallet: str = Depends(require_wallet_address),
    svc: RegistryService = Depends(get_registry_service),
):
    return PropertyResponse(property=_property_out(await svc.get_property(wallet, propertyId)))


@router.get("/property/{propertyId}/reports", response_model=ReportIdsResponse)
async def get_property_reports(
    propertyId: int,
    wallet: str = Depends(require_wallet_address),
    svc: RegistryService = Depends(get_registry_service),
):
    return ReportIdsResponse(reportIds=await svc.get_property_reports(wallet, propertyId))


@router.get("/user/properties", response_model=PropertyIdsResponse)
async def get_user_properties(
    wallet: str = Depends(require_wallet_address),
    svc: RegistryService = Depends(get_registry_service),
):
    return PropertyIdsResponse(propertyIds=await svc.get_user_properties(wallet))


# ─────────────────────────────────────────────
# REPORTS
# ─────────────────────────────────────────────

@router.post("/report", response_model=ReportCreatedResponse, status_code=201)
async def create_report(
    req: CreateReportRequest,
    wallet: str = Depends(require_wallet_address),
    svc: RegistryService = Depends(get_registry_service),
):
    logger.info("[blockchain] create report caller=%s author=%s property=%s", wallet, req.authorAddress, req.propertyId)
    created = await svc.create_report(
        req.authorAddress,
        req.ownerAddress,
        property_id=req.propertyId,
        report_type=req.reportType,
        content_ref=req.reportHash,
        price=req.price,
    )
    return ReportCreatedResponse(reportId=created.report_id, author=created.creator, owner=created.owner)


@router.get("/report/{reportId}", response_model=ReportResponse)
async def get_report(
    reportId: int,
    wallet: str = Depends(require_wallet_address),
    svc: RegistryService = Depends(get_registry_service),
):
    return ReportResponse(report=_report_out(await svc.get_report(wallet, reportId)))


@router.post("/report/{reportId}/purchase", response_model=PurchaseResponse)
async def purchase_report(
    reportId: int,
    req: PurchaseRequest,
    wallet: str = Depends(require_wallet_address),
    svc: PurchaseService = Depends(get_purchase_service),
):
    result = await svc.purchase_report(wallet, reportId, req.price)
    return PurchaseResponse(reportId=result.report_id, txHash=result.tx_hash)


@router.get("/report/{reportId}/purchased", response_model=PurchaseStatusResponse)
async def has_purchased_report(
    reportId: int,
    buyer: Optional[str] = Query(default=None, description="Defaults to the caller"),
    wallet: str = Depends(require_wallet_address),
    svc: PurchaseService = Depends(get_purchase_service),
):
    if buyer:
        try:
            buyer = normalize_address(buyer)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
    target = buyer or wallet
    purchased = await svc.has_purchased_report(wallet, target, reportId)
    return PurchaseStatusResponse(reportId=reportId, buyer=target, purchased=purchased)


@router.get("/report/{reportId}/content", response_model=ReportContentResponse)
async def get_report_content(
    reportId: int,
    wallet: str = Depends(require_wallet_address),
    gate: ContentGate = Depends(get_content_gate),
    store: Optional[ContentStore] = Depends(get_content_store),
):
    ref = await gate.get_report_content(wallet, reportId)
    if store is None:
        return ReportContentResponse(reportHash=ref)

    raw = await store.resolve(ref)
    try:
        return ReportContentResponse(reportHash=ref, content=raw.decode("utf-8"), contentType="text/plain", contentEncoding="utf-8")
    except UnicodeDecodeError:
        return ReportContentResponse(
            reportHash=ref,
            content=base64.b64encode(raw).decode("ascii"),
            contentType="application/octet-stream",
            contentEncoding="base64",
        )
