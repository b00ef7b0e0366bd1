from fastapi import APIRouter, Request

from homefax.core.config import get_settings

router = APIRouter()


@router.get("/")
async def status():
    return {"status": "online", "version": get_settings().app_version}


@router.get("/health")
async def health(request: Request):
    rid = getattr(request.state, "request_id", None)
    ledger_ready = getattr(request.app.state, "ledger", None) is not None
    return {"status": "ok", "request_id": rid, "ledger": ledger_ready}
