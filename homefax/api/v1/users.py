from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from homefax.core.auth_deps import Principal, get_current_principal
from homefax.db.session import get_db
from homefax.models.identity import Identity
from homefax.schemas.identity import CreateUserRequest, IdentityOut, UpdateUserRequest
from homefax.services.identity_service import IdentityService

router = APIRouter(prefix="/users")


def _iso(dt):
    return dt.isoformat() if dt else None


def identity_out(i: Identity) -> IdentityOut:
    return IdentityOut(
        id=str(i.id),
        email=i.email,
        name=i.name,
        walletAddress=i.wallet_address,
        isEmailVerified=bool(i.is_email_verified),
        isWalletVerified=bool(i.is_wallet_verified),
        createdAtIso=_iso(i.created_at),
        updatedAtIso=_iso(i.updated_at),
    )


@router.get("/me", response_model=IdentityOut)
def me(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    identity = IdentityService().get(db, uuid.UUID(principal.identity_id))
    if not identity:
        raise HTTPException(status_code=404, detail="User not found")
    return identity_out(identity)


def _parse_id(userId: str) -> uuid.UUID:
    try:
        return uuid.UUID(userId)
    except ValueError:
        raise HTTPException(status_code=404, detail="User not found")


def _require_self(principal: Principal, target: uuid.UUID) -> None:
    if principal.identity_id != str(target):
        raise HTTPException(status_code=403, detail="Not allowed to modify another user")


@router.post("", response_model=IdentityOut, status_code=201)
def create_user(req: CreateUserRequest, db: Session = Depends(get_db)):
    identity = IdentityService().create(
        db,
        email=req.email,
        name=req.name,
        password=req.password,
        wallet_address=req.walletAddress,
        is_email_verified=req.isEmailVerified,
        is_wallet_verified=req.isWalletVerified,
    )
    return identity_out(identity)


@router.get("", response_model=List[IdentityOut])
def list_users(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    return [identity_out(i) for i in IdentityService().list_all(db)]


@router.get("/{userId}", response_model=IdentityOut)
def get_user(
    userId: str,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    return identity_out(IdentityService().require(db, _parse_id(userId)))


@router.patch("/{userId}", response_model=IdentityOut)
def update_user(
    userId: str,
    req: UpdateUserRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    target = _parse_id(userId)
    _require_self(principal, target)

    svc = IdentityService()
    identity = svc.update(
        db,
        svc.require(db, target),
        email=req.email,
        name=req.name,
        password=req.password,
        wallet_address=req.walletAddress,
    )
    return identity_out(identity)


@router.delete("/{userId}", status_code=204)
def delete_user(
    userId: str,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    target = _parse_id(userId)
    _require_self(principal, target)

    svc = IdentityService()
    svc.delete(db, svc.require(db, target))
    return Response(status_code=204)
