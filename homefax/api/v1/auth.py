#homefax/api/v1/auth.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from homefax.db.session import get_db
from homefax.schemas.auth import LoginRequest, RegisterRequest, TokenResponse, WalletLoginRequest
from homefax.services import auth_service
from homefax.api.v1.users import identity_out

router = APIRouter(prefix="/auth")


@router.post("/register", response_model=TokenResponse, status_code=201)
def register(req: RegisterRequest, db: Session = Depends(get_db)):
    # duplicate email / wallet -> Conflict -> 409 via the app error handler
    token, identity = auth_service.register(
        db,
        email=req.email,
        password=req.password,
        name=req.name,
        wallet_address=req.walletAddress,
    )
    return TokenResponse(access_token=token, user=identity_out(identity))


@router.post("/login", response_model=TokenResponse)
def login(req: LoginRequest, db: Session = Depends(get_db)):
    identity = auth_service.authenticate(db, req.email, req.password)
    if not identity:
        raise HTTPException(status_code=401, detail="Invalid credentials")

    return TokenResponse(access_token=auth_service.issue_token(identity), user=identity_out(identity))


@router.post("/wallet-login", response_model=TokenResponse)
def wallet_login(req: WalletLoginRequest, db: Session = Depends(get_db)):
    token, identity = auth_service.login_with_wallet(db, req.walletAddress)
    return TokenResponse(access_token=token, user=identity_out(identity))
