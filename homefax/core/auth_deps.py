#homefax/core/auth_deps.py
from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from homefax.core.security import decode_token
from homefax.db.session import get_db
from homefax.services.identity_service import IdentityService

bearer = HTTPBearer(auto_error=True)


@dataclass(frozen=True)
class Principal:
    identity_id: str
    email: Optional[str]
    wallet_address: Optional[str]


def get_current_principal(
    request: Request,
    creds: HTTPAuthorizationCredentials = Depends(bearer),
    db: Session = Depends(get_db),
) -> Principal:
    """
    Canonical authentication dependency.

    Guarantees:
    - JWT is valid and unexpired
    - sub resolves to an existing identity
    Wallet address is read from the identity store, not the token, so a token
    issued before a wallet was linked still sees the current address.
    """

    try:
        payload = decode_token(creds.credentials)
    except Exception:
        raise HTTPException(status_code=401, detail="Invalid or expired token.")

    sub = payload.get("sub")
    if not sub:
        raise HTTPException(status_code=401, detail="Token missing required claims.")

    try:
        identity_id = uuid.UUID(str(sub))
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid subject in token.")

    identity = IdentityService().get(db, identity_id)
    if not identity:
        raise HTTPException(status_code=401, detail="User not found")

    principal = Principal(
        identity_id=str(identity.id),
        email=identity.email,
        wallet_address=identity.wallet_address,
    )

    # Make principal available to downstream middleware / handlers
    request.state.principal = principal

    return principal


def require_wallet_address(principal: Principal = Depends(get_current_principal)) -> str:
    if not principal.wallet_address:
        raise HTTPException(status_code=400, detail="User wallet address is required")
    return principal.wallet_address
