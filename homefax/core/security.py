# homefax/core/security.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from jose import jwt
from passlib.context import CryptContext

from homefax.core.config import get_settings

TOKEN_ISSUER = "homefax"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(raw: str) -> str:
    return pwd_context.hash(raw)


def verify_password(raw: str, hashed: str) -> Tuple[bool, Optional[str]]:
    """
    (matches, upgraded_hash). upgraded_hash is set when the stored hash was made
    with settings the context now considers deprecated; persist it.
    """
    return pwd_context.verify_and_update(raw, hashed)


def create_access_token(
    identity_id: str,
    *,
    email: Optional[str] = None,
    wallet_address: Optional[str] = None,
    expires_minutes: Optional[int] = None,
) -> str:
    settings = get_settings()
    now = datetime.now(timezone.utc)
    expires = now + timedelta(minutes=expires_minutes or settings.jwt_access_token_minutes)

    payload: Dict[str, Any] = {
        "sub": identity_id,
        "iss": TOKEN_ISSUER,
        "iat": int(now.timestamp()),
        "exp": int(expires.timestamp()),
    }
    # informational only; auth_deps re-reads the identity row
    if email:
        payload["email"] = email
    if wallet_address:
        payload["wallet_address"] = wallet_address
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Dict[str, Any]:
    """Raises jose.JWTError on a bad signature, expiry or foreign issuer."""
    settings = get_settings()
    return jwt.decode(
        token,
        settings.jwt_secret_key,
        algorithms=[settings.jwt_algorithm],
        issuer=TOKEN_ISSUER,
    )
