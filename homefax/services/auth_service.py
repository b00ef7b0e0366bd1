# homefax/services/auth_service.py
from __future__ import annotations

import logging
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from homefax.core.security import create_access_token, verify_password
from homefax.models.identity import Identity
from homefax.services.identity_service import IdentityService

logger = logging.getLogger(__name__)


def issue_token(identity: Identity) -> str:
    return create_access_token(
        str(identity.id),
        email=identity.email,
        wallet_address=identity.wallet_address,
    )


def authenticate(db: Session, email: str, password: str) -> Identity | None:
    identity = IdentityService().find_by_email(db, email)

    if not identity or not identity.password_hash:
        return None

    ok, upgraded = verify_password(password, identity.password_hash)
    if not ok:
        return None

    if upgraded:
        identity.password_hash = upgraded
        db.commit()
        logger.info("[auth] password hash upgraded id=%s", identity.id)

    return identity


def register(
    db: Session,
    *,
    email: str,
    password: str,
    name: Optional[str] = None,
    wallet_address: Optional[str] = None,
) -> Tuple[str, Identity]:
    identity = IdentityService().create(
        db,
        email=email,
        name=name,
        password=password,
        wallet_address=wallet_address,
    )
    return issue_token(identity), identity


def login_with_wallet(db: Session, wallet_address: str) -> Tuple[str, Identity]:
    identity = IdentityService().resolve_or_create_by_wallet(db, wallet_address)
    logger.info("[auth] wallet login id=%s wallet=%s", identity.id, identity.wallet_address)
    return issue_token(identity), identity
