# homefax/services/identity_service.py
from __future__ import annotations

import logging
import uuid
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from homefax.core.errors import Conflict, NotFound
from homefax.core.security import hash_password
from homefax.ledger.addresses import normalize_address
from homefax.models.identity import Identity
from homefax.models.stored_file import StoredFile

logger = logging.getLogger(__name__)


class IdentityService:
    # ─────────────────────────────────────────────
    # LOOKUPS
    # ─────────────────────────────────────────────

    def get(self, db: Session, identity_id: uuid.UUID) -> Optional[Identity]:
        return db.execute(select(Identity).where(Identity.id == identity_id)).scalar_one_or_none()

    def find_by_email(self, db: Session, email: str) -> Optional[Identity]:
        return db.execute(select(Identity).where(Identity.email == email.lower())).scalar_one_or_none()

    def find_by_wallet_address(self, db: Session, wallet_address: str) -> Optional[Identity]:
        return db.execute(
            select(Identity).where(Identity.wallet_address == wallet_address)
        ).scalar_one_or_none()

    def list_all(self, db: Session) -> List[Identity]:
        return list(db.execute(select(Identity).order_by(Identity.created_at, Identity.id)).scalars())

    def require(self, db: Session, identity_id: uuid.UUID) -> Identity:
        identity = self.get(db, identity_id)
        if identity is None:
            raise NotFound("User not found", operation="get_identity", entity_id=identity_id)
        return identity

    # ─────────────────────────────────────────────
    # CREATE
    # ─────────────────────────────────────────────

    def create(
        self,
        db: Session,
        *,
        email: Optional[str] = None,
        name: Optional[str] = None,
        password: Optional[str] = None,
        wallet_address: Optional[str] = None,
        is_email_verified: bool = False,
        is_wallet_verified: bool = False,
    ) -> Identity:
        """
        Insert an identity. Duplicate email or wallet -> Conflict, whether caught by the
        pre-check or by the store's unique constraint (a concurrent insert won).
        """
        email = email.lower() if email else None
        wallet = normalize_address(wallet_address) if wallet_address else None

        if email and self.find_by_email(db, email):
            raise Conflict("Email already in use", operation="create_identity", entity_id=email)
        if wallet and self.find_by_wallet_address(db, wallet):
            raise Conflict("Wallet address already in use", operation="create_identity", entity_id=wallet)

        row = Identity(
            email=email,
            name=name,
            password_hash=hash_password(password) if password else None,
            wallet_address=wallet,
            is_email_verified=is_email_verified,
            is_wallet_verified=is_wallet_verified,
        )
        db.add(row)
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            raise Conflict(
                "Email or wallet address already in use",
                operation="create_identity",
                entity_id=wallet or email,
                cause=exc,
            ) from exc

        db.refresh(row)
        logger.info("[identity] created id=%s wallet=%s email=%s", row.id, wallet, email)
        return row

    # ─────────────────────────────────────────────
    # UPDATE / DELETE
    # ─────────────────────────────────────────────

    def update(
        self,
        db: Session,
        identity: Identity,
        *,
        email: Optional[str] = None,
        name: Optional[str] = None,
        password: Optional[str] = None,
        wallet_address: Optional[str] = None,
    ) -> Identity:
        """
        Partial update; None leaves a field unchanged. A new email or wallet is
        unverified until proven again.
        """
        email = email.lower() if email is not None else None
        wallet = normalize_address(wallet_address) if wallet_address is not None else None

        # look up clashes before touching the row so autoflush has nothing pending
        if email is not None and email != identity.email:
            other = self.find_by_email(db, email)
            if other is not None and other.id != identity.id:
                raise Conflict("Email already in use", operation="update_identity", entity_id=email)
        if wallet is not None and wallet != identity.wallet_address:
            other = self.find_by_wallet_address(db, wallet)
            if other is not None and other.id != identity.id:
                raise Conflict("Wallet address already in use", operation="update_identity", entity_id=wallet)

        if email is not None and email != identity.email:
            identity.email = email
            identity.is_email_verified = False
        if wallet is not None and wallet != identity.wallet_address:
            identity.wallet_address = wallet
            identity.is_wallet_verified = False

        if name is not None:
            identity.name = name
        if password is not None:
            identity.password_hash = hash_password(password)

        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            raise Conflict(
                "Email or wallet address already in use",
                operation="update_identity",
                entity_id=identity.id,
                cause=exc,
            ) from exc

        db.refresh(identity)
        logger.info("[identity] updated id=%s", identity.id)
        return identity

    def delete(self, db: Session, identity: Identity) -> None:
        identity_id = identity.id
        # sqlite does not enforce the cascade; clear the file index explicitly
        db.execute(delete(StoredFile).where(StoredFile.uploader_id == identity_id))
        db.delete(identity)
        db.commit()
        logger.info("[identity] deleted id=%s", identity_id)

    # ─────────────────────────────────────────────
    # WALLET BOOTSTRAP
    # ─────────────────────────────────────────────

    def resolve_or_create_by_wallet(self, db: Session, wallet_address: str) -> Identity:
        """
        Idempotent upsert keyed on wallet address.

        Losing the insert race to a concurrent first login surfaces as Conflict;
        that is recovered here by re-reading the winner's row.
        """
        wallet = normalize_address(wallet_address)

        existing = self.find_by_wallet_address(db, wallet)
        if existing:
            return existing

        try:
            return self.create(db, wallet_address=wallet, is_wallet_verified=True)
        except Conflict:
            logger.info("[identity] wallet=%s created concurrently; re-reading", wallet)
            winner = self.find_by_wallet_address(db, wallet)
            if winner is None:
                raise
            return winner
