# homefax/models/identity.py
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from homefax.db.base import Base


class Identity(Base):
    """
    A registered principal. Email/password accounts and wallet-only accounts share the table.

    wallet_address and email are each unique; the wallet constraint is what keeps
    concurrent first wallet logins from creating two identities.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    email: Mapped[Optional[str]] = mapped_column(String(320), nullable=True, unique=True)
    name: Mapped[Optional[str]] = mapped_column(String(256), nullable=True)
    password_hash: Mapped[Optional[str]] = mapped_column(String(256), nullable=True)

    # EIP-55 checksum form
    wallet_address: Mapped[Optional[str]] = mapped_column(String(42), nullable=True, unique=True)

    is_email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_wallet_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )
