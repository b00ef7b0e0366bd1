from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from homefax.ledger.addresses import normalize_address


class IdentityOut(BaseModel):
    """Never carries the password hash."""

    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    walletAddress: Optional[str] = None
    isEmailVerified: bool = False
    isWalletVerified: bool = False
    createdAtIso: Optional[str] = None
    updatedAtIso: Optional[str] = None


class CreateUserRequest(BaseModel):
    email: EmailStr
    password: Optional[str] = Field(default=None, min_length=8, description="Password must be at least 8 characters long")
    name: Optional[str] = None
    walletAddress: Optional[str] = Field(default=None, description="Ethereum wallet address")
    isEmailVerified: bool = False
    isWalletVerified: bool = False

    @field_validator("walletAddress")
    @classmethod
    def _wallet(cls, v: Optional[str]) -> Optional[str]:
        return normalize_address(v) if v else None


class UpdateUserRequest(BaseModel):
    """Omitted fields are left as they are. Verification flags are not client-settable here."""

    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=8)
    name: Optional[str] = None
    walletAddress: Optional[str] = None

    @field_validator("walletAddress")
    @classmethod
    def _wallet(cls, v: Optional[str]) -> Optional[str]:
        return normalize_address(v) if v else None
