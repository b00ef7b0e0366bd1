from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from homefax.ledger.addresses import normalize_address
from homefax.schemas.identity import IdentityOut


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8, description="Password must be at least 8 characters long")
    name: Optional[str] = None
    walletAddress: Optional[str] = Field(default=None, description="Ethereum wallet address")

    @field_validator("walletAddress")
    @classmethod
    def _wallet(cls, v: Optional[str]) -> Optional[str]:
        return normalize_address(v) if v else None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class WalletLoginRequest(BaseModel):
    walletAddress: str = Field(..., description="Ethereum wallet address")

    @field_validator("walletAddress")
    @classmethod
    def _wallet(cls, v: str) -> str:
        return normalize_address(v)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: IdentityOut
