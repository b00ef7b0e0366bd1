from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from homefax.ledger.addresses import normalize_address


# ─────────── REQUESTS ───────────

class CreatePropertyRequest(BaseModel):
    propertyAddress: str = Field(..., min_length=1, description="Street address", examples=["1 Main St"])
    city: str = Field(..., min_length=1, examples=["Springfield"])
    state: str = Field(..., min_length=1, examples=["IL"])
    zipCode: str = Field(..., min_length=1, examples=["62704"])


class CreateReportRequest(BaseModel):
    propertyId: int = Field(..., ge=0)
    reportType: str = Field(..., min_length=1, examples=["inspection"])
    reportHash: str = Field(..., min_length=1, description="Opaque content reference", examples=["cid:abc"])
    authorAddress: str = Field(..., description="Report creator")
    ownerAddress: str = Field(..., description="Owner context for the report")
    price: str = Field(..., description="Decimal amount in ether", examples=["0.5"])

    @field_validator("authorAddress", "ownerAddress")
    @classmethod
    def _address(cls, v: str) -> str:
        return normalize_address(v)


class PurchaseRequest(BaseModel):
    price: str = Field(..., description="Decimal amount in ether", examples=["0.5"])


# ─────────── RESPONSES ───────────

class PropertyOut(BaseModel):
    id: int
    propertyAddress: str
    city: str
    state: str
    zipCode: str
    owner: str
    createdAtIso: str
    updatedAtIso: str
    isVerified: bool


class ReportOut(BaseModel):
    id: int
    propertyId: int
    reportType: str
    reportHash: str
    creator: str
    price: str
    createdAtIso: str
    isVerified: bool


class PropertyCreatedResponse(BaseModel):
    success: bool = True
    propertyId: int
    message: str = "Property created successfully"


class ReportCreatedResponse(BaseModel):
    success: bool = True
    reportId: int
    author: str
    owner: str
    message: str = "Report created successfully"


class PurchaseResponse(BaseModel):
    success: bool = True
    reportId: int
    txHash: str
    message: str = "Report purchased successfully"


class AuthorizationStatusResponse(BaseModel):
    success: bool = True
    address: str
    authorized: bool
    changed: bool = False


class PurchaseStatusResponse(BaseModel):
    reportId: int
    buyer: str
    purchased: bool


class PropertyResponse(BaseModel):
    success: bool = True
    property: PropertyOut


class ReportResponse(BaseModel):
    success: bool = True
    report: ReportOut


class PropertyIdsResponse(BaseModel):
    success: bool = True
    propertyIds: List[int]


class ReportIdsResponse(BaseModel):
    success: bool = True
    reportIds: List[int]


class ReportContentResponse(BaseModel):
    success: bool = True
    reportHash: str
    content: Optional[str] = Field(default=None, description="Resolved content when a content store is configured")
    contentType: Optional[str] = None
    contentEncoding: Optional[str] = Field(default=None, description="\"utf-8\" or \"base64\"")
