from homefax.schemas.identity import IdentityOut, CreateUserRequest, UpdateUserRequest
from homefax.schemas.auth import RegisterRequest, LoginRequest, WalletLoginRequest, TokenResponse
from homefax.schemas.registry import (
    CreatePropertyRequest,
    CreateReportRequest,
    PurchaseRequest,
    PropertyOut,
    ReportOut,
)
