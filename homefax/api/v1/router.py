from fastapi import APIRouter

from homefax.api.v1.health import router as health_router
from homefax.api.v1.auth import router as auth_router
from homefax.api.v1.users import router as users_router
from homefax.api.v1.blockchain import router as blockchain_router
from homefax.api.v1.storage import router as storage_router


v1_router = APIRouter()

# ------------------------------------------------------------------
# SYSTEM / CORE
# ------------------------------------------------------------------
v1_router.include_router(health_router, tags=["health"])
v1_router.include_router(auth_router, tags=["auth"])
v1_router.include_router(users_router, tags=["users"])

# ------------------------------------------------------------------
# LEDGER (SOURCE OF TRUTH)
# ------------------------------------------------------------------
v1_router.include_router(blockchain_router, tags=["blockchain"])

# ------------------------------------------------------------------
# CONTENT STORE
# ------------------------------------------------------------------
v1_router.include_router(storage_router, tags=["storage"])
