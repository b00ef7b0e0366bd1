from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    # ─────────── APP ───────────
    app_name: str = "HomeFax API"
    app_version: str = "1.0.0"
    environment: str = "dev"
    log_level: str = "INFO"

    # ─────────── API ───────────
    api_prefix: str = "/api/v1"
    request_id_header: str = "X-Request-Id"

    # ─────────── DATABASE ───────────
    database_url: str

    # ─────────── JWT / AUTH ───────────
    jwt_secret_key: str
    jwt_algorithm: str = "HS256"
    jwt_access_token_minutes: int = 1440  # 24 hours

    # ─────────── LEDGER ───────────
    ethereum_rpc_url: Optional[str] = None
    ethereum_private_key: Optional[str] = None
    homefax_contract_address: Optional[str] = None
    homefax_contract_abi_path: str = "contracts/HomeFax.json"
    ledger_confirmation_timeout_seconds: float = 120.0
    ledger_poll_interval_seconds: float = 1.0

    # ─────────── CONTENT STORE ───────────
    content_gateway_url: Optional[str] = None
    content_fetch_timeout_seconds: float = 30.0
    # IPFS HTTP API for uploads; unset leaves the store read-only
    content_api_url: Optional[str] = None
    # on-chain directory contract that indexes uploads, reported to clients as-is
    content_store_contract_address: Optional[str] = None
    content_max_upload_bytes: int = 10 * 1024 * 1024

    @property
    def ledger_configured(self) -> bool:
        return bool(
            self.ethereum_rpc_url
            and self.ethereum_private_key
            and self.homefax_contract_address
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
