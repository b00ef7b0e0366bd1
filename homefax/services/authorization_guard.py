# homefax/services/authorization_guard.py
from __future__ import annotations

import logging

from homefax.core.errors import (
    AuthorizationFailed,
    HomeFaxError,
    TxStage,
)
from homefax.ledger.client import LedgerClient

logger = logging.getLogger(__name__)


class AuthorizationGuard:
    """
    Makes sure an address carries the ledger's authorization fact before it acts.

    Idempotent: an address that is already authorized costs one read and no transaction.
    "Already authorized" and "just authorized" are the same success to the caller.
    """

    def __init__(self, ledger: LedgerClient, *, confirmation_timeout: float):
        self.ledger = ledger
        self.confirmation_timeout = confirmation_timeout

    async def ensure_authorized(self, address: str) -> None:
        if not address:
            raise AuthorizationFailed("Missing caller address.", operation="authorize", stage=TxStage.PENDING_AUTH)

        try:
            if await self.ledger.is_authorized(address):
                return
        except HomeFaxError as exc:
            logger.error("[auth-guard] authorization lookup failed address=%s err=%s", address, exc)
            raise AuthorizationFailed(
                operation="authorize", entity_id=address, cause=exc, stage=TxStage.PENDING_AUTH
            ) from exc

        logger.info("[auth-guard] %s -> %s address=%s", TxStage.PENDING_AUTH.value, TxStage.AUTHORIZING.value, address)
        try:
            handle = await self.ledger.submit_authorize(address)
            await self.ledger.wait_for_confirmation(handle, timeout=self.confirmation_timeout)
        except HomeFaxError as exc:
            # a timed-out authorize is still a failure to establish authorization
            logger.error("[auth-guard] authorize failed address=%s kind=%s err=%s", address, exc.code, exc)
            raise AuthorizationFailed(
                operation="authorize", entity_id=address, cause=exc, stage=TxStage.AUTHORIZING
            ) from exc

        logger.info("[auth-guard] address=%s authorized", address)

    async def revoke(self, address: str) -> bool:
        """
        Drop the ledger's authorization fact for an address.
        False when the address was not authorized, and nothing is sent.
        """
        if not await self.ledger.is_authorized(address):
            return False

        logger.info("[auth-guard] deauthorizing address=%s", address)
        try:
            handle = await self.ledger.submit_deauthorize(address)
            await self.ledger.wait_for_confirmation(handle, timeout=self.confirmation_timeout)
        except HomeFaxError as exc:
            logger.error("[auth-guard] deauthorize failed address=%s kind=%s err=%s", address, exc.code, exc)
            raise AuthorizationFailed(
                f"Could not revoke ledger authorization for {address}.",
                operation="deauthorize",
                entity_id=address,
                cause=exc,
                stage=TxStage.AUTHORIZING,
            ) from exc

        logger.info("[auth-guard] address=%s deauthorized", address)
        return True
