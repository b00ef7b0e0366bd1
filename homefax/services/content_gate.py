from __future__ import annotations

import logging

from homefax.core.errors import AccessDenied
from homefax.ledger.client import LedgerClient
from homefax.services.authorization_guard import AuthorizationGuard

logger = logging.getLogger(__name__)


class ContentGate:
    """
    Hands out a report's content reference only to its creator or a purchaser.
    The ledger call itself performs the ownership/purchase check.
    """

    def __init__(self, ledger: LedgerClient, guard: AuthorizationGuard):
        self.ledger = ledger
        self.guard = guard

    async def get_report_content(self, caller: str, report_id: int) -> str:
        await self.guard.ensure_authorized(caller)
        try:
            ref = await self.ledger.get_report_content_ref(caller, report_id)
        except AccessDenied:
            logger.warning("[content] denied report=%s caller=%s", report_id, caller)
            raise
        logger.info("[content] granted report=%s caller=%s", report_id, caller)
        return ref
