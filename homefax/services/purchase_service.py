# homefax/services/purchase_service.py
from __future__ import annotations

import logging
from dataclasses import dataclass

from homefax.core.errors import AlreadyPurchased, TxStage
from homefax.ledger.client import LedgerClient
from homefax.ledger.units import to_smallest_unit
from homefax.services.authorization_guard import AuthorizationGuard
from homefax.services.tx_runner import TxRunner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PurchaseResult:
    report_id: int
    buyer: str
    tx_hash: str


class PurchaseService:
    def __init__(self, ledger: LedgerClient, guard: AuthorizationGuard, runner: TxRunner):
        self.ledger = ledger
        self.guard = guard
        self.runner = runner

    async def purchase_report(self, buyer: str, report_id: int, price: str) -> PurchaseResult:
        """
        Value-attached purchase. Success only on a confirmed receipt.

        A buyer who already holds the grant gets AlreadyPurchased and no transaction
        is sent. Two purchases racing past that read are settled by the ledger; its
        rejection of the second comes back as AlreadyPurchased from the adapter.
        """
        value_wei = to_smallest_unit(price)

        await self.guard.ensure_authorized(buyer)

        if await self.ledger.has_purchased(buyer, report_id):
            logger.info("[purchase] report=%s buyer=%s already granted; nothing sent", report_id, buyer)
            raise AlreadyPurchased(
                operation="purchase_report",
                entity_id=report_id,
                stage=TxStage.SUBMITTING,
            )

        receipt = await self.runner.run(
            actor=buyer,
            operation="purchase_report",
            entity_id=report_id,
            submit=lambda: self.ledger.submit_purchase(
                buyer=buyer,
                report_id=report_id,
                value_wei=value_wei,
            ),
        )
        logger.info("[purchase] report=%s buyer=%s value_wei=%s tx=%s", report_id, buyer, value_wei, receipt.tx_hash)
        return PurchaseResult(report_id=report_id, buyer=buyer, tx_hash=receipt.tx_hash)

    async def has_purchased_report(self, caller: str, buyer: str, report_id: int) -> bool:
        await self.guard.ensure_authorized(caller)
        return bool(await self.ledger.has_purchased(buyer, report_id))
