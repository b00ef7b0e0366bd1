from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from homefax.core.errors import (
    HomeFaxError,
    TransactionSubmissionFailed,
    TransactionTimedOut,
    TxStage,
)
from homefax.ledger.client import LedgerClient, Receipt, TxHandle

logger = logging.getLogger(__name__)


class TxRunner:
    """
    Drives one mutating operation through SUBMITTING -> CONFIRMING -> DONE.
    Callers run the AuthorizationGuard first (PENDING_AUTH -> AUTHORIZING).

    No retries: a submitted transaction that does not confirm in time is reported
    as TransactionTimedOut (outcome unknown) and never resubmitted.
    """

    def __init__(self, ledger: LedgerClient, *, confirmation_timeout: float):
        self.ledger = ledger
        self.confirmation_timeout = confirmation_timeout

    async def run(
        self,
        *,
        actor: str,
        operation: str,
        entity_id: Any,
        submit: Callable[[], Awaitable[TxHandle]],
    ) -> Receipt:
        logger.info("[tx] %s stage=%s actor=%s entity=%s", operation, TxStage.SUBMITTING.value, actor, entity_id)
        try:
            handle = await submit()
        except HomeFaxError as exc:
            self._fail(exc, operation=operation, entity_id=entity_id, stage=TxStage.SUBMITTING)
            raise

        logger.info("[tx] %s stage=%s tx=%s", operation, TxStage.CONFIRMING.value, handle.tx_hash)
        try:
            receipt = await self.ledger.wait_for_confirmation(handle, timeout=self.confirmation_timeout)
        except TransactionTimedOut as exc:
            exc.tx_hash = exc.tx_hash or handle.tx_hash
            self._fail(exc, operation=operation, entity_id=entity_id, stage=TxStage.CONFIRMING)
            logger.warning("[tx] %s outcome unknown tx=%s; re-query before retrying", operation, handle.tx_hash)
            raise
        except HomeFaxError as exc:
            self._fail(exc, operation=operation, entity_id=entity_id, stage=TxStage.CONFIRMING)
            raise

        if not receipt.succeeded:
            exc = TransactionSubmissionFailed(
                f"Transaction {handle.tx_hash} reverted.",
                operation=operation,
                entity_id=entity_id,
                stage=TxStage.CONFIRMING,
            )
            self._fail(exc, operation=operation, entity_id=entity_id, stage=TxStage.CONFIRMING)
            raise exc

        logger.info("[tx] %s stage=%s tx=%s block=%s", operation, TxStage.DONE.value, receipt.tx_hash, receipt.block_number)
        return receipt

    @staticmethod
    def _fail(exc: HomeFaxError, *, operation: str, entity_id: Any, stage: TxStage) -> None:
        exc.operation = exc.operation or operation
        if exc.entity_id is None:
            exc.entity_id = entity_id
        exc.stage = exc.stage or stage
        logger.error(
            "[tx] %s stage=%s failed at=%s kind=%s entity=%s err=%s",
            operation,
            TxStage.FAILED.value,
            exc.stage.value,
            exc.code,
            entity_id,
            exc,
        )
