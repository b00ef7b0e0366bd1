# homefax/core/errors.py
from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class TxStage(str, Enum):
    """
    Lifecycle of a single ledger-mediated operation.

    PENDING_AUTH -> AUTHORIZING (only if needed) -> SUBMITTING -> CONFIRMING -> DONE
    FAILED is reachable from every state.
    """

    PENDING_AUTH = "PENDING_AUTH"
    AUTHORIZING = "AUTHORIZING"
    SUBMITTING = "SUBMITTING"
    CONFIRMING = "CONFIRMING"
    DONE = "DONE"
    FAILED = "FAILED"


class HomeFaxError(Exception):
    """
    Base of the error taxonomy. Callers branch on the subclass, never on the message.
    """

    code = "HOMEFAX_ERROR"
    status_code = 500
    public_message = "Operation failed."

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        operation: Optional[str] = None,
        entity_id: Any = None,
        cause: Optional[BaseException] = None,
        stage: Optional[TxStage] = None,
    ):
        super().__init__(message or self.public_message)
        self.operation = operation
        self.entity_id = entity_id
        self.cause = cause
        self.stage = stage

    def context(self) -> dict:
        return {
            "code": self.code,
            "operation": self.operation,
            "entity_id": None if self.entity_id is None else str(self.entity_id),
            "stage": self.stage.value if self.stage else None,
            "cause": repr(self.cause) if self.cause else None,
        }


class AuthorizationFailed(HomeFaxError):
    code = "AUTHORIZATION_FAILED"
    status_code = 403
    public_message = "Could not authorize the caller on the ledger."


class TransactionSubmissionFailed(HomeFaxError):
    code = "TRANSACTION_SUBMISSION_FAILED"
    status_code = 502
    public_message = "The ledger rejected the transaction."


class TransactionTimedOut(HomeFaxError):
    """Outcome unknown: the transaction may still confirm. Poll, do not resubmit."""

    code = "TRANSACTION_TIMED_OUT"
    status_code = 504
    public_message = "Transaction outcome unknown: confirmation timed out."

    def __init__(self, message: Optional[str] = None, *, tx_hash: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.tx_hash = tx_hash

    def context(self) -> dict:
        ctx = super().context()
        ctx["tx_hash"] = self.tx_hash
        return ctx


class LedgerUnavailable(HomeFaxError):
    code = "LEDGER_UNAVAILABLE"
    status_code = 502
    public_message = "The ledger could not be queried."


class ContentUnavailable(HomeFaxError):
    code = "CONTENT_UNAVAILABLE"
    status_code = 502
    public_message = "Report content could not be fetched."


class MalformedConfirmation(HomeFaxError):
    code = "MALFORMED_CONFIRMATION"
    status_code = 500
    public_message = "Transaction confirmed without the expected result event."


class NotFound(HomeFaxError):
    code = "NOT_FOUND"
    status_code = 404
    public_message = "Entity not found on the ledger."


class AccessDenied(HomeFaxError):
    code = "ACCESS_DENIED"
    status_code = 403
    public_message = "Report content requires ownership or a purchase."


class AlreadyPurchased(HomeFaxError):
    code = "ALREADY_PURCHASED"
    status_code = 409
    public_message = "Report already purchased by this buyer."


class Conflict(HomeFaxError):
    code = "CONFLICT"
    status_code = 409
    public_message = "Resource already exists."


class InvalidAmount(HomeFaxError):
    code = "INVALID_AMOUNT"
    status_code = 400
    public_message = "Invalid amount."


class InvalidRequest(HomeFaxError):
    code = "INVALID_REQUEST"
    status_code = 400
    public_message = "Invalid request."
