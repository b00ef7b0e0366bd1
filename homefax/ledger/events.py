from __future__ import annotations

from typing import Any, Optional

from homefax.core.errors import MalformedConfirmation, TxStage
from homefax.ledger.client import LedgerEvent, Receipt

PROPERTY_CREATED = "PropertyCreated"
REPORT_CREATED = "ReportCreated"


def find_event(receipt: Receipt, name: str) -> Optional[LedgerEvent]:
    """
    First event with this name, by log index. Never positional over all logs:
    other contracts (or other events of ours) may log before it.
    """
    matches = [e for e in receipt.events if e.name == name]
    if not matches:
        return None
    matches.sort(key=lambda e: e.log_index if e.log_index is not None else 0)
    return matches[0]


def extract_int_arg(
    receipt: Receipt,
    *,
    event_name: str,
    arg_name: str,
    operation: str,
) -> int:
    """
    Pull an integer id out of a confirmed receipt's named event.
    Absent event, absent arg, or a non-integer value is a MalformedConfirmation.
    """
    event = find_event(receipt, event_name)
    if event is None:
        raise MalformedConfirmation(
            f"{event_name} event missing from confirmed transaction {receipt.tx_hash}.",
            operation=operation,
            stage=TxStage.CONFIRMING,
        )

    raw: Any = event.args.get(arg_name)
    if isinstance(raw, bool) or raw is None:
        raise MalformedConfirmation(
            f"{event_name}.{arg_name} missing in transaction {receipt.tx_hash}.",
            operation=operation,
            stage=TxStage.CONFIRMING,
        )
    try:
        value = int(raw)
    except (TypeError, ValueError) as exc:
        raise MalformedConfirmation(
            f"{event_name}.{arg_name} is not an integer: {raw!r}",
            operation=operation,
            stage=TxStage.CONFIRMING,
            cause=exc,
        )
    if value < 0:
        raise MalformedConfirmation(
            f"{event_name}.{arg_name} is negative: {value}",
            operation=operation,
            stage=TxStage.CONFIRMING,
        )
    return value
