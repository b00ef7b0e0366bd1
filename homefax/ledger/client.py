# homefax/ledger/client.py
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class TxHandle:
    tx_hash: str
    operation: str


@dataclass(frozen=True)
class LedgerEvent:
    name: str
    args: Dict[str, Any]
    log_index: Optional[int] = None


@dataclass(frozen=True)
class Receipt:
    tx_hash: str
    block_number: Optional[int]
    succeeded: bool
    events: List[LedgerEvent] = field(default_factory=list)


@dataclass(frozen=True)
class PropertyRecord:
    """Ledger-native property: integer seconds."""

    id: int
    property_address: str
    city: str
    state: str
    zip_code: str
    owner: str
    created_at: int
    updated_at: int
    is_verified: bool


@dataclass(frozen=True)
class ReportRecord:
    """Ledger-native report: integer seconds, price in wei."""

    id: int
    property_id: int
    report_type: str
    report_hash: str
    creator: str
    price_wei: int
    created_at: int
    is_verified: bool


class LedgerClient(ABC):
    """
    Capability surface of the authoritative ledger.

    One relayer account sends every transaction and every read, so the ledger's
    msg.sender is always the relayer. The acting address (owner, creator, buyer,
    reader) is always an explicit argument, and the ledger records and checks
    that argument, never the sender.

    Implementations classify their native failures into homefax.core.errors:
      - submit_*: TransactionSubmissionFailed, or NotFound / AccessDenied /
        AlreadyPurchased when the ledger rejects for that reason
      - wait_for_confirmation: TransactionTimedOut (outcome unknown), the
        classified revert reason for a mined failure (AlreadyPurchased, ...),
        TransactionSubmissionFailed when the reason cannot be recovered
      - get_*: NotFound for missing entities
      - get_report_content_ref: AccessDenied for non-creator, non-purchaser callers
    """

    # ─────────── AUTHORIZATION ───────────

    @abstractmethod
    async def is_authorized(self, address: str) -> bool: ...

    @abstractmethod
    async def submit_authorize(self, address: str) -> TxHandle: ...

    @abstractmethod
    async def submit_deauthorize(self, address: str) -> TxHandle: ...

    # ─────────── WRITES ───────────

    @abstractmethod
    async def submit_create_property(
        self,
        *,
        owner: str,
        property_address: str,
        city: str,
        state: str,
        zip_code: str,
    ) -> TxHandle: ...

    @abstractmethod
    async def submit_create_report(
        self,
        *,
        creator: str,
        property_id: int,
        report_type: str,
        report_hash: str,
        price_wei: int,
    ) -> TxHandle: ...

    @abstractmethod
    async def submit_purchase(self, *, buyer: str, report_id: int, value_wei: int) -> TxHandle: ...

    @abstractmethod
    async def wait_for_confirmation(self, handle: TxHandle, *, timeout: float) -> Receipt: ...

    # ─────────── READS ───────────

    @abstractmethod
    async def get_property(self, property_id: int) -> PropertyRecord: ...

    @abstractmethod
    async def get_report(self, report_id: int) -> ReportRecord: ...

    @abstractmethod
    async def get_user_properties(self, address: str) -> List[int]: ...

    @abstractmethod
    async def get_property_reports(self, property_id: int) -> List[int]: ...

    @abstractmethod
    async def has_purchased(self, buyer: str, report_id: int) -> bool: ...

    @abstractmethod
    async def get_report_content_ref(self, caller: str, report_id: int) -> str: ...

    async def aclose(self) -> None:
        return None
