import os
import tempfile

# settings are read once on import; point them at a throwaway database first
_TMP_DIR = tempfile.mkdtemp(prefix="homefax-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_DIR}/homefax.db"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["CONTENT_GATEWAY_URL"] = ""
os.environ["ETHEREUM_RPC_URL"] = ""

import asyncio
import itertools
import time
from typing import Dict, List, Optional, Set, Tuple

import pytest
from web3 import Web3

# FORCE model registration
import homefax.models.identity  # noqa
import homefax.models.stored_file  # noqa

from homefax.core.errors import (
    AccessDenied,
    AlreadyPurchased,
    NotFound,
    TransactionSubmissionFailed,
    TransactionTimedOut,
    TxStage,
)
from homefax.db.base import Base
from homefax.db.session import SessionLocal, engine
from homefax.ledger.client import (
    LedgerClient,
    LedgerEvent,
    PropertyRecord,
    Receipt,
    ReportRecord,
    TxHandle,
)
from homefax.services.authorization_guard import AuthorizationGuard
from homefax.services.content_gate import ContentGate
from homefax.services.content_store import ContentStore, StoredContent
from homefax.services.purchase_service import PurchaseService
from homefax.services.registry_service import RegistryService
from homefax.services.tx_runner import TxRunner

ALICE = Web3.to_checksum_address("0x" + "a1" * 20)
BOB = Web3.to_checksum_address("0x" + "b2" * 20)
CAROL = Web3.to_checksum_address("0x" + "c3" * 20)


class FakeLedgerClient(LedgerClient):
    """
    In-memory ledger with the registry contract's rules.

    Same sender rule as Web3LedgerClient: the relayer sends everything and the
    acting address is always an argument. Ownership, grants and content access
    key on that argument, never on who sent the call.

    Registry effects are applied on submit. A purchase is settled when it
    confirms, so two purchases can both be in flight and the second one to
    confirm is reverted as AlreadyPurchased. Reads and confirmation waits yield
    to the event loop so concurrent callers interleave.
    Knobs:
      - timeout_ops: operations whose confirmation times out
      - fail_ops: operations whose submission is rejected
      - drop_events: confirmed receipts carry no events
      - noisy_events: an unrelated event is logged ahead of the result event
    """

    def __init__(self, *, first_id: int = 1):
        self.authorized: Set[str] = set()
        self.properties: Dict[int, PropertyRecord] = {}
        self.reports: Dict[int, ReportRecord] = {}
        self.property_reports: Dict[int, List[int]] = {}
        self.user_properties: Dict[str, List[int]] = {}
        self.grants: Set[Tuple[str, int]] = set()
        self.transfers: List[Tuple[str, int, int]] = []
        self.submissions: List[str] = []

        self.timeout_ops: Set[str] = set()
        self.fail_ops: Set[str] = set()
        self.drop_events = False
        self.noisy_events = False

        self._ids = itertools.count(first_id)
        self._hashes = itertools.count(1)
        self._receipts: Dict[str, Receipt] = {}
        self._pending_purchases: Dict[str, Tuple[str, int, int]] = {}
        self._now = int(time.time())

    # helpers

    def _submit(self, operation: str, events: Optional[List[LedgerEvent]] = None) -> TxHandle:
        self.submissions.append(operation)
        if operation in self.fail_ops:
            raise TransactionSubmissionFailed(f"{operation} rejected", operation=operation)

        tx_hash = "0x" + format(next(self._hashes), "064x")
        logged: List[LedgerEvent] = []
        if not self.drop_events:
            if self.noisy_events:
                logged.append(LedgerEvent(name="Transfer", args={"value": 999}, log_index=0))
            for i, ev in enumerate(events or [], start=len(logged)):
                logged.append(LedgerEvent(name=ev.name, args=ev.args, log_index=i))
        self._receipts[tx_hash] = Receipt(tx_hash=tx_hash, block_number=len(self._receipts) + 1, succeeded=True, events=logged)
        return TxHandle(tx_hash=tx_hash, operation=operation)

    def submission_count(self, operation: str) -> int:
        return self.submissions.count(operation)

    # authorization

    async def is_authorized(self, address: str) -> bool:
        return address in self.authorized

    async def submit_authorize(self, address: str) -> TxHandle:
        handle = self._submit("authorize", [LedgerEvent(name="UserAuthorized", args={"user": address})])
        if "authorize" not in self.timeout_ops:
            self.authorized.add(address)
        return handle

    async def submit_deauthorize(self, address: str) -> TxHandle:
        handle = self._submit("deauthorize", [LedgerEvent(name="UserDeauthorized", args={"user": address})])
        self.authorized.discard(address)
        return handle

    # writes

    async def submit_create_property(self, *, owner, property_address, city, state, zip_code) -> TxHandle:
        if owner not in self.authorized:
            raise TransactionSubmissionFailed("Not authorized", operation="create_property")
        property_id = next(self._ids)
        handle = self._submit(
            "create_property",
            [LedgerEvent(name="PropertyCreated", args={"propertyId": property_id, "owner": owner})],
        )
        self.properties[property_id] = PropertyRecord(
            id=property_id,
            property_address=property_address,
            city=city,
            state=state,
            zip_code=zip_code,
            owner=owner,
            created_at=self._now,
            updated_at=self._now,
            is_verified=False,
        )
        self.user_properties.setdefault(owner, []).append(property_id)
        self.property_reports.setdefault(property_id, [])
        return handle

    async def submit_create_report(self, *, creator, property_id, report_type, report_hash, price_wei) -> TxHandle:
        if creator not in self.authorized:
            raise TransactionSubmissionFailed("Not authorized", operation="create_report")
        if property_id not in self.properties:
            raise NotFound("Property does not exist", operation="create_report", entity_id=property_id)
        report_id = next(self._ids)
        handle = self._submit(
            "create_report",
            [LedgerEvent(name="ReportCreated", args={"reportId": report_id, "propertyId": property_id})],
        )
        self.reports[report_id] = ReportRecord(
            id=report_id,
            property_id=property_id,
            report_type=report_type,
            report_hash=report_hash,
            creator=creator,
            price_wei=price_wei,
            created_at=self._now,
            is_verified=False,
        )
        self.property_reports[property_id].append(report_id)
        return handle

    async def submit_purchase(self, *, buyer, report_id, value_wei) -> TxHandle:
        report = self.reports.get(report_id)
        if report is None:
            raise NotFound("Report does not exist", operation="purchase_report", entity_id=report_id)
        if (buyer, report_id) in self.grants:
            raise AlreadyPurchased(operation="purchase_report", entity_id=report_id)
        if value_wei != report.price_wei:
            raise TransactionSubmissionFailed("Incorrect payment amount", operation="purchase_report")
        handle = self._submit(
            "purchase_report",
            [LedgerEvent(name="ReportPurchased", args={"reportId": report_id, "buyer": buyer})],
        )
        self._pending_purchases[handle.tx_hash] = (buyer, report_id, value_wei)
        return handle

    async def wait_for_confirmation(self, handle: TxHandle, *, timeout: float) -> Receipt:
        await asyncio.sleep(0)
        if handle.operation in self.timeout_ops:
            raise TransactionTimedOut(operation=handle.operation, tx_hash=handle.tx_hash)

        purchase = self._pending_purchases.pop(handle.tx_hash, None)
        if purchase is not None:
            buyer, report_id, value_wei = purchase
            if (buyer, report_id) in self.grants:
                # mined, reverted; the adapter recovers the reason by replay
                raise AlreadyPurchased(operation="purchase_report", entity_id=report_id, stage=TxStage.CONFIRMING)
            self.grants.add((buyer, report_id))
            self.transfers.append((buyer, report_id, value_wei))
        return self._receipts[handle.tx_hash]

    # reads

    async def get_property(self, property_id: int) -> PropertyRecord:
        if property_id not in self.properties:
            raise NotFound(operation="get_property", entity_id=property_id)
        return self.properties[property_id]

    async def get_report(self, report_id: int) -> ReportRecord:
        if report_id not in self.reports:
            raise NotFound(operation="get_report", entity_id=report_id)
        return self.reports[report_id]

    async def get_user_properties(self, address: str) -> List[int]:
        return list(self.user_properties.get(address, []))

    async def get_property_reports(self, property_id: int) -> List[int]:
        if property_id not in self.properties:
            raise NotFound(operation="get_property_reports", entity_id=property_id)
        return list(self.property_reports[property_id])

    async def has_purchased(self, buyer: str, report_id: int) -> bool:
        await asyncio.sleep(0)
        return (buyer, report_id) in self.grants

    async def get_report_content_ref(self, caller: str, report_id: int) -> str:
        report = self.reports.get(report_id)
        if report is None:
            raise NotFound(operation="get_report_content", entity_id=report_id)
        if caller != report.creator and (caller, report_id) not in self.grants:
            raise AccessDenied(operation="get_report_content", entity_id=report_id)
        return report.report_hash



class MemoryContentStore(ContentStore):
    """Dict-backed store; uploads are keyed by a counter-based content id."""

    def __init__(self, blobs=None):
        self.blobs: Dict[str, bytes] = dict(blobs or {})
        self._cids = itertools.count(1)

    async def resolve(self, content_ref: str) -> bytes:
        if content_ref not in self.blobs:
            raise NotFound(operation="resolve_content", entity_id=content_ref)
        return self.blobs[content_ref]

    async def upload(self, file_name, data, content_type=None) -> StoredContent:
        ref = f"ipfs://Qm{next(self._cids):04d}"
        self.blobs[ref] = data
        return StoredContent(content_ref=ref, size_bytes=len(data))


@pytest.fixture(scope="function")
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def ledger():
    return FakeLedgerClient()


@pytest.fixture
def guard(ledger):
    return AuthorizationGuard(ledger, confirmation_timeout=5)


@pytest.fixture
def runner(ledger):
    return TxRunner(ledger, confirmation_timeout=5)


@pytest.fixture
def registry(ledger, guard, runner):
    return RegistryService(ledger, guard, runner)


@pytest.fixture
def purchases(ledger, guard, runner):
    return PurchaseService(ledger, guard, runner)


@pytest.fixture
def gate(ledger, guard):
    return ContentGate(ledger, guard)
