# homefax/ledger/web3_client.py
from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Type

from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import ContractLogicError, TimeExhausted
from web3.logs import DISCARD

from homefax.core.config import Settings
from homefax.core.errors import (
    AccessDenied,
    AlreadyPurchased,
    HomeFaxError,
    LedgerUnavailable,
    NotFound,
    TransactionSubmissionFailed,
    TransactionTimedOut,
    TxStage,
)
from homefax.ledger.client import (
    LedgerClient,
    LedgerEvent,
    PropertyRecord,
    Receipt,
    ReportRecord,
    TxHandle,
)

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x" + "0" * 40

# Revert reasons of the HomeFax contract, matched case-insensitively.
# Classification happens here and nowhere downstream.
_REVERT_KINDS: Sequence[tuple[str, Type[HomeFaxError]]] = (
    ("already purchased", AlreadyPurchased),
    ("not authorized to access", AccessDenied),
    ("access denied", AccessDenied),
    ("must purchase", AccessDenied),
    ("does not exist", NotFound),
    ("not found", NotFound),
    ("invalid property", NotFound),
    ("invalid report", NotFound),
)


def classify_revert(
    exc: ContractLogicError,
    *,
    operation: str,
    entity_id: Any = None,
    stage: Optional[TxStage] = None,
    default: Type[HomeFaxError] = TransactionSubmissionFailed,
) -> HomeFaxError:
    reason = (getattr(exc, "message", None) or str(exc) or "").lower()
    for needle, kind in _REVERT_KINDS:
        if needle in reason:
            return kind(operation=operation, entity_id=entity_id, cause=exc, stage=stage)
    return default(
        f"Ledger reverted {operation}.",
        operation=operation,
        entity_id=entity_id,
        cause=exc,
        stage=stage,
    )


def load_abi(path: str) -> List[Dict[str, Any]]:
    """
    Accepts either a bare ABI list or a Hardhat/Foundry artifact with an "abi" key.
    """
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(raw, dict):
        raw = raw.get("abi")
    if not isinstance(raw, list):
        raise ValueError(f"No ABI found in {path}")
    return raw


class Web3LedgerClient(LedgerClient):
    """
    HomeFax contract over JSON-RPC.

    Every transaction and read is sent by the configured relayer account (the backend
    wallet); owner, creator, buyer and reader go to the contract as arguments.
    Nonce allocation + send is serialized per process; confirmation waits are not.
    """

    def __init__(
        self,
        *,
        w3: AsyncWeb3,
        contract_address: str,
        abi: List[Dict[str, Any]],
        private_key: str,
        poll_interval: float = 1.0,
    ):
        self.w3 = w3
        self.abi = abi
        self.contract = w3.eth.contract(address=AsyncWeb3.to_checksum_address(contract_address), abi=abi)
        self.account = w3.eth.account.from_key(private_key)
        self.poll_interval = poll_interval
        self._send_lock = asyncio.Lock()
        self._event_names = [e["name"] for e in abi if e.get("type") == "event" and e.get("name")]

    @classmethod
    def from_settings(cls, settings: Settings) -> "Web3LedgerClient":
        if not settings.ledger_configured:
            raise RuntimeError(
                "ETHEREUM_RPC_URL, ETHEREUM_PRIVATE_KEY and HOMEFAX_CONTRACT_ADDRESS must be set"
            )
        w3 = AsyncWeb3(AsyncHTTPProvider(settings.ethereum_rpc_url))
        client = cls(
            w3=w3,
            contract_address=settings.homefax_contract_address,
            abi=load_abi(settings.homefax_contract_abi_path),
            private_key=settings.ethereum_private_key,
            poll_interval=settings.ledger_poll_interval_seconds,
        )
        logger.info("[ledger] web3 client ready contract=%s relayer=%s", settings.homefax_contract_address, client.account.address)
        return client

    # ─────────────────────────────────────────────
    # INTERNAL HELPERS
    # ─────────────────────────────────────────────

    def _output_names(self, fn_name: str) -> List[str]:
        for item in self.abi:
            if item.get("type") == "function" and item.get("name") == fn_name:
                outputs = item.get("outputs") or []
                if len(outputs) == 1 and outputs[0].get("components"):
                    return [c["name"] for c in outputs[0]["components"]]
                return [o.get("name", "") for o in outputs]
        raise ValueError(f"Function {fn_name} missing from ABI")

    def _named(self, fn_name: str, value: Any) -> Dict[str, Any]:
        # struct returns come back as tuples in ABI order; name them from the ABI
        if isinstance(value, dict):
            return dict(value)
        return dict(zip(self._output_names(fn_name), value))

    async def _call(
        self,
        fn_name: str,
        *args: Any,
        operation: str,
        entity_id: Any = None,
    ) -> Any:
        fn = getattr(self.contract.functions, fn_name)(*args)
        try:
            # reads go out as the relayer too; per-caller checks take the caller as an argument
            return await fn.call({"from": self.account.address})
        except ContractLogicError as exc:
            raise classify_revert(exc, operation=operation, entity_id=entity_id, default=LedgerUnavailable)
        except Exception as exc:
            logger.warning("[ledger] %s call failed entity=%s err=%s", fn_name, entity_id, exc)
            raise LedgerUnavailable(operation=operation, entity_id=entity_id, cause=exc)

    async def _send(
        self,
        fn_name: str,
        *args: Any,
        operation: str,
        entity_id: Any = None,
        value: int = 0,
    ) -> TxHandle:
        fn = getattr(self.contract.functions, fn_name)(*args)
        try:
            async with self._send_lock:
                nonce = await self.w3.eth.get_transaction_count(self.account.address, "pending")
                tx = await fn.build_transaction(
                    {"from": self.account.address, "nonce": nonce, "value": value}
                )
                signed = self.account.sign_transaction(tx)
                raw = getattr(signed, "raw_transaction", None) or getattr(signed, "rawTransaction")
                tx_hash = await self.w3.eth.send_raw_transaction(raw)
        except ContractLogicError as exc:
            # gas estimation replays the call, so reverts surface before anything is sent
            raise classify_revert(exc, operation=operation, entity_id=entity_id, stage=TxStage.SUBMITTING)
        except Exception as exc:
            raise TransactionSubmissionFailed(
                operation=operation, entity_id=entity_id, cause=exc, stage=TxStage.SUBMITTING
            )

        handle = TxHandle(tx_hash=AsyncWeb3.to_hex(tx_hash), operation=operation)
        logger.info("[ledger] submitted %s tx=%s nonce=%s", operation, handle.tx_hash, nonce)
        return handle

    def _own_logs(self, receipt: Any) -> List[Any]:
        own = self.contract.address.lower()
        return [log for log in receipt.get("logs") or [] if str(log.get("address", "")).lower() == own]

    def _decode_events(self, receipt: Any) -> List[LedgerEvent]:
        # another contract in the same transaction may emit an event with our signature
        scoped = {**dict(receipt), "logs": self._own_logs(receipt)}
        events: List[LedgerEvent] = []
        for name in self._event_names:
            for ev in getattr(self.contract.events, name)().process_receipt(scoped, errors=DISCARD):
                events.append(LedgerEvent(name=ev["event"], args=dict(ev["args"]), log_index=ev.get("logIndex")))
        events.sort(key=lambda e: e.log_index if e.log_index is not None else 0)
        return events

    async def _mined_revert(self, handle: TxHandle, raw: Any) -> HomeFaxError:
        """
        A status-0 receipt carries no reason. Replaying the transaction as a call
        against the state at the end of its block recovers it, so a purchase that
        lost a race comes back as AlreadyPurchased.
        """
        try:
            tx = await self.w3.eth.get_transaction(handle.tx_hash)
            await self.w3.eth.call(
                {
                    "from": tx["from"],
                    "to": tx["to"],
                    "data": tx["input"],
                    "value": tx.get("value", 0),
                    "gas": tx["gas"],
                },
                block_identifier=raw.get("blockNumber"),
            )
        except ContractLogicError as exc:
            return classify_revert(exc, operation=handle.operation, stage=TxStage.CONFIRMING)
        except Exception as exc:
            logger.warning("[ledger] replay of reverted tx=%s failed err=%s", handle.tx_hash, exc)

        return TransactionSubmissionFailed(
            f"Transaction {handle.tx_hash} reverted.",
            operation=handle.operation,
            stage=TxStage.CONFIRMING,
        )

    # ─────────────────────────────────────────────
    # AUTHORIZATION
    # ─────────────────────────────────────────────

    async def is_authorized(self, address: str) -> bool:
        return bool(
            await self._call(
                "isAuthorizedUser",
                AsyncWeb3.to_checksum_address(address),
                operation="is_authorized",
                entity_id=address,
            )
        )

    async def submit_authorize(self, address: str) -> TxHandle:
        return await self._send(
            "authorizeUser",
            AsyncWeb3.to_checksum_address(address),
            operation="authorize",
            entity_id=address,
        )

    async def submit_deauthorize(self, address: str) -> TxHandle:
        return await self._send(
            "deauthorizeUser",
            AsyncWeb3.to_checksum_address(address),
            operation="deauthorize",
            entity_id=address,
        )

    # ─────────────────────────────────────────────
    # WRITES (acting address first, the relayer signs)
    # ─────────────────────────────────────────────

    async def submit_create_property(self, *, owner, property_address, city, state, zip_code) -> TxHandle:
        return await self._send(
            "createProperty",
            AsyncWeb3.to_checksum_address(owner),
            property_address,
            city,
            state,
            zip_code,
            operation="create_property",
            entity_id=owner,
        )

    async def submit_create_report(self, *, creator, property_id, report_type, report_hash, price_wei) -> TxHandle:
        return await self._send(
            "createReport",
            AsyncWeb3.to_checksum_address(creator),
            int(property_id),
            report_type,
            report_hash,
            int(price_wei),
            operation="create_report",
            entity_id=property_id,
        )

    async def submit_purchase(self, *, buyer, report_id, value_wei) -> TxHandle:
        return await self._send(
            "purchaseReport",
            AsyncWeb3.to_checksum_address(buyer),
            int(report_id),
            operation="purchase_report",
            entity_id=report_id,
            value=int(value_wei),
        )

    async def wait_for_confirmation(self, handle: TxHandle, *, timeout: float) -> Receipt:
        try:
            raw = await self.w3.eth.wait_for_transaction_receipt(
                handle.tx_hash, timeout=timeout, poll_latency=self.poll_interval
            )
        except TimeExhausted as exc:
            raise TransactionTimedOut(
                operation=handle.operation, tx_hash=handle.tx_hash, cause=exc, stage=TxStage.CONFIRMING
            )
        except Exception as exc:
            # transport failure while polling: the transaction may still land
            raise TransactionTimedOut(
                f"Lost contact with the ledger while confirming {handle.tx_hash}.",
                operation=handle.operation,
                tx_hash=handle.tx_hash,
                cause=exc,
                stage=TxStage.CONFIRMING,
            )

        receipt = Receipt(
            tx_hash=handle.tx_hash,
            block_number=raw.get("blockNumber"),
            succeeded=raw.get("status") == 1,
            events=self._decode_events(raw) if raw.get("status") == 1 else [],
        )
        if not receipt.succeeded:
            exc = await self._mined_revert(handle, raw)
            logger.warning("[ledger] %s reverted tx=%s kind=%s", handle.operation, handle.tx_hash, exc.code)
            raise exc
        return receipt

    # ─────────────────────────────────────────────
    # READS
    # ─────────────────────────────────────────────

    async def get_property(self, property_id: int) -> PropertyRecord:
        raw = self._named(
            "getProperty",
            await self._call("getProperty", int(property_id), operation="get_property", entity_id=property_id),
        )
        if not raw.get("owner") or raw.get("owner") == ZERO_ADDRESS:
            raise NotFound(operation="get_property", entity_id=property_id)
        return PropertyRecord(
            id=int(raw["id"]),
            property_address=raw["propertyAddress"],
            city=raw["city"],
            state=raw["state"],
            zip_code=raw["zipCode"],
            owner=raw["owner"],
            created_at=int(raw["createdAt"]),
            updated_at=int(raw["updatedAt"]),
            is_verified=bool(raw["isVerified"]),
        )

    async def get_report(self, report_id: int) -> ReportRecord:
        raw = self._named(
            "getReport",
            await self._call("getReport", int(report_id), operation="get_report", entity_id=report_id),
        )
        if not raw.get("creator") or raw.get("creator") == ZERO_ADDRESS:
            raise NotFound(operation="get_report", entity_id=report_id)
        return ReportRecord(
            id=int(raw["id"]),
            property_id=int(raw["propertyId"]),
            report_type=raw["reportType"],
            report_hash=raw["reportHash"],
            creator=raw["creator"],
            price_wei=int(raw["price"]),
            created_at=int(raw["createdAt"]),
            is_verified=bool(raw["isVerified"]),
        )

    async def get_user_properties(self, address: str) -> List[int]:
        ids = await self._call(
            "getUserProperties",
            AsyncWeb3.to_checksum_address(address),
            operation="get_user_properties",
            entity_id=address,
        )
        return [int(i) for i in ids]

    async def get_property_reports(self, property_id: int) -> List[int]:
        ids = await self._call(
            "getPropertyReports",
            int(property_id),
            operation="get_property_reports",
            entity_id=property_id,
        )
        return [int(i) for i in ids]

    async def has_purchased(self, buyer: str, report_id: int) -> bool:
        return bool(
            await self._call(
                "hasPurchasedReport",
                AsyncWeb3.to_checksum_address(buyer),
                int(report_id),
                operation="has_purchased",
                entity_id=report_id,
            )
        )

    async def get_report_content_ref(self, caller: str, report_id: int) -> str:
        return str(
            await self._call(
                "getReportContent",
                AsyncWeb3.to_checksum_address(caller),
                int(report_id),
                operation="get_report_content",
                entity_id=report_id,
            )
        )

    async def aclose(self) -> None:
        provider = self.w3.provider
        disconnect = getattr(provider, "disconnect", None)
        if disconnect is not None:
            await disconnect()
