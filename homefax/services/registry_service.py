# homefax/services/registry_service.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List

from homefax.core.errors import InvalidRequest
from homefax.ledger.client import LedgerClient, PropertyRecord, ReportRecord
from homefax.ledger.events import PROPERTY_CREATED, REPORT_CREATED, extract_int_arg
from homefax.ledger.units import from_smallest_unit, to_smallest_unit
from homefax.services.authorization_guard import AuthorizationGuard
from homefax.services.tx_runner import TxRunner

logger = logging.getLogger(__name__)


def _ts(seconds: int) -> datetime:
    return datetime.fromtimestamp(int(seconds), tz=timezone.utc)


@dataclass(frozen=True)
class PropertyView:
    id: int
    address: str
    city: str
    state: str
    zip_code: str
    owner: str
    created_at: datetime
    updated_at: datetime
    verified: bool

    @classmethod
    def from_record(cls, r: PropertyRecord) -> "PropertyView":
        return cls(
            id=r.id,
            address=r.property_address,
            city=r.city,
            state=r.state,
            zip_code=r.zip_code,
            owner=r.owner,
            created_at=_ts(r.created_at),
            updated_at=_ts(r.updated_at),
            verified=r.is_verified,
        )


@dataclass(frozen=True)
class ReportView:
    id: int
    property_id: int
    report_type: str
    content_ref: str
    creator: str
    price: str
    created_at: datetime
    verified: bool

    @classmethod
    def from_record(cls, r: ReportRecord) -> "ReportView":
        return cls(
            id=r.id,
            property_id=r.property_id,
            report_type=r.report_type,
            content_ref=r.report_hash,
            creator=r.creator,
            price=from_smallest_unit(r.price_wei),
            created_at=_ts(r.created_at),
            verified=r.is_verified,
        )


@dataclass(frozen=True)
class ReportCreation:
    report_id: int
    creator: str
    owner: str
    tx_hash: str


class RegistryService:
    """
    Property and report records, written as ledger transactions.

    Ids come only from the confirmed transaction's named event; nothing here
    assumes ids are sequential.
    """

    def __init__(self, ledger: LedgerClient, guard: AuthorizationGuard, runner: TxRunner):
        self.ledger = ledger
        self.guard = guard
        self.runner = runner

    # ─────────────────────────────────────────────
    # WRITES
    # ─────────────────────────────────────────────

    async def create_property(
        self,
        owner: str,
        *,
        address: str,
        city: str,
        state: str,
        zip_code: str,
    ) -> int:
        await self.guard.ensure_authorized(owner)
        receipt = await self.runner.run(
            actor=owner,
            operation="create_property",
            entity_id=owner,
            submit=lambda: self.ledger.submit_create_property(
                owner=owner,
                property_address=address,
                city=city,
                state=state,
                zip_code=zip_code,
            ),
        )
        property_id = extract_int_arg(
            receipt,
            event_name=PROPERTY_CREATED,
            arg_name="propertyId",
            operation="create_property",
        )
        logger.info("[registry] property created id=%s owner=%s tx=%s", property_id, owner, receipt.tx_hash)
        return property_id

    async def create_report(
        self,
        creator: str,
        owner: str,
        *,
        property_id: int,
        report_type: str,
        content_ref: str,
        price: str,
    ) -> ReportCreation:
        if not creator:
            raise InvalidRequest("Author address is required", operation="create_report")
        if not owner:
            raise InvalidRequest("Owner address is required", operation="create_report")

        # convert before touching the ledger so a bad amount never authorizes or submits
        price_wei = to_smallest_unit(price)

        await self.guard.ensure_authorized(creator)
        receipt = await self.runner.run(
            actor=creator,
            operation="create_report",
            entity_id=property_id,
            submit=lambda: self.ledger.submit_create_report(
                creator=creator,
                property_id=property_id,
                report_type=report_type,
                report_hash=content_ref,
                price_wei=price_wei,
            ),
        )
        report_id = extract_int_arg(
            receipt,
            event_name=REPORT_CREATED,
            arg_name="reportId",
            operation="create_report",
        )
        logger.info(
            "[registry] report created id=%s property=%s creator=%s owner=%s price_wei=%s",
            report_id,
            property_id,
            creator,
            owner,
            price_wei,
        )
        return ReportCreation(report_id=report_id, creator=creator, owner=owner, tx_hash=receipt.tx_hash)

    # ─────────────────────────────────────────────
    # READS (never submit)
    # ─────────────────────────────────────────────

    async def get_property(self, caller: str, property_id: int) -> PropertyView:
        await self.guard.ensure_authorized(caller)
        return PropertyView.from_record(await self.ledger.get_property(property_id))

    async def get_report(self, caller: str, report_id: int) -> ReportView:
        await self.guard.ensure_authorized(caller)
        return ReportView.from_record(await self.ledger.get_report(report_id))

    async def get_user_properties(self, caller: str) -> List[int]:
        await self.guard.ensure_authorized(caller)
        # ledger order, not re-sorted
        return list(await self.ledger.get_user_properties(caller))

    async def get_property_reports(self, caller: str, property_id: int) -> List[int]:
        await self.guard.ensure_authorized(caller)
        return list(await self.ledger.get_property_reports(property_id))
