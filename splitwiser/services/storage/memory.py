"""
In-Memory Storage

Implements every storage interface on plain dicts and lists. Used by the
test-suite and as the default backend when nothing else is configured.
Records are Pydantic models frozen at construction, so they are stored
as-is.
"""

from typing import Optional
from uuid import UUID

import structlog

from splitwiser.models.audit import AuditEvent
from splitwiser.models.balance import Settlement
from splitwiser.models.split import Bill
from splitwiser.services.storage.interface import (
    AuditStorageInterface,
    BillStorageInterface,
    DuplicateError,
    NotFoundError,
    SettlementStorageInterface,
)


logger = structlog.get_logger(__name__)


class InMemoryStorage(
    BillStorageInterface,
    SettlementStorageInterface,
    AuditStorageInterface,
):
    """Single process, non-persistent storage for bills, settlements and audit events."""

    def __init__(self) -> None:
        self._bills: dict[UUID, Bill] = {}
        self._settlements: list[Settlement] = []
        self._events: list[AuditEvent] = []

    # -------------------------------------------------------------------------
    # Bills
    # -------------------------------------------------------------------------

    async def save_bill(self, bill: Bill) -> bool:
        if bill.id in self._bills:
            raise DuplicateError(f"Bill {bill.id} already exists")
        self._bills[bill.id] = bill
        logger.debug("bill_stored", bill_id=str(bill.id), group_id=bill.group_id)
        return True

    async def get_bill_by_id(self, bill_id: UUID) -> Optional[Bill]:
        return self._bills.get(bill_id)

    async def list_bills_by_group(self, group_id: str) -> list[Bill]:
        return [bill for bill in self._bills.values() if bill.group_id == group_id]

    async def delete_bill(self, bill_id: UUID) -> bool:
        if bill_id not in self._bills:
            raise NotFoundError(f"Bill {bill_id} not found")
        del self._bills[bill_id]
        return True

    # -------------------------------------------------------------------------
    # Settlements
    # -------------------------------------------------------------------------

    async def save_settlement(self, settlement: Settlement) -> bool:
        if any(existing.id == settlement.id for existing in self._settlements):
            raise DuplicateError(f"Settlement {settlement.id} already exists")
        self._settlements.append(settlement)
        return True

    async def list_settlements_by_group(self, group_id: str) -> list[Settlement]:
        return [s for s in self._settlements if s.group_id == group_id]

    # -------------------------------------------------------------------------
    # Audit
    # -------------------------------------------------------------------------

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
