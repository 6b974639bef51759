"""
Flow tests for the orchestrator, run against in-memory storage.
"""

import asyncio
from decimal import Decimal
from uuid import uuid4

import pytest

from splitwiser.calculator import ZeroSubtotalError
from splitwiser.config import EngineSettings
from splitwiser.models.audit import AuditEventType
from splitwiser.models.split import Bill, Item
from splitwiser.orchestrator import (
    GroupBalanceFlow,
    SettlementRejectedError,
    SplitFlow,
    create_app_components,
)
from splitwiser.services.storage import InMemoryStorage, NotFoundError, StorageError
from splitwiser.validation import BillValidationError


@pytest.fixture
def components():
    return create_app_components(settings=EngineSettings())


class BrokenBillStorage(InMemoryStorage):
    async def list_bills_by_group(self, group_id: str) -> list[Bill]:
        raise StorageError("db down")

    async def get_bill_by_id(self, bill_id):
        raise StorageError("db down")


class BrokenSettlementStorage(InMemoryStorage):
    async def save_settlement(self, settlement) -> bool:
        raise StorageError("db down")


def event_types(storage: InMemoryStorage) -> list[AuditEventType]:
    events = asyncio.run(storage.get_recent_events())
    return [e.event_type for e in reversed(events)]


def group_bill(payer="Alice", **overrides) -> Bill:
    fields = dict(
        group_id="roommates",
        total="100",
        subtotal="100",
        participants=["Alice", "Bob"],
        payer_id=payer,
    )
    fields.update(overrides)
    return Bill(**fields)


class TestSplitFlow:

    def test_calculate(self, components):
        split_flow, _, storage = components
        bill = Bill(
            items=[
                Item(description="Pizza", amount=20, participants=["Alice"]),
                Item(description="Salad", amount=10, participants=["Bob"]),
            ],
            total="33",
            subtotal="30",
            participants=["Alice", "Bob"],
        )
        result = asyncio.run(split_flow.calculate(bill))

        assert result.tax_amount == Decimal("3")
        assert result.splits["Bob"].subtotal == Decimal("10")
        assert event_types(storage) == [AuditEventType.SPLIT_CALCULATED]

    def test_calculate_rejects_zero_subtotal(self, components):
        split_flow, _, storage = components
        bill = Bill(total="10", subtotal="0", participants=["Alice"])

        with pytest.raises(ZeroSubtotalError):
            asyncio.run(split_flow.calculate(bill))
        assert event_types(storage) == [AuditEventType.SPLIT_FAILED]

    def test_create_bill_saves_and_splits(self, components):
        split_flow, _, storage = components
        bill = group_bill()

        result, validation = asyncio.run(split_flow.create_bill(bill))

        assert validation.is_valid is True
        assert result.total_for("Bob") == Decimal("50")
        assert asyncio.run(storage.get_bill_by_id(bill.id)) == bill
        assert event_types(storage) == [
            AuditEventType.SPLIT_CALCULATED,
            AuditEventType.BILL_SAVED,
        ]

    def test_create_bill_rejects_unknown_payer(self, components):
        split_flow, _, storage = components
        bill = group_bill(payer="Mallory")

        with pytest.raises(BillValidationError, match="must be one of the participants"):
            asyncio.run(split_flow.create_bill(bill))
        assert asyncio.run(storage.get_bill_by_id(bill.id)) is None
        assert event_types(storage) == [AuditEventType.BILL_VALIDATION_FAILED]

    def test_create_bill_returns_warnings(self, components):
        split_flow, _, _ = components
        _, validation = asyncio.run(split_flow.create_bill(group_bill(payer=None)))
        assert validation.warnings

    def test_get_bill_split(self, components):
        split_flow, _, _ = components
        bill = group_bill()
        asyncio.run(split_flow.create_bill(bill))

        loaded, result = asyncio.run(split_flow.get_bill_split(bill.id))
        assert loaded.id == bill.id
        assert result.total_for("Alice") == Decimal("50")

    def test_get_missing_bill(self, components):
        split_flow, _, _ = components
        with pytest.raises(NotFoundError):
            asyncio.run(split_flow.get_bill_split(uuid4()))

    def test_create_without_storage(self):
        flow = SplitFlow(settings=EngineSettings())
        with pytest.raises(ValueError, match="storage is not configured"):
            asyncio.run(flow.create_bill(group_bill()))

    def test_shared_label_from_settings(self):
        flow = SplitFlow(settings=EngineSettings(shared_label="Table"))
        bill = Bill(
            items=[Item(description="Banana", amount=10, participants=["Ree"])],
            total="100",
            subtotal="90",
            participants=["Mo", "Ree"],
        )
        result = asyncio.run(flow.calculate(bill))
        assert result.splits["Mo"].items[0].description == "Table"


class TestGroupBalanceFlow:

    def test_balances_with_settlement(self, components):
        split_flow, balance_flow, storage = components
        asyncio.run(split_flow.create_bill(group_bill()))
        asyncio.run(balance_flow.record_settlement("roommates", "Bob", "Alice", 30))

        result = asyncio.run(balance_flow.get_group_balances("roommates"))

        assert result.group_id == "roommates"
        assert result.balance_for("Bob").net_balance == Decimal("-20")
        assert len(result.debts) == 1
        assert result.debts[0].amount == Decimal("20")
        assert AuditEventType.BALANCES_CALCULATED in event_types(storage)

    def test_other_groups_ignored(self, components):
        split_flow, balance_flow, _ = components
        asyncio.run(split_flow.create_bill(group_bill(group_id="hikers")))

        result = asyncio.run(balance_flow.get_group_balances("roommates"))
        assert result.member_balances == []
        assert result.is_settled

    def test_skipped_bill_is_audited(self, components):
        split_flow, balance_flow, storage = components
        asyncio.run(split_flow.create_bill(group_bill(payer=None)))

        result = asyncio.run(balance_flow.get_group_balances("roommates"))

        assert result.bills_skipped == 1
        assert AuditEventType.BILL_SKIPPED_NO_PAYER in event_types(storage)

    def test_malformed_bill_aborts(self):
        storage = InMemoryStorage()
        flow = GroupBalanceFlow(storage, storage, settings=EngineSettings())
        bad = group_bill(subtotal="0")
        asyncio.run(storage.save_bill(bad))

        with pytest.raises(ZeroSubtotalError):
            asyncio.run(flow.get_group_balances("roommates"))

    def test_group_id_required(self, components):
        _, balance_flow, _ = components
        with pytest.raises(ValueError, match="group_id required"):
            asyncio.run(balance_flow.get_group_balances(""))

    def test_sorted_matching_from_settings(self):
        storage = InMemoryStorage()
        flow = GroupBalanceFlow(
            storage,
            storage,
            settings=EngineSettings(sort_debts_by_magnitude=True),
        )
        # A is owed 10, B is owed 30, C owes 30, D owes 10
        for payer, owers, amount in (("A", ["C"], 10), ("B", ["C"], 20), ("B", ["D"], 10)):
            bill = Bill(
                group_id="g",
                total=amount,
                subtotal=amount,
                participants=owers,
                payer_id=payer,
            )
            asyncio.run(storage.save_bill(bill))

        result = asyncio.run(flow.get_group_balances("g"))
        assert [(d.from_participant, d.to_participant) for d in result.debts] == [
            ("C", "B"),
            ("D", "A"),
        ]


class TestRecordSettlement:

    def test_record(self, components):
        _, balance_flow, storage = components
        settlement = asyncio.run(balance_flow.record_settlement(
            "roommates", "Bob", "Alice", "12.50", note="cash", created_by="Bob",
        ))

        assert settlement.amount == Decimal("12.50")
        assert settlement.note == "cash"
        stored = asyncio.run(storage.list_settlements_by_group("roommates"))
        assert stored == [settlement]
        assert event_types(storage) == [AuditEventType.SETTLEMENT_RECORDED]

    @pytest.mark.parametrize(
        "args,reason",
        [
            (("", "Bob", "Alice", 10), "group_id required"),
            (("g", "", "Alice", 10), "from_participant required"),
            (("g", "Bob", "", 10), "to_participant required"),
            (("g", "Bob", "Alice", 0), "amount must be positive"),
            (("g", "Bob", "Alice", -5), "amount must be positive"),
            (("g", "Bob", "Alice", "lots"), "is not a number"),
            (("g", "Bob", "Bob", 10), "must be different"),
        ],
    )
    def test_rejected(self, components, args, reason):
        _, balance_flow, storage = components

        with pytest.raises(SettlementRejectedError, match=reason):
            asyncio.run(balance_flow.record_settlement(*args))
        assert event_types(storage) == [AuditEventType.SETTLEMENT_REJECTED]

    @pytest.mark.parametrize(
        "args,reason",
        [
            (("g1", "Bob ", " Bob", 5), "must be different"),
            (("   ", "Bob", "Alice", 5), "group_id required"),
            (("g1", "  ", "Alice", 5), "from_participant required"),
        ],
    )
    def test_padded_input_rejected(self, components, args, reason):
        """Whitespace is stripped before the checks, as the model would strip it."""
        _, balance_flow, storage = components

        with pytest.raises(SettlementRejectedError, match=reason):
            asyncio.run(balance_flow.record_settlement(*args))
        assert event_types(storage) == [AuditEventType.SETTLEMENT_REJECTED]

    def test_padded_names_stored_stripped(self, components):
        _, balance_flow, _ = components
        settlement = asyncio.run(balance_flow.record_settlement(
            " g1 ", "Bob ", " Alice", 5, members=["Alice", "Bob"],
        ))
        assert settlement.group_id == "g1"
        assert (settlement.from_participant, settlement.to_participant) == ("Bob", "Alice")

    def test_membership_checked_when_known(self, components):
        _, balance_flow, _ = components
        with pytest.raises(SettlementRejectedError, match="to_participant is not a member"):
            asyncio.run(balance_flow.record_settlement(
                "g", "Bob", "Zed", 10, members=["Alice", "Bob"],
            ))



class TestStorageFailures:
    """Storage errors propagate and leave a system_error audit event behind."""

    def test_group_load_failure(self):
        storage = BrokenBillStorage()
        _, balance_flow, _ = create_app_components(storage, settings=EngineSettings())

        with pytest.raises(StorageError, match="db down"):
            asyncio.run(balance_flow.get_group_balances("roommates"))

        events = asyncio.run(storage.get_recent_events())
        assert [e.event_type for e in events] == [AuditEventType.SYSTEM_ERROR]
        assert events[0].details == {"group_id": "roommates"}

    def test_bill_load_failure(self):
        storage = BrokenBillStorage()
        split_flow, _, _ = create_app_components(storage, settings=EngineSettings())

        with pytest.raises(StorageError):
            asyncio.run(split_flow.get_bill_split(uuid4()))
        assert event_types(storage) == [AuditEventType.SYSTEM_ERROR]

    def test_settlement_save_failure(self):
        storage = BrokenSettlementStorage()
        _, balance_flow, _ = create_app_components(storage, settings=EngineSettings())

        with pytest.raises(StorageError):
            asyncio.run(balance_flow.record_settlement("g", "Bob", "Alice", 10))

        events = asyncio.run(storage.get_recent_events())
        assert [e.event_type for e in events] == [AuditEventType.SYSTEM_ERROR]
        assert "settlement_save_failed" in events[0].description


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
