"""Tests for the cross-bill balance aggregator."""

import pytest
from decimal import Decimal

from splitwiser.calculator import (
    ZeroSubtotalError,
    calculate_group_balances,
    summarize_group,
)
from splitwiser.models.balance import Settlement
from splitwiser.models.split import Bill, Item


EPSILON = Decimal("0.01")


def nets(balances) -> dict:
    return {b.participant: b.net_balance for b in balances}


def dinner(payer="Alice") -> Bill:
    return Bill(
        group_id="roommates",
        total="100",
        subtotal="100",
        participants=["Alice", "Bob"],
        payer_id=payer,
    )


def settle(from_participant, to_participant, amount) -> Settlement:
    return Settlement(
        group_id="roommates",
        from_participant=from_participant,
        to_participant=to_participant,
        amount=amount,
    )


class TestSingleBill:
    """One bill, one payer."""

    def test_payer_is_owed_the_others_share(self):
        balances, debts = calculate_group_balances([dinner()], [])

        assert nets(balances) == {"Alice": Decimal("50"), "Bob": Decimal("-50")}
        assert len(debts) == 1
        assert debts[0].from_participant == "Bob"
        assert debts[0].to_participant == "Alice"
        assert debts[0].amount == Decimal("50")

    def test_paid_and_owed_totals(self):
        balances, _ = calculate_group_balances([dinner()])
        alice, bob = balances

        assert alice.total_paid == Decimal("100")
        assert alice.total_owed == Decimal("50")
        assert bob.total_paid == Decimal("0")
        assert bob.total_owed == Decimal("50")

    def test_payer_listed_first(self):
        balances, _ = calculate_group_balances([dinner(payer="Bob")])
        assert [b.participant for b in balances] == ["Bob", "Alice"]

    def test_payer_not_on_bill_is_still_credited(self):
        bill = Bill(total="30", subtotal="30", participants=["Bob", "Carol"], payer_id="Alice")
        balances, _ = calculate_group_balances([bill])
        assert nets(balances) == {
            "Alice": Decimal("30"),
            "Bob": Decimal("-15"),
            "Carol": Decimal("-15"),
        }


class TestMultipleBills:
    """Balances accumulate across bills."""

    def test_three_bills(self):
        bills = [
            Bill(total="90", subtotal="90", participants=["A", "B", "C"], payer_id="A"),
            Bill(total="60", subtotal="60", participants=["B", "C"], payer_id="B"),
            Bill(
                items=[
                    Item(description="Pizza", amount=20, participants=["A"]),
                    Item(description="Salad", amount=10, participants=["B"]),
                ],
                total="33",
                subtotal="30",
                participants=["A", "B", "C"],
                payer_id="C",
            ),
        ]
        balances, debts = calculate_group_balances(bills)
        result = nets(balances)

        assert abs(result["A"] - Decimal("38")) < EPSILON
        assert abs(result["B"] - Decimal("-11")) < EPSILON
        assert abs(result["C"] - Decimal("-27")) < EPSILON

        plan = [(d.from_participant, d.to_participant, d.amount) for d in debts]
        assert len(plan) == 2
        assert plan[0][:2] == ("B", "A")
        assert abs(plan[0][2] - Decimal("11")) < EPSILON
        assert plan[1][:2] == ("C", "A")
        assert abs(plan[1][2] - Decimal("27")) < EPSILON

    def test_offsetting_bills_cancel(self):
        bills = [dinner(payer="Alice"), dinner(payer="Bob")]
        balances, debts = calculate_group_balances(bills)

        assert nets(balances) == {"Alice": Decimal("0"), "Bob": Decimal("0")}
        assert debts == []

    def test_net_balances_sum_to_zero(self):
        bills = [
            Bill(total="47.13", subtotal="41", participants=["A", "B", "C"], payer_id="A"),
            Bill(
                items=[Item(description="Taxi", amount="18.50", participants=["B", "C"])],
                total="21",
                subtotal="18.50",
                participants=["A", "B", "C"],
                payer_id="C",
            ),
        ]
        balances, _ = calculate_group_balances(bills)
        assert abs(sum(b.net_balance for b in balances)) < Decimal("0.000001")


class TestSettlements:
    """Manual payments offset bill balances."""

    def test_partial_settlement(self):
        balances, debts = calculate_group_balances([dinner()], [settle("Bob", "Alice", 30)])

        assert nets(balances)["Bob"] == Decimal("-20")
        assert nets(balances)["Alice"] == Decimal("20")
        assert len(debts) == 1
        assert debts[0].from_participant == "Bob"
        assert debts[0].to_participant == "Alice"
        assert debts[0].amount == Decimal("20")

    def test_full_settlement_clears_debts(self):
        _, debts = calculate_group_balances([dinner()], [settle("Bob", "Alice", 50)])
        assert debts == []

    def test_settlement_symmetry(self):
        bills = [dinner(), dinner(payer="Bob")]
        before, _ = calculate_group_balances(bills, [])
        after, _ = calculate_group_balances(bills, [settle("Alice", "Bob", "12.5")])

        assert nets(after)["Alice"] - nets(before)["Alice"] == Decimal("12.5")
        assert nets(after)["Bob"] - nets(before)["Bob"] == Decimal("-12.5")
        assert sum(nets(after).values()) == sum(nets(before).values())

    def test_settlement_only(self):
        """A settlement with no bills still shows up in balances."""
        balances, debts = calculate_group_balances([], [settle("Bob", "Alice", 10)])

        assert nets(balances) == {"Bob": Decimal("10"), "Alice": Decimal("-10")}
        assert debts[0].from_participant == "Alice"
        assert debts[0].to_participant == "Bob"

    def test_settlement_updates_paid_and_owed(self):
        balances, _ = calculate_group_balances([dinner()], [settle("Bob", "Alice", 30)])
        alice, bob = balances

        assert bob.total_paid == Decimal("30")
        assert alice.total_owed == Decimal("80")


class TestSkippedBills:
    """Bills without a payer contribute nothing."""

    def test_bill_without_payer_skipped(self):
        balances, debts = calculate_group_balances([dinner(payer=None)])
        assert balances == []
        assert debts == []

    def test_malformed_bill_without_payer_is_not_an_error(self):
        bill = Bill(total="10", subtotal="0", participants=["Alice"])
        balances, _ = calculate_group_balances([bill, dinner()])
        assert len(balances) == 2

    def test_summary_counts_skipped(self):
        result = summarize_group(
            [dinner(), dinner(payer=None)],
            group_id="roommates",
        )
        assert result.group_id == "roommates"
        assert result.bills_skipped == 1
        assert len(result.debts) == 1


class TestErrorPropagation:
    """A malformed paid bill aborts the whole aggregation."""

    def test_zero_subtotal_aborts(self):
        bad = Bill(total="10", subtotal="0", participants=["Alice"], payer_id="Alice")
        with pytest.raises(ZeroSubtotalError):
            calculate_group_balances([dinner(), bad])

    def test_summary_propagates(self):
        bad = Bill(total="10", subtotal="10", participants=[], payer_id="Alice")
        with pytest.raises(ValueError, match="must have at least one participant"):
            summarize_group([bad])


class TestPurity:
    """Same input, same output."""

    def test_idempotent(self):
        bills = [dinner(), dinner(payer="Bob"), Bill(
            total="75", subtotal="60", participants=["Alice", "Bob", "Carol"], payer_id="Carol",
        )]
        settlements = [settle("Bob", "Carol", 5)]

        first = calculate_group_balances(bills, settlements)
        second = calculate_group_balances(bills, settlements)
        assert first == second

    def test_debt_conservation(self):
        bills = [
            Bill(total="120", subtotal="100", participants=["A", "B", "C", "D"], payer_id="A"),
            Bill(
                items=[
                    Item(description="Room", amount=200, participants=["B", "C"]),
                    Item(description="Parking", amount=20, participants=["D"]),
                ],
                total="242",
                subtotal="220",
                participants=["A", "B", "C", "D"],
                payer_id="B",
            ),
        ]
        settlements = [settle("D", "A", 10)]
        balances, debts = calculate_group_balances(bills, settlements)

        for balance in balances:
            inflow = sum((d.amount for d in debts if d.to_participant == balance.participant), Decimal("0"))
            outflow = sum((d.amount for d in debts if d.from_participant == balance.participant), Decimal("0"))
            assert abs((inflow - outflow) - balance.net_balance) <= EPSILON


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
