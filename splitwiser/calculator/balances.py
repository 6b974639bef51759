"""
Balance Aggregator

Computes every member's net balance across a group's bills and manual
settlements, then hands the balances to the debt simplifier.

For each bill with a payer:
    payer.total_paid        += bill.total
    participant.total_owed  += participant's split total (payer included)
For each settlement:
    from.total_paid         += amount
    to.total_owed           += amount

net_balance = total_paid - total_owed

Bills without a payer are skipped: nobody can be credited for them.
Any split error aborts the whole aggregation; partial results are never
returned.
"""

from decimal import Decimal
from typing import Iterable, Optional

from splitwiser.calculator.simplify import DEFAULT_EPSILON, simplify_debts
from splitwiser.calculator.split import DEFAULT_SHARED_LABEL, calculate_split
from splitwiser.models.balance import (
    DebtEdge,
    GroupBalances,
    MemberBalance,
    Settlement,
)
from splitwiser.models.split import Bill


class _Ledger:
    """Running paid/owed totals, keyed by participant in first-seen order."""

    def __init__(self) -> None:
        self._paid: dict[str, Decimal] = {}
        self._owed: dict[str, Decimal] = {}

    def _touch(self, participant: str) -> None:
        if participant not in self._paid:
            self._paid[participant] = Decimal("0")
            self._owed[participant] = Decimal("0")

    def credit(self, participant: str, amount: Decimal) -> None:
        self._touch(participant)
        self._paid[participant] += amount

    def debit(self, participant: str, amount: Decimal) -> None:
        self._touch(participant)
        self._owed[participant] += amount

    def balances(self) -> list[MemberBalance]:
        return [
            MemberBalance(
                participant=participant,
                total_paid=paid,
                total_owed=self._owed[participant],
                net_balance=paid - self._owed[participant],
            )
            for participant, paid in self._paid.items()
        ]


def _aggregate(
    bills: Iterable[Bill],
    settlements: Iterable[Settlement],
    shared_label: str,
) -> tuple[list[MemberBalance], int]:
    ledger = _Ledger()
    skipped = 0

    for bill in bills:
        if not bill.has_payer:
            skipped += 1
            continue

        splits = calculate_split(
            bill.items,
            bill.total,
            bill.subtotal,
            bill.participants,
            shared_label=shared_label,
        )

        ledger.credit(bill.payer_id, bill.total)
        for participant, split in splits.items():
            ledger.debit(participant, split.total)

    for settlement in settlements:
        ledger.credit(settlement.from_participant, settlement.amount)
        ledger.debit(settlement.to_participant, settlement.amount)

    return ledger.balances(), skipped


def calculate_group_balances(
    bills: Iterable[Bill],
    settlements: Iterable[Settlement] = (),
    *,
    epsilon: Decimal = DEFAULT_EPSILON,
    sort_by_magnitude: bool = False,
    shared_label: str = DEFAULT_SHARED_LABEL,
) -> tuple[list[MemberBalance], list[DebtEdge]]:
    """
    Compute member balances and the simplified payment plan for a group.

    Returns:
        (member balances in first-seen order, debt edges)

    Raises:
        SplitCalculationError: If any bill with a payer cannot be split
    """
    balances, _ = _aggregate(bills, settlements, shared_label)
    debts = simplify_debts(
        balances,
        epsilon=epsilon,
        sort_by_magnitude=sort_by_magnitude,
    )
    return balances, debts


def summarize_group(
    bills: Iterable[Bill],
    settlements: Iterable[Settlement] = (),
    *,
    group_id: Optional[str] = None,
    epsilon: Decimal = DEFAULT_EPSILON,
    sort_by_magnitude: bool = False,
    shared_label: str = DEFAULT_SHARED_LABEL,
) -> GroupBalances:
    """Same as calculate_group_balances, packaged with the skipped-bill count."""
    balances, skipped = _aggregate(bills, settlements, shared_label)
    debts = simplify_debts(
        balances,
        epsilon=epsilon,
        sort_by_magnitude=sort_by_magnitude,
    )
    return GroupBalances(
        group_id=group_id,
        member_balances=balances,
        debts=debts,
        bills_skipped=skipped,
    )
