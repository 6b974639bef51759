"""
Split Calculator

Computes how much each participant owes for one bill, including a
proportional share of tax, tip and fees:

    person_total = person_subtotal × (1 + tax / bill_subtotal)

DESIGN DECISION: Tax is distributed in proportion to what each person
actually consumed, not split evenly. Heavy consumers carry proportionally
more of the shared tax/tip/fees.

Rounding: shares are exact Decimal quotients. No largest-remainder
correction is applied, so residue in the last decimal place is left as-is.
"""

from decimal import Decimal
from typing import Iterable, Sequence

from splitwiser.models.split import (
    Bill,
    Item,
    PersonItem,
    PersonSplit,
    SplitResult,
)


DEFAULT_SHARED_LABEL = "Shared"


class SplitCalculationError(ValueError):
    """Bill cannot be split. Always a caller (input) error."""
    pass


class ZeroSubtotalError(SplitCalculationError):
    """Subtotal is zero, so the tax ratio is undefined."""

    def __init__(self) -> None:
        super().__init__("subtotal cannot be zero")


class NoParticipantsError(SplitCalculationError):
    """Bill has nobody to split it between."""

    def __init__(self) -> None:
        super().__init__("must have at least one participant")


class _Share:
    """Working accumulator for one participant while a split is computed."""

    __slots__ = ("subtotal", "items")

    def __init__(self) -> None:
        self.subtotal = Decimal("0")
        self.items: list[PersonItem] = []

    def add(self, description: str, amount: Decimal) -> None:
        self.subtotal += amount
        self.items.append(PersonItem(description=description, amount=amount))


def _dec(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def calculate_split(
    items: Sequence[Item],
    bill_total,
    bill_subtotal,
    participants: Sequence[str],
    *,
    shared_label: str = DEFAULT_SHARED_LABEL,
) -> dict[str, PersonSplit]:
    """
    Split a bill between its participants.

    Args:
        items: Line items, each assigned to zero or more participants
        bill_total: Final amount including tax/fees
        bill_subtotal: Pre-tax amount
        participants: Everyone splitting the bill
        shared_label: Label for the evenly split unassigned remainder

    Returns:
        Mapping of participant -> PersonSplit, in the order of `participants`

    Raises:
        ZeroSubtotalError: If bill_subtotal is zero
        NoParticipantsError: If participants is empty
    """
    total = _dec(bill_total)
    subtotal = _dec(bill_subtotal)

    if subtotal == 0:
        raise ZeroSubtotalError()
    if not participants:
        raise NoParticipantsError()

    tax = total - subtotal
    shares = {person: _Share() for person in participants}
    count = len(shares)

    # No items: straight equal split, no itemization
    if not items:
        per_person_subtotal = subtotal / count
        per_person_tax = tax / count
        per_person_total = total / count
        return {
            person: PersonSplit(
                participant=person,
                subtotal=per_person_subtotal,
                tax=per_person_tax,
                total=per_person_total,
            )
            for person in shares
        }

    items_total = Decimal("0")
    for item in items:
        if not item.participants:
            continue

        items_total += item.amount
        per_person_amount = item.amount / len(item.participants)
        for person in item.participants:
            share = shares.get(person)
            if share is not None:
                share.add(item.description, per_person_amount)

    # Whatever the items don't account for is shared by everyone
    if items_total < subtotal:
        per_person_remainder = (subtotal - items_total) / count
        for share in shares.values():
            share.add(shared_label, per_person_remainder)

    tax_rate = tax / subtotal
    splits = {}
    for person, share in shares.items():
        person_tax = share.subtotal * tax_rate
        splits[person] = PersonSplit(
            participant=person,
            subtotal=share.subtotal,
            tax=person_tax,
            total=share.subtotal + person_tax,
            items=tuple(share.items),
        )
    return splits


def split_bill(bill: Bill, *, shared_label: str = DEFAULT_SHARED_LABEL) -> SplitResult:
    """Split a Bill record and echo its tax and subtotal alongside the shares."""
    splits = calculate_split(
        bill.items,
        bill.total,
        bill.subtotal,
        bill.participants,
        shared_label=shared_label,
    )
    return SplitResult(
        bill_id=bill.id,
        splits=splits,
        total=bill.total,
        subtotal=bill.subtotal,
        tax_amount=bill.tax_amount,
    )


def sum_totals(splits: Iterable[PersonSplit]) -> Decimal:
    """Sum of everyone's total share."""
    return sum((split.total for split in splits), Decimal("0"))


def sum_subtotals(splits: Iterable[PersonSplit]) -> Decimal:
    """Sum of everyone's pre-tax share."""
    return sum((split.subtotal for split in splits), Decimal("0"))
