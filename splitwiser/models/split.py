"""
Core Data Models for Splitwiser

These models define the schemas for everything the split engine consumes
and produces. They are designed to:
1. Enforce type safety at runtime
2. Be immutable once handed to the calculator
3. Be serializable for storage and logging

DESIGN DECISION: Money is always Decimal. Floats passed in are coerced
through Pydantic so callers can hand us plain JSON numbers.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# BILL INPUT MODELS
# =============================================================================

class Item(BaseModel):
    """
    Single line item on a bill.

    An item may be assigned to any subset of the bill's participants.
    An item with no participants is not allocated directly; its amount is
    only covered through the shared remainder.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    description: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Description of the item (e.g. 'Pizza')"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Pre-tax price of the item"
    )
    participants: tuple[str, ...] = Field(
        default=(),
        description="Participants splitting this item evenly"
    )


class Bill(BaseModel):
    """
    A bill as consumed by the engine.

    NOTE: total >= subtotal is expected but NOT enforced. A negative tax
    (e.g. a discount applied after subtotal) simply scales proportionally.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique bill ID"
    )
    title: Optional[str] = Field(
        default=None,
        max_length=200,
    )
    group_id: Optional[str] = Field(
        default=None,
        description="Group this bill belongs to, if any"
    )
    items: tuple[Item, ...] = Field(default=())
    total: Decimal = Field(
        ...,
        description="Final bill amount including tax, tip and fees"
    )
    subtotal: Decimal = Field(
        ...,
        description="Pre-tax amount"
    )
    participants: tuple[str, ...] = Field(
        default=(),
        description="Everyone splitting this bill"
    )
    payer_id: Optional[str] = Field(
        default=None,
        description="Participant who fronted the money"
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def tax_amount(self) -> Decimal:
        """Tax, tip and fees on top of the subtotal (may be negative)."""
        return self.total - self.subtotal

    @property
    def has_payer(self) -> bool:
        return bool(self.payer_id)


# =============================================================================
# SPLIT OUTPUT MODELS
# =============================================================================

class PersonItem(BaseModel):
    """One participant's share of one item (or of the shared remainder)."""
    model_config = ConfigDict(frozen=True)

    description: str
    amount: Decimal


class PersonSplit(BaseModel):
    """
    One participant's calculated share of a bill.

    total is subtotal + tax (for an equal split it is bill total / n,
    which may differ from that sum in the last decimal place).
    Produced fresh on every calculation.
    """
    model_config = ConfigDict(frozen=True)

    participant: str
    subtotal: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    items: tuple[PersonItem, ...] = ()


class SplitResult(BaseModel):
    """
    Result of splitting one bill.

    tax_amount and subtotal are echoed from the bill for convenience.
    """
    model_config = ConfigDict(frozen=True)

    bill_id: Optional[UUID] = None
    splits: dict[str, PersonSplit] = Field(default_factory=dict)
    total: Decimal
    subtotal: Decimal
    tax_amount: Decimal

    @property
    def participant_count(self) -> int:
        return len(self.splits)

    def total_for(self, participant: str) -> Decimal:
        """Amount a participant owes for this bill (zero if not on it)."""
        split = self.splits.get(participant)
        return split.total if split else Decimal("0")
