"""
Balance and Settlement Models

Settlements are the only records here that are meant to be persisted.
MemberBalance and DebtEdge are recomputed from bills and settlements on
every request; the underlying records remain the source of truth.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Settlement(BaseModel):
    """
    A manual payment between two group members.

    The payer (from_participant) is paying down debt, symmetric to
    paying a bill. The receiver (to_participant) has less owed to them.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    group_id: str = Field(
        ...,
        min_length=1,
        description="Group this settlement belongs to"
    )
    from_participant: str = Field(
        ...,
        min_length=1,
        description="Member who paid"
    )
    to_participant: str = Field(
        ...,
        min_length=1,
        description="Member who received the payment"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Payment amount"
    )
    note: Optional[str] = Field(
        default=None,
        max_length=500,
    )
    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode='after')
    def validate_parties(self) -> 'Settlement':
        if self.from_participant == self.to_participant:
            raise ValueError("Settlement parties must be different")
        return self


class MemberBalance(BaseModel):
    """
    Balance for one member across all bills and settlements of a group.

    net_balance > 0 means the member is owed money.
    net_balance < 0 means the member owes money.
    """
    model_config = ConfigDict(frozen=True)

    participant: str
    total_paid: Decimal = Decimal("0")
    total_owed: Decimal = Decimal("0")
    net_balance: Decimal = Decimal("0")

    @property
    def is_creditor(self) -> bool:
        return self.net_balance > 0

    @property
    def is_debtor(self) -> bool:
        return self.net_balance < 0


class DebtEdge(BaseModel):
    """A single recommended payment: from_participant pays to_participant."""
    model_config = ConfigDict(frozen=True)

    from_participant: str
    to_participant: str
    amount: Decimal = Field(..., gt=0)


class GroupBalances(BaseModel):
    """Per-group result: member balances plus the simplified payment plan."""
    model_config = ConfigDict(frozen=True)

    group_id: Optional[str] = None
    member_balances: list[MemberBalance] = Field(default_factory=list)
    debts: list[DebtEdge] = Field(default_factory=list)
    bills_skipped: int = Field(
        default=0,
        ge=0,
        description="Bills excluded because no payer was recorded"
    )

    def balance_for(self, participant: str) -> Optional[MemberBalance]:
        for balance in self.member_balances:
            if balance.participant == participant:
                return balance
        return None

    @property
    def is_settled(self) -> bool:
        """True when no payments are needed."""
        return not self.debts
