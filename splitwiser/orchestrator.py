"""
Main Orchestrator for Splitwiser

This module ties together the engine, validation, storage and audit
logging, and defines the request-level flows for:
1. Bills (validate → split → save / reload and re-split)
2. Group balances (load bills + settlements → aggregate → simplify)
3. Settlements (validate → save)

DESIGN DECISION: The engine is pure and knows nothing about storage.
The flows are the only place where records are fetched, where settings
are read, and where audit events are emitted.

Error mapping for a transport layer sitting on top of these flows:
- SplitCalculationError, BillValidationError, SettlementRejectedError
  → client input error
- anything else → internal error
"""

from decimal import Decimal, InvalidOperation
from typing import Optional, Sequence
from uuid import UUID

from splitwiser.audit import AuditLogger, create_correlation_id
from splitwiser.calculator import SplitCalculationError, split_bill, summarize_group
from splitwiser.config import EngineSettings, get_settings
from splitwiser.models.balance import GroupBalances, Settlement
from splitwiser.models.split import Bill, SplitResult
from splitwiser.models.validation import ValidationResult
from splitwiser.services.storage import (
    BillStorageInterface,
    InMemoryStorage,
    NotFoundError,
    SettlementStorageInterface,
)
from splitwiser.validation import BillValidationError, BillValidator


class SettlementRejectedError(ValueError):
    """A settlement request is malformed or names a non-member."""
    pass


def _clean(value) -> str:
    return (value or "").strip()


class SplitFlow:
    """
    Orchestrates per-bill operations.

    Flow:
    1. Validate → schema errors block, warnings pass through
    2. Split → proportional calculator
    3. Save (create only) → persist to storage
    """

    def __init__(
        self,
        bill_storage: Optional[BillStorageInterface] = None,
        validator: Optional[BillValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[EngineSettings] = None,
    ):
        self._bill_storage = bill_storage
        self._settings = settings or get_settings().engine
        self._validator = validator or BillValidator(self._settings)
        self._audit_logger = audit_logger

    def validate(self, bill: Bill) -> ValidationResult:
        return self._validator.validate(bill)

    async def calculate(
        self,
        bill: Bill,
        correlation_id: Optional[UUID] = None,
    ) -> SplitResult:
        """
        Split a bill without saving it.

        Raises:
            SplitCalculationError: Zero subtotal or no participants
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            result = split_bill(bill, shared_label=self._settings.shared_label)
        except SplitCalculationError as e:
            if self._audit_logger:
                await self._audit_logger.log_split_failed(
                    bill_id=bill.id,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_split_calculated(
                bill_id=bill.id,
                total=str(bill.total),
                participant_count=result.participant_count,
                correlation_id=correlation_id,
            )

        return result

    async def create_bill(
        self,
        bill: Bill,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[SplitResult, ValidationResult]:
        """
        Validate, split and save a bill.

        Returns:
            (split_result, validation_result) - the validation result carries
            any non-blocking warnings for the caller to show.

        Raises:
            BillValidationError: If schema validation fails
            ValueError: If no bill storage is configured
        """
        if self._bill_storage is None:
            raise ValueError("Bill storage is not configured")

        correlation_id = correlation_id or create_correlation_id()

        validation = self._validator.validate(bill)
        if not validation.schema_valid:
            if self._audit_logger:
                await self._audit_logger.log_bill_validation_failed(
                    bill_id=bill.id,
                    issues=validation.to_log_list(),
                    correlation_id=correlation_id,
                )
            raise BillValidationError(validation)

        result = await self.calculate(bill, correlation_id)

        try:
            await self._bill_storage.save_bill(bill)
        except Exception as e:
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type="bill_save_failed",
                    error_message=str(e),
                    details={"bill_id": str(bill.id)},
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_bill_saved(
                bill_id=bill.id,
                group_id=bill.group_id,
                total=str(bill.total),
                correlation_id=correlation_id,
            )

        return result, validation

    async def get_bill_split(
        self,
        bill_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Bill, SplitResult]:
        """
        Load a stored bill and recalculate its split.

        Raises:
            NotFoundError: If the bill doesn't exist
        """
        if self._bill_storage is None:
            raise ValueError("Bill storage is not configured")

        correlation_id = correlation_id or create_correlation_id()

        try:
            bill = await self._bill_storage.get_bill_by_id(bill_id)
        except Exception as e:
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type="bill_load_failed",
                    error_message=str(e),
                    details={"bill_id": str(bill_id)},
                    correlation_id=correlation_id,
                )
            raise
        if bill is None:
            raise NotFoundError(f"Bill {bill_id} not found")

        return bill, await self.calculate(bill, correlation_id)


class GroupBalanceFlow:
    """
    Orchestrates group-level operations: balances and settlements.

    Balances are never stored. They are recomputed from the group's bills
    and settlements on every request.
    """

    def __init__(
        self,
        bill_storage: BillStorageInterface,
        settlement_storage: SettlementStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[EngineSettings] = None,
    ):
        self._bill_storage = bill_storage
        self._settlement_storage = settlement_storage
        self._audit_logger = audit_logger
        self._settings = settings or get_settings().engine

    async def get_group_balances(
        self,
        group_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> GroupBalances:
        """
        Calculate member balances and the payment plan for a group.

        Raises:
            ValueError: If group_id is empty
            SplitCalculationError: If any paid bill in the group is malformed
        """
        group_id = _clean(group_id)
        if not group_id:
            raise ValueError("group_id required")

        correlation_id = correlation_id or create_correlation_id()

        try:
            bills = await self._bill_storage.list_bills_by_group(group_id)
            settlements = await self._settlement_storage.list_settlements_by_group(group_id)
        except Exception as e:
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type="group_load_failed",
                    error_message=str(e),
                    details={"group_id": group_id},
                    correlation_id=correlation_id,
                )
            raise

        try:
            balances = summarize_group(
                bills,
                settlements,
                group_id=group_id,
                epsilon=self._settings.settlement_epsilon,
                sort_by_magnitude=self._settings.sort_debts_by_magnitude,
                shared_label=self._settings.shared_label,
            )
        except SplitCalculationError as e:
            if self._audit_logger:
                await self._audit_logger.log_balances_failed(
                    group_id=group_id,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            for bill in bills:
                if not bill.has_payer:
                    await self._audit_logger.log_bill_skipped(
                        bill_id=bill.id,
                        group_id=group_id,
                        correlation_id=correlation_id,
                    )
            await self._audit_logger.log_balances_calculated(
                group_id=group_id,
                bills_count=len(bills) - balances.bills_skipped,
                members_count=len(balances.member_balances),
                debts_count=len(balances.debts),
                correlation_id=correlation_id,
            )

        return balances

    async def record_settlement(
        self,
        group_id: str,
        from_participant: str,
        to_participant: str,
        amount,
        note: Optional[str] = None,
        created_by: Optional[str] = None,
        members: Optional[Sequence[str]] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Settlement:
        """
        Record a manual payment between two group members.

        Args:
            members: The group's members, if known. When given, both parties
                     must be among them.

        Raises:
            SettlementRejectedError: If the request is malformed
        """
        correlation_id = correlation_id or create_correlation_id()
        group_id = _clean(group_id)
        from_participant = _clean(from_participant)
        to_participant = _clean(to_participant)

        reason = self._check_settlement(
            group_id, from_participant, to_participant, amount, members
        )
        if reason:
            if self._audit_logger:
                await self._audit_logger.log_settlement_rejected(
                    group_id=group_id,
                    reason=reason,
                    correlation_id=correlation_id,
                )
            raise SettlementRejectedError(reason)

        settlement = Settlement(
            group_id=group_id,
            from_participant=from_participant,
            to_participant=to_participant,
            amount=Decimal(str(amount)),
            note=note,
            created_by=created_by,
        )
        try:
            await self._settlement_storage.save_settlement(settlement)
        except Exception as e:
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type="settlement_save_failed",
                    error_message=str(e),
                    details={"settlement_id": str(settlement.id), "group_id": group_id},
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_settlement_recorded(
                settlement_id=settlement.id,
                group_id=group_id,
                from_participant=from_participant,
                to_participant=to_participant,
                amount=str(settlement.amount),
                correlation_id=correlation_id,
            )

        return settlement

    @staticmethod
    def _check_settlement(
        group_id: str,
        from_participant: str,
        to_participant: str,
        amount,
        members: Optional[Sequence[str]],
    ) -> Optional[str]:
        """Return the rejection reason, or None if the settlement is acceptable."""
        if not group_id:
            return "group_id required"
        if not from_participant:
            return "from_participant required"
        if not to_participant:
            return "to_participant required"

        try:
            value = Decimal(str(amount))
        except InvalidOperation:
            return f"amount '{amount}' is not a number"
        if not value.is_finite() or value <= 0:
            return "amount must be positive"

        if from_participant == to_participant:
            return "from_participant and to_participant must be different"

        if members is not None:
            if from_participant not in members:
                return "from_participant is not a member of this group"
            if to_participant not in members:
                return "to_participant is not a member of this group"

        return None


def create_app_components(
    storage: Optional[InMemoryStorage] = None,
    settings: Optional[EngineSettings] = None,
) -> tuple[SplitFlow, GroupBalanceFlow, InMemoryStorage]:
    """
    Factory function to create all application components.

    Args:
        storage: Backend implementing all storage interfaces.
                 Defaults to a fresh InMemoryStorage.

    Returns:
        (split_flow, group_balance_flow, storage)
    """
    storage = storage or InMemoryStorage()
    settings = settings or get_settings().engine
    audit_logger = AuditLogger(storage)

    split_flow = SplitFlow(
        bill_storage=storage,
        audit_logger=audit_logger,
        settings=settings,
    )
    group_balance_flow = GroupBalanceFlow(
        bill_storage=storage,
        settlement_storage=storage,
        audit_logger=audit_logger,
        settings=settings,
    )

    return split_flow, group_balance_flow, storage
