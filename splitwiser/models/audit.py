"""
Audit Models for Splitwiser

Every significant action around the engine is logged for audit purposes:
1. Which bills were split and what they came to
2. Which bills were left out of a group's balances and why
3. Every settlement recorded or rejected
4. Failures, with enough context to reproduce them

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Bills
    SPLIT_CALCULATED = "split_calculated"
    SPLIT_FAILED = "split_failed"
    BILL_VALIDATION_FAILED = "bill_validation_failed"
    BILL_SAVED = "bill_saved"
    BILL_SKIPPED_NO_PAYER = "bill_skipped_no_payer"

    # Group balances
    BALANCES_CALCULATED = "balances_calculated"
    BALANCES_FAILED = "balances_failed"

    # Settlements
    SETTLEMENT_RECORDED = "settlement_recorded"
    SETTLEMENT_REJECTED = "settlement_rejected"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What entity is this about? ('bill', 'group', 'settlement')
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None

    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one balance request)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.split_calculated(bill_id, total, 3, correlation_id)
        event = AuditEventBuilder.settlement_recorded(settlement, correlation_id)
    """

    @staticmethod
    def split_calculated(
        bill_id: UUID,
        total: str,
        participant_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SPLIT_CALCULATED,
            entity_type="bill",
            entity_id=str(bill_id),
            correlation_id=correlation_id,
            description=f"Bill split between {participant_count} participants",
            details={
                "total": total,
                "participant_count": participant_count,
            },
        )

    @staticmethod
    def split_failed(
        bill_id: UUID,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SPLIT_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="bill",
            entity_id=str(bill_id),
            correlation_id=correlation_id,
            description="Bill split rejected",
            error_code="invalid_argument",
            error_message=error_message,
        )

    @staticmethod
    def bill_validation_failed(
        bill_id: UUID,
        issues: list[dict],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BILL_VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="bill",
            entity_id=str(bill_id),
            correlation_id=correlation_id,
            description=f"Bill validation failed with {len(issues)} issues",
            details={"issues": issues},
        )

    @staticmethod
    def bill_saved(
        bill_id: UUID,
        group_id: Optional[str],
        total: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BILL_SAVED,
            entity_type="bill",
            entity_id=str(bill_id),
            correlation_id=correlation_id,
            description=f"Bill saved: {total}",
            details={
                "group_id": group_id,
                "total": total,
            },
        )

    @staticmethod
    def bill_skipped_no_payer(
        bill_id: UUID,
        group_id: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BILL_SKIPPED_NO_PAYER,
            entity_type="bill",
            entity_id=str(bill_id),
            correlation_id=correlation_id,
            description="Bill has no payer and was left out of group balances",
            details={"group_id": group_id},
        )

    @staticmethod
    def balances_calculated(
        group_id: str,
        bills_count: int,
        members_count: int,
        debts_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BALANCES_CALCULATED,
            entity_type="group",
            entity_id=group_id,
            correlation_id=correlation_id,
            description=(
                f"Balances calculated: {members_count} members, "
                f"{debts_count} payments needed"
            ),
            details={
                "bills_count": bills_count,
                "members_count": members_count,
                "debts_count": debts_count,
            },
        )

    @staticmethod
    def balances_failed(
        group_id: str,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BALANCES_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="group",
            entity_id=group_id,
            correlation_id=correlation_id,
            description="Group balance calculation aborted",
            error_code="invalid_argument",
            error_message=error_message,
        )

    @staticmethod
    def settlement_recorded(
        settlement_id: UUID,
        group_id: str,
        from_participant: str,
        to_participant: str,
        amount: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTLEMENT_RECORDED,
            entity_type="settlement",
            entity_id=str(settlement_id),
            correlation_id=correlation_id,
            description=f"Settlement recorded: {from_participant} paid {to_participant} {amount}",
            details={
                "group_id": group_id,
                "from_participant": from_participant,
                "to_participant": to_participant,
                "amount": amount,
            },
        )

    @staticmethod
    def settlement_rejected(
        group_id: str,
        reason: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTLEMENT_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="group",
            entity_id=group_id or None,
            correlation_id=correlation_id,
            description="Settlement rejected",
            error_code="invalid_argument",
            error_message=reason,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_code="internal",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
