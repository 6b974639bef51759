"""
Audit Logger

DESIGN DECISION: Every split, balance calculation and settlement that
passes through the flows is logged. This provides:
1. Traceability of how a balance came to be
2. Debugging capability when a bill is rejected
3. A history of settlements outside the settlement records themselves

The audit logger:
- Is async to match the storage interfaces
- Gracefully handles storage failures (logging must not break a request)
- Supports correlation IDs to trace related events
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from splitwiser.config import AppSettings, get_settings
from splitwiser.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from splitwiser.services.storage import AuditStorageInterface, StorageError


def configure_logging(settings: Optional[AppSettings] = None) -> None:
    """
    Configure structlog on top of the stdlib logging module.

    Safe to call more than once; the last call wins. Handlers already on
    the root logger are left alone; the level applies to "splitwiser" only.
    """
    settings = settings or get_settings().app
    level = getattr(logging, settings.log_level)

    logging.basicConfig(format="%(message)s")
    logging.getLogger("splitwiser").setLevel(level)

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.log_json
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence), when configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("splitwiser.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except StorageError as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_split_calculated(
        self,
        bill_id: UUID,
        total: str,
        participant_count: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.split_calculated(
            bill_id=bill_id,
            total=total,
            participant_count=participant_count,
            correlation_id=correlation_id,
        ))

    async def log_split_failed(
        self,
        bill_id: UUID,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.split_failed(
            bill_id=bill_id,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_bill_validation_failed(
        self,
        bill_id: UUID,
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.bill_validation_failed(
            bill_id=bill_id,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_bill_saved(
        self,
        bill_id: UUID,
        group_id: Optional[str],
        total: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.bill_saved(
            bill_id=bill_id,
            group_id=group_id,
            total=total,
            correlation_id=correlation_id,
        ))

    async def log_bill_skipped(
        self,
        bill_id: UUID,
        group_id: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.bill_skipped_no_payer(
            bill_id=bill_id,
            group_id=group_id,
            correlation_id=correlation_id,
        ))

    async def log_balances_calculated(
        self,
        group_id: str,
        bills_count: int,
        members_count: int,
        debts_count: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.balances_calculated(
            group_id=group_id,
            bills_count=bills_count,
            members_count=members_count,
            debts_count=debts_count,
            correlation_id=correlation_id,
        ))

    async def log_balances_failed(
        self,
        group_id: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.balances_failed(
            group_id=group_id,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_settlement_recorded(
        self,
        settlement_id: UUID,
        group_id: str,
        from_participant: str,
        to_participant: str,
        amount: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.settlement_recorded(
            settlement_id=settlement_id,
            group_id=group_id,
            from_participant=from_participant,
            to_participant=to_participant,
            amount=amount,
            correlation_id=correlation_id,
        ))

    async def log_settlement_rejected(
        self,
        group_id: str,
        reason: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.settlement_rejected(
            group_id=group_id,
            reason=reason,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new request (e.g., a balance lookup).
    Pass it through all subsequent operations.
    """
    return uuid4()
