"""
Data Models Package

This package contains all Pydantic models used in Splitwiser.
All data flowing into and out of the engine must conform to these schemas.
"""

from splitwiser.models.split import (
    Bill,
    Item,
    PersonItem,
    PersonSplit,
    SplitResult,
)
from splitwiser.models.balance import (
    DebtEdge,
    GroupBalances,
    MemberBalance,
    Settlement,
)
from splitwiser.models.validation import (
    ValidationIssue,
    ValidationResult,
)
from splitwiser.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Bill models
    "Bill",
    "Item",
    "PersonItem",
    "PersonSplit",
    "SplitResult",
    # Balance models
    "DebtEdge",
    "GroupBalances",
    "MemberBalance",
    "Settlement",
    # Validation models
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
