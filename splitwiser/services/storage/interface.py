"""
Abstract Storage Interface

DESIGN DECISION: The engine never talks to storage. The flows fetch bills
and settlements through these interfaces and hand plain models to the
engine. This allows us to:
1. Swap the in-memory backend for a real database later
2. Use in-memory storage for testing
3. Keep the calculator decoupled from persistence

The interface is intentionally small: only what the flows need.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from splitwiser.models.audit import AuditEvent
from splitwiser.models.balance import Settlement
from splitwiser.models.split import Bill


class BillStorageInterface(ABC):
    """
    Abstract interface for bill storage operations.
    """

    @abstractmethod
    async def save_bill(self, bill: Bill) -> bool:
        """
        Save a bill to storage.

        Raises:
            DuplicateError: If a bill with the same ID exists
        """
        pass

    @abstractmethod
    async def get_bill_by_id(self, bill_id: UUID) -> Optional[Bill]:
        """Retrieve a bill by its ID, or None if it doesn't exist."""
        pass

    @abstractmethod
    async def list_bills_by_group(self, group_id: str) -> list[Bill]:
        """
        List a group's bills, oldest first.

        Args:
            group_id: The group identifier

        Returns:
            Bills in the order they were saved
        """
        pass

    @abstractmethod
    async def delete_bill(self, bill_id: UUID) -> bool:
        """
        Delete a bill by ID.

        Raises:
            NotFoundError: If bill doesn't exist
        """
        pass


class SettlementStorageInterface(ABC):
    """
    Abstract interface for settlement storage.

    Settlements are append-only records of money that changed hands.
    """

    @abstractmethod
    async def save_settlement(self, settlement: Settlement) -> bool:
        pass

    @abstractmethod
    async def list_settlements_by_group(self, group_id: str) -> list[Settlement]:
        """List a group's settlements in the order they were recorded."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get all events for a correlation ID in chronological order."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get the most recent audit events (newest first)."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass
