"""
Storage Services Package

Provides abstract interfaces and an in-memory implementation for bills,
settlements and audit events. Real backends live outside this package and
only need to implement the interfaces.
"""

from splitwiser.services.storage.interface import (
    AuditStorageInterface,
    BillStorageInterface,
    DuplicateError,
    NotFoundError,
    SettlementStorageInterface,
    StorageError,
)
from splitwiser.services.storage.memory import InMemoryStorage

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "BillStorageInterface",
    "SettlementStorageInterface",
    # Exceptions
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryStorage",
]
