"""Services package."""

from splitwiser.services.storage import (
    AuditStorageInterface,
    BillStorageInterface,
    DuplicateError,
    InMemoryStorage,
    NotFoundError,
    SettlementStorageInterface,
    StorageError,
)

__all__ = [
    "AuditStorageInterface",
    "BillStorageInterface",
    "DuplicateError",
    "InMemoryStorage",
    "NotFoundError",
    "SettlementStorageInterface",
    "StorageError",
]
