"""Bill validation package."""

from splitwiser.validation.validator import BillValidationError, BillValidator

__all__ = ["BillValidationError", "BillValidator"]
