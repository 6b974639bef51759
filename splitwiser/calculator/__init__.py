"""
Split and balance engine.

Pure, synchronous functions only: no I/O, no shared state. Safe to call
from any number of request handlers concurrently.
"""

from splitwiser.calculator.balances import (
    calculate_group_balances,
    summarize_group,
)
from splitwiser.calculator.simplify import DEFAULT_EPSILON, simplify_debts
from splitwiser.calculator.split import (
    DEFAULT_SHARED_LABEL,
    NoParticipantsError,
    SplitCalculationError,
    ZeroSubtotalError,
    calculate_split,
    split_bill,
    sum_subtotals,
    sum_totals,
)

__all__ = [
    "DEFAULT_EPSILON",
    "DEFAULT_SHARED_LABEL",
    "NoParticipantsError",
    "SplitCalculationError",
    "ZeroSubtotalError",
    "calculate_group_balances",
    "calculate_split",
    "simplify_debts",
    "split_bill",
    "sum_subtotals",
    "sum_totals",
    "summarize_group",
]
