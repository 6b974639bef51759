"""
Splitwiser - Bill Splitting Engine

Splits shared bills item-by-item with tax/fees distributed proportionally,
and reconciles balances across many bills and manual settlements.

DESIGN PRINCIPLES:
1. The engine is pure: plain data in, fresh results out
2. Fail early, fail visibly (no partial balances)
3. No silent corrections
4. Every request-level action is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Splitwiser Team"
