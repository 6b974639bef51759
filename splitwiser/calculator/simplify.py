"""
Debt Simplifier

Turns a set of net balances into a short list of directed payments that
zero every balance.

Greedy pair matching: walk creditors and debtors with two cursors and
settle min(debt, credit) at each step. This is an O(n) approximation, NOT
a minimum-transaction solver. The result depends on the order in which
balances are supplied; pass sort_by_magnitude=True to match the largest
debtors with the largest creditors first instead.
"""

from decimal import Decimal
from typing import Iterable

from splitwiser.models.balance import DebtEdge, MemberBalance


DEFAULT_EPSILON = Decimal("0.01")


def simplify_debts(
    balances: Iterable[MemberBalance],
    *,
    epsilon: Decimal = DEFAULT_EPSILON,
    sort_by_magnitude: bool = False,
) -> list[DebtEdge]:
    """
    Produce the payment plan for a set of member balances.

    Args:
        balances: Net balances in their natural iteration order
        epsilon: Amounts at or below this are floating noise, not debts
        sort_by_magnitude: Opt in to largest-first matching (stable sort)

    Returns:
        DebtEdges, each from a debtor to a creditor
    """
    creditors: list[list] = []
    debtors: list[list] = []
    for balance in balances:
        if balance.net_balance > 0:
            creditors.append([balance.participant, balance.net_balance])
        elif balance.net_balance < 0:
            debtors.append([balance.participant, -balance.net_balance])

    if sort_by_magnitude:
        creditors.sort(key=lambda entry: entry[1], reverse=True)
        debtors.sort(key=lambda entry: entry[1], reverse=True)

    edges = []
    i = j = 0
    while i < len(debtors) and j < len(creditors):
        debtor = debtors[i]
        creditor = creditors[j]

        amount = min(debtor[1], creditor[1])
        if amount > epsilon:
            edges.append(DebtEdge(
                from_participant=debtor[0],
                to_participant=creditor[0],
                amount=amount,
            ))

        debtor[1] -= amount
        creditor[1] -= amount

        if debtor[1] < epsilon:
            i += 1
        if creditor[1] < epsilon:
            j += 1

    return edges
