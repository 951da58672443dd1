from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Sequence

from .models import Expense, SimplifiedDebt, User
from .money import EPSILON, ZERO, is_zero

logger = logging.getLogger(__name__)


def compute_balances(members: Sequence[User], expenses: Iterable[Expense]) -> Dict[str, Decimal]:
    """Net position of every member: positive is owed money, negative owes money."""
    balances: Dict[str, Decimal] = {member.id: ZERO for member in members}

    for expense in expenses:
        if expense.is_settlement:
            recipient = expense.recipient
            if recipient is None:
                continue
            _credit(balances, expense.paid_by.id, expense.amount)
            _credit(balances, recipient.id, -expense.amount)
            continue

        # The payer nets amount minus their own share (zero if not participating).
        _credit(balances, expense.paid_by.id, expense.amount)
        for participant in expense.participants:
            _credit(balances, participant.user.id, -participant.share)

    return balances


def _credit(balances: Dict[str, Decimal], user_id: str, amount: Decimal) -> None:
    if user_id in balances:
        balances[user_id] += amount


def simplify_debts(members: Sequence[User], expenses: Iterable[Expense]) -> List[SimplifiedDebt]:
    balances = compute_balances(members, expenses)

    debtors = [
        {"user": member, "amount": balances[member.id]}
        for member in members
        if balances[member.id] < -EPSILON
    ]
    creditors = [
        {"user": member, "amount": balances[member.id]}
        for member in members
        if balances[member.id] > EPSILON
    ]

    settlements: List[SimplifiedDebt] = []

    debtor_idx = 0
    creditor_idx = 0

    while debtor_idx < len(debtors) and creditor_idx < len(creditors):
        debtor = debtors[debtor_idx]
        creditor = creditors[creditor_idx]

        transfer = min(abs(debtor["amount"]), creditor["amount"])
        settlements.append(SimplifiedDebt(debtor=debtor["user"], creditor=creditor["user"], amount=transfer))

        debtor["amount"] += transfer
        creditor["amount"] -= transfer

        if is_zero(debtor["amount"]):
            debtor_idx += 1
        if is_zero(creditor["amount"]):
            creditor_idx += 1

    logger.debug(
        "Simplified %d debtor(s) and %d creditor(s) into %d transfer(s)",
        len(debtors),
        len(creditors),
        len(settlements),
    )
    return settlements
