from __future__ import annotations

from decimal import Decimal
from typing import Dict, Iterable, List, Sequence

from .models import Expense, Group, User
from .money import ZERO
from .simplify import compute_balances, simplify_debts


def mutual_groups(current_user: User, other_user: User, groups: Iterable[Group]) -> List[Group]:
    return [
        group
        for group in groups
        if group.has_member(current_user.id) and group.has_member(other_user.id)
    ]


def group_expenses(group: Group, expenses: Iterable[Expense]) -> List[Expense]:
    return [expense for expense in expenses if expense.group_id == group.id]


def group_net_balance(current_user: User, other_user: User, group: Group, expenses: Iterable[Expense]) -> Decimal:
    """Balance between two members after the group's debts are simplified."""
    balance = ZERO
    for debt in simplify_debts(group.members, group_expenses(group, expenses)):
        if debt.debtor.id == other_user.id and debt.creditor.id == current_user.id:
            balance += debt.amount
        elif debt.debtor.id == current_user.id and debt.creditor.id == other_user.id:
            balance -= debt.amount
    return balance


def individual_expenses_between(current_user: User, other_user: User, expenses: Iterable[Expense]) -> List[Expense]:
    """Direct (non-group) expenses and settlements involving exactly these two users."""
    pair = {current_user.id, other_user.id}
    matched = []
    for expense in expenses:
        if not expense.is_individual:
            continue
        if expense.is_settlement:
            recipient = expense.recipient
            parties = {expense.paid_by.id, recipient.id} if recipient else set()
        else:
            parties = {expense.paid_by.id} | {p.user.id for p in expense.participants}
        if parties == pair:
            matched.append(expense)
    return matched


def individual_net_balance(current_user: User, other_user: User, expenses: Iterable[Expense]) -> Decimal:
    balance = ZERO
    for expense in individual_expenses_between(current_user, other_user, expenses):
        if expense.is_settlement:
            if expense.paid_by.id == current_user.id:
                balance += expense.amount
            else:
                balance -= expense.amount
        elif expense.paid_by.id == current_user.id:
            balance += expense.amount - expense.share_of(current_user.id)
        else:
            balance -= expense.share_of(current_user.id)
    return balance


def net_balance(
    current_user: User,
    other_user: User,
    groups: Iterable[Group],
    expenses: Sequence[Expense],
) -> Decimal:
    """Positive when ``other_user`` owes ``current_user``, negative the other way round."""
    balance = ZERO
    for group in mutual_groups(current_user, other_user, groups):
        balance += group_net_balance(current_user, other_user, group, expenses)
    return balance + individual_net_balance(current_user, other_user, expenses)


def group_balance(user: User, group: Group, expenses: Iterable[Expense]) -> Decimal:
    """The user's own net position inside one group."""
    balances = compute_balances(group.members, group_expenses(group, expenses))
    return balances.get(user.id, ZERO)


def overall_balances(
    current_user: User,
    users: Iterable[User],
    groups: Sequence[Group],
    expenses: Sequence[Expense],
) -> Dict[str, Decimal]:
    return {
        user.id: net_balance(current_user, user, groups, expenses)
        for user in users
        if user.id != current_user.id
    }


def individual_balances(
    current_user: User,
    users: Iterable[User],
    expenses: Sequence[Expense],
) -> Dict[str, Decimal]:
    return {
        user.id: individual_net_balance(current_user, user, expenses)
        for user in users
        if user.id != current_user.id
    }
