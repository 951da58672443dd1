from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

from .balances import group_net_balance, individual_net_balance, mutual_groups
from .models import (
    CURRENT_USER_PAYS,
    OTHER_USER_PAYS,
    SETTLED,
    DebtBreakdown,
    Expense,
    Group,
    GroupDebt,
    NetSettlement,
    SettlementLine,
    SettlementRequest,
    User,
)
from .money import EPSILON, ZERO

INDIVIDUAL_LABEL = "Individual expenses"


def group_debts_for_user(
    current_user: User,
    other_user: User,
    groups: Iterable[Group],
    expenses: Sequence[Expense],
) -> List[GroupDebt]:
    """Group debts ``current_user`` owes ``other_user``, one entry per group."""
    debts = []
    for group in mutual_groups(current_user, other_user, groups):
        owed = -group_net_balance(current_user, other_user, group, expenses)
        if owed > EPSILON:
            debts.append(GroupDebt(group_id=group.id, group_name=group.name, amount=owed))
    return debts


def debts_owed_to(
    current_user: User,
    other_user: User,
    groups: Sequence[Group],
    expenses: Sequence[Expense],
) -> DebtBreakdown:
    """Everything ``current_user`` owes ``other_user``."""
    individual = individual_net_balance(current_user, other_user, expenses)
    return DebtBreakdown(
        group_debts=tuple(group_debts_for_user(current_user, other_user, groups, expenses)),
        individual_debt=max(ZERO, -individual),
    )


def debts_owed_from(
    current_user: User,
    other_user: User,
    groups: Sequence[Group],
    expenses: Sequence[Expense],
) -> DebtBreakdown:
    """Everything ``other_user`` owes ``current_user``."""
    return debts_owed_to(other_user, current_user, groups, expenses)


def net_settlement(
    current_user: User,
    other_user: User,
    groups: Sequence[Group],
    expenses: Sequence[Expense],
) -> NetSettlement:
    owed_to = debts_owed_to(current_user, other_user, groups, expenses)
    owed_from = debts_owed_from(current_user, other_user, groups, expenses)

    difference = owed_to.total - owed_from.total
    if difference > EPSILON:
        direction = CURRENT_USER_PAYS
    elif difference < -EPSILON:
        direction = OTHER_USER_PAYS
    else:
        direction = SETTLED

    lines = _breakdown_lines(owed_to, CURRENT_USER_PAYS) + _breakdown_lines(owed_from, OTHER_USER_PAYS)
    return NetSettlement(net_amount=abs(difference), direction=direction, settlements=lines)


def _breakdown_lines(breakdown: DebtBreakdown, direction: str) -> List[SettlementLine]:
    lines = [
        SettlementLine(group_id=debt.group_id, group_name=debt.group_name, amount=debt.amount, direction=direction)
        for debt in breakdown.group_debts
    ]
    if breakdown.individual_debt > EPSILON:
        lines.append(
            SettlementLine(
                group_id=None,
                group_name=INDIVIDUAL_LABEL,
                amount=breakdown.individual_debt,
                direction=direction,
            )
        )
    return lines


def split_by_direction(plan: NetSettlement) -> Tuple[List[SettlementRequest], List[SettlementRequest]]:
    """Settlement requests ``(current user pays, other user pays)`` for the store."""
    pays: List[SettlementRequest] = []
    receives: List[SettlementRequest] = []
    for line in plan.settlements:
        request = SettlementRequest(group_id=line.group_id, amount=line.amount)
        if line.direction == CURRENT_USER_PAYS:
            pays.append(request)
        elif line.direction == OTHER_USER_PAYS:
            receives.append(request)
    return pays, receives

