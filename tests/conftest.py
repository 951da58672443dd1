from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Iterable, Optional, Tuple

import pytest

from settleup.app import create_app
from settleup.demo import demo_store
from settleup.models import Expense, ExpenseDraft, Group, Participant, User

YOU = User(id="u-you", name="You")
ALICE = User(id="u-alice", name="Alice")
BOB = User(id="u-bob", name="Bob")
CAROL = User(id="u-carol", name="Carol")


def make_expense(
    paid_by: User,
    amount: str,
    shares: Iterable[Tuple[User, str]],
    group: Optional[Group] = None,
    expense_id: str = "exp-test",
    description: str = "Test expense",
) -> Expense:
    return Expense(
        id=expense_id,
        description=description,
        amount=Decimal(amount),
        paid_by=paid_by,
        participants=tuple(Participant(user=user, share=Decimal(share)) for user, share in shares),
        date="2025-02-01T12:00:00.000Z",
        group_id=group.id if group else None,
    )


def make_settlement(payer: User, payee: User, amount: str, group: Optional[Group] = None) -> Expense:
    return Expense(
        id=f"settlement-{payer.id}-{payee.id}",
        description=f"Payment to {payee.name}",
        amount=Decimal(amount),
        paid_by=payer,
        participants=(Participant(user=payee, share=Decimal(amount)),),
        date="2025-02-02T12:00:00.000Z",
        group_id=group.id if group else None,
        is_settlement=True,
    )


def make_draft(expense: Expense, **changes) -> ExpenseDraft:
    fields = dict(
        description=expense.description,
        amount=expense.amount,
        paid_by=expense.paid_by,
        participants=expense.participants,
        date=expense.date,
        group_id=expense.group_id,
    )
    fields.update(changes)
    return ExpenseDraft(**fields)


def shares(*pairs: Tuple[User, str]) -> Tuple[Participant, ...]:
    return tuple(Participant(user=user, share=Decimal(share)) for user, share in pairs)


class TickingClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self) -> None:
        self.moment = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.moment += timedelta(seconds=1)
        return self.moment


@pytest.fixture
def trip():
    return Group(id="g-trip", name="Trip", members=(YOU, ALICE, BOB))


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def store(clock):
    return demo_store(clock=clock)


@pytest.fixture
def app(store):
    app = create_app(store)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
