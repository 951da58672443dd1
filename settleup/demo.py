"""Demo ledger loaded when ``SEED_DEMO_DATA`` is enabled."""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Optional, Tuple

from .models import AuditEntry, Expense, Group, Participant, User
from .store import CREATED_ACTION, ExpenseStore

YOU = User(id="user-1", name="You")
ALICE = User(
    id="user-2",
    name="Alice",
    avatar_url="https://i.pravatar.cc/48?u=2",
    payment_message="Venmo: @alice-in-chains",
)
BOB = User(id="user-3", name="Bob", avatar_url="https://i.pravatar.cc/48?u=3")
CHARLIE = User(
    id="user-4",
    name="Charlie",
    avatar_url="https://i.pravatar.cc/48?u=4",
    payment_message="CashApp: $char-lie",
)

USERS = (YOU, ALICE, BOB, CHARLIE)

TRIP = Group(id="group-1", name="Trip to Bali", members=(YOU, ALICE, BOB))
UTILITIES = Group(id="group-2", name="Apartment Utilities", members=(YOU, CHARLIE))

GROUPS = (TRIP, UTILITIES)


def _expense(
    expense_id: str,
    description: str,
    amount: str,
    paid_by: User,
    shares: Iterable[Tuple[User, str]],
    date: str,
    group_id: Optional[str] = None,
) -> Expense:
    return Expense(
        id=expense_id,
        group_id=group_id,
        description=description,
        amount=Decimal(amount),
        paid_by=paid_by,
        participants=tuple(Participant(user=user, share=Decimal(share)) for user, share in shares),
        date=date,
        history=(AuditEntry(actor=paid_by, action=CREATED_ACTION, timestamp=date),),
    )


EXPENSES = (
    _expense(
        "exp-1", "Flight Tickets", "900.00", ALICE,
        [(YOU, "300.00"), (ALICE, "300.00"), (BOB, "300.00")],
        "2025-01-05T10:00:00Z", group_id=TRIP.id,
    ),
    _expense(
        "exp-2", "Dinner", "150.00", YOU,
        [(YOU, "50.00"), (ALICE, "50.00"), (BOB, "50.00")],
        "2025-01-06T19:30:00Z", group_id=TRIP.id,
    ),
    _expense(
        "exp-3", "Internet Bill", "60.00", CHARLIE,
        [(YOU, "30.00"), (CHARLIE, "30.00")],
        "2025-01-10T12:00:00Z", group_id=UTILITIES.id,
    ),
    _expense("exp-4", "Coffee", "12.00", ALICE, [(YOU, "6.00"), (ALICE, "6.00")], "2025-01-12T14:30:00Z"),
    _expense("exp-5", "Lunch", "24.00", YOU, [(YOU, "12.00"), (CHARLIE, "12.00")], "2025-01-13T12:00:00Z"),
    _expense("exp-6", "Movie Tickets", "30.00", BOB, [(YOU, "15.00"), (BOB, "15.00")], "2025-01-14T20:00:00Z"),
    Expense(
        id="settlement-1",
        is_settlement=True,
        description="Payment to Alice",
        amount=Decimal("50.00"),
        paid_by=YOU,
        participants=(Participant(user=ALICE, share=Decimal("50.00")),),
        date="2025-01-15T16:00:00Z",
        history=(AuditEntry(actor=YOU, action="paid Alice $50.00", timestamp="2025-01-15T16:00:00Z"),),
    ),
)


def demo_store(**kwargs) -> ExpenseStore:
    return ExpenseStore(current_user=YOU, users=USERS, groups=GROUPS, expenses=EXPENSES, **kwargs)
