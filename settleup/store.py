"""In-memory owner of the ledger collections."""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from .audit import generate_audit_details
from .models import AuditEntry, Expense, ExpenseDraft, Group, Participant, SettlementRequest, User
from .money import EPSILON, format_money
from .settlement import net_settlement, split_by_direction

logger = logging.getLogger(__name__)

CREATED_ACTION = "created this expense"
AVATAR_URL = "https://i.pravatar.cc/48?u={seed}"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _isoformat(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ExpenseStore:
    def __init__(
        self,
        current_user: User,
        users: Iterable[User] = (),
        groups: Iterable[Group] = (),
        expenses: Iterable[Expense] = (),
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._current_user = current_user
        self._users: List[User] = list(users)
        if not any(user.id == current_user.id for user in self._users):
            self._users.insert(0, current_user)
        self._groups: List[Group] = list(groups)
        self._expenses: List[Expense] = list(expenses)
        self._clock = clock
        self._issued_ids = {record.id for record in (*self._users, *self._groups, *self._expenses)}
        self._lock = threading.RLock()

    # Snapshots

    @property
    def current_user(self) -> User:
        return self._current_user

    @property
    def users(self) -> Tuple[User, ...]:
        with self._lock:
            return tuple(self._users)

    @property
    def groups(self) -> Tuple[Group, ...]:
        with self._lock:
            return tuple(self._groups)

    @property
    def expenses(self) -> Tuple[Expense, ...]:
        with self._lock:
            return tuple(self._expenses)

    def find_user(self, user_id: str) -> Optional[User]:
        return next((user for user in self.users if user.id == user_id), None)

    def find_group(self, group_id: str) -> Optional[Group]:
        return next((group for group in self.groups if group.id == group_id), None)

    def find_expense(self, expense_id: str) -> Optional[Expense]:
        return next((expense for expense in self.expenses if expense.id == expense_id), None)

    def group_expenses(self, group_id: str) -> List[Expense]:
        return [expense for expense in self.expenses if expense.group_id == group_id]

    def individual_expenses(self) -> List[Expense]:
        return [expense for expense in self.expenses if expense.is_individual and not expense.is_settlement]

    def settlement_activity(self) -> List[Expense]:
        """Settlement records, newest first."""
        settlements = [expense for expense in self.expenses if expense.is_settlement]
        return sorted(settlements, key=lambda expense: expense.date, reverse=True)

    # Identity and time

    def now(self) -> str:
        return _isoformat(self._clock())

    def _timestamp(self) -> int:
        return int(self._clock().timestamp() * 1000)

    def _next_id(self, prefix: str) -> str:
        with self._lock:
            stamp = self._timestamp()
            while f"{prefix}-{stamp}" in self._issued_ids:
                stamp += 1
            identifier = f"{prefix}-{stamp}"
            self._issued_ids.add(identifier)
            return identifier

    def _settlement_id(self) -> str:
        with self._lock:
            identifier = f"settlement-{self._timestamp()}-{uuid.uuid4().hex[:8]}"
            self._issued_ids.add(identifier)
            return identifier

    # Mutations, each applied under the store lock

    def add_user(self, name: str) -> User:
        with self._lock:
            user_id = self._next_id("user")
            user = User(id=user_id, name=name.strip(), avatar_url=AVATAR_URL.format(seed=user_id.split("-", 1)[1]))
            self._users.append(user)
        logger.info("Added user %s (%s)", user.id, user.name)
        return user

    def update_current_user(self, **changes: Optional[str]) -> User:
        """Apply profile changes everywhere the current user is referenced.

        Audit entries keep the actor as it was when they were written.
        """
        if "payment_message" in changes:
            changes["payment_message"] = (changes["payment_message"] or "").strip() or None

        with self._lock:
            updated = replace(self._current_user, **changes)

            def swap(user: User) -> User:
                return updated if user.id == updated.id else user

            self._current_user = updated
            self._users = [swap(user) for user in self._users]
            self._groups = [replace(group, members=tuple(swap(m) for m in group.members)) for group in self._groups]
            self._expenses = [
                replace(
                    expense,
                    paid_by=swap(expense.paid_by),
                    participants=tuple(replace(p, user=swap(p.user)) for p in expense.participants),
                )
                for expense in self._expenses
            ]
        logger.info("Updated profile of %s", updated.id)
        return updated

    def create_group(self, name: str, members: Sequence[User]) -> Group:
        with self._lock:
            others = []
            for member in members:
                if member.id != self._current_user.id and all(member.id != other.id for other in others):
                    others.append(member)
            group = Group(id=self._next_id("group"), name=name.strip(), members=(self._current_user, *others))
            self._groups.append(group)
        logger.info("Created group %s with %d member(s)", group.id, len(group.members))
        return group

    def add_expense(self, draft: ExpenseDraft) -> Expense:
        with self._lock:
            timestamp = self.now()
            expense = Expense(
                id=self._next_id("exp"),
                description=draft.description,
                amount=draft.amount,
                paid_by=draft.paid_by,
                participants=tuple(draft.participants),
                date=draft.date,
                group_id=draft.group_id,
                is_settlement=draft.is_settlement,
                history=(AuditEntry(actor=self._current_user, action=CREATED_ACTION, timestamp=timestamp),),
            )
            self._expenses.append(expense)
        logger.info("Added expense %s (%s)", expense.id, format_money(expense.amount))
        return expense

    def update_expense(self, expense_id: str, draft: ExpenseDraft) -> Optional[Expense]:
        with self._lock:
            original = self.find_expense(expense_id)
            if original is None:
                logger.warning("Ignoring update for unknown expense %s", expense_id)
                return None

            audit = generate_audit_details(original, draft)
            entry = AuditEntry(
                actor=self._current_user,
                action=audit.action,
                details=audit.details,
                timestamp=self.now(),
            )
            updated = replace(
                original,
                description=draft.description,
                amount=draft.amount,
                paid_by=draft.paid_by,
                participants=tuple(draft.participants),
                date=draft.date,
                group_id=draft.group_id,
                is_settlement=draft.is_settlement,
                history=(*original.history, entry),
            )
            self._expenses = [updated if expense.id == expense_id else expense for expense in self._expenses]
        logger.info("Updated expense %s: %s", expense_id, audit.action)
        return updated

    def record_settlement(self, payee: User, settlements: Iterable[SettlementRequest]) -> List[Expense]:
        """Record the current user paying ``payee``, one record per request."""
        return self._record_payments(self._current_user, payee, settlements, reverse=False)

    def record_settlement_reverse(self, payer: User, settlements: Iterable[SettlementRequest]) -> List[Expense]:
        """Record ``payer`` paying the current user, one record per request."""
        return self._record_payments(payer, self._current_user, settlements, reverse=True)

    def _record_payments(
        self,
        payer: User,
        payee: User,
        settlements: Iterable[SettlementRequest],
        reverse: bool,
    ) -> List[Expense]:
        recorded = []
        with self._lock:
            for request in settlements:
                if request.amount <= EPSILON:
                    continue
                timestamp = self.now()
                if reverse:
                    action = f"recorded {payer.name} paying {payee.name} {format_money(request.amount)}"
                else:
                    action = f"paid {payee.name} {format_money(request.amount)}"
                expense = Expense(
                    id=self._settlement_id(),
                    description=f"Payment to {payee.name}",
                    amount=request.amount,
                    paid_by=payer,
                    participants=(Participant(user=payee, share=request.amount),),
                    date=timestamp,
                    group_id=request.group_id or None,
                    is_settlement=True,
                    history=(AuditEntry(actor=self._current_user, action=action, timestamp=timestamp),),
                )
                recorded.append(expense)
            self._expenses.extend(recorded)

        for expense in recorded:
            logger.info(
                "Recorded settlement %s: %s paid %s %s",
                expense.id,
                payer.id,
                payee.id,
                format_money(expense.amount),
            )
        return recorded

    def settle_net(self, other_user: User) -> List[Expense]:
        """Clear every debt between the current user and ``other_user``."""
        with self._lock:
            plan = net_settlement(self._current_user, other_user, self.groups, self.expenses)
            pays, receives = split_by_direction(plan)
            recorded = []
            if pays:
                recorded.extend(self.record_settlement(other_user, pays))
            if receives:
                recorded.extend(self.record_settlement_reverse(other_user, receives))
        return recorded
