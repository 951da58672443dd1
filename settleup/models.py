"""Ledger records.

Every record is an immutable value: the store replaces records instead of
editing them, and the balance/settlement functions only ever read them.
Amounts are cent-quantized ``Decimal`` values. ``to_dict`` renders the JSON
shape served by the HTTP layer (camelCase keys, amounts as floats).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from .money import ZERO, as_float

CURRENT_USER_PAYS = "currentUserPays"
OTHER_USER_PAYS = "otherUserPays"
SETTLED = "settled"


@dataclass(frozen=True)
class User:
    id: str
    name: str
    avatar_url: Optional[str] = None
    payment_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"id": self.id, "name": self.name}
        if self.avatar_url:
            data["avatarUrl"] = self.avatar_url
        if self.payment_message:
            data["paymentMessage"] = self.payment_message
        return data


@dataclass(frozen=True)
class Group:
    id: str
    name: str
    members: Tuple[User, ...]

    def has_member(self, user_id: str) -> bool:
        return any(member.id == user_id for member in self.members)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "members": [member.to_dict() for member in self.members],
        }


@dataclass(frozen=True)
class Participant:
    user: User
    share: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {"user": self.user.to_dict(), "share": as_float(self.share)}


@dataclass(frozen=True)
class AuditEntry:
    actor: User
    action: str
    timestamp: str
    details: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "actor": self.actor.to_dict(),
            "action": self.action,
            "timestamp": self.timestamp,
        }
        if self.details is not None:
            data["details"] = self.details
        return data


@dataclass(frozen=True)
class ExpenseDraft:
    """The editable part of an expense: everything except id and history."""

    description: str
    amount: Decimal
    paid_by: User
    participants: Tuple[Participant, ...]
    date: str
    group_id: Optional[str] = None
    is_settlement: bool = False


@dataclass(frozen=True)
class Expense:
    id: str
    description: str
    amount: Decimal
    paid_by: User
    participants: Tuple[Participant, ...]
    date: str
    group_id: Optional[str] = None
    history: Tuple[AuditEntry, ...] = ()
    is_settlement: bool = False

    @property
    def is_individual(self) -> bool:
        return not self.group_id

    @property
    def recipient(self) -> Optional[User]:
        """The user receiving a settlement payment, if there is one."""
        if not self.participants:
            return None
        return self.participants[0].user

    def share_of(self, user_id: str) -> Decimal:
        for participant in self.participants:
            if participant.user.id == user_id:
                return participant.share
        return ZERO

    def as_draft(self) -> ExpenseDraft:
        return ExpenseDraft(
            description=self.description,
            amount=self.amount,
            paid_by=self.paid_by,
            participants=self.participants,
            date=self.date,
            group_id=self.group_id,
            is_settlement=self.is_settlement,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "description": self.description,
            "amount": as_float(self.amount),
            "paidBy": self.paid_by.to_dict(),
            "participants": [participant.to_dict() for participant in self.participants],
            "date": self.date,
            "history": [entry.to_dict() for entry in self.history],
        }
        if self.group_id:
            data["groupId"] = self.group_id
        if self.is_settlement:
            data["isSettlement"] = True
        return data


@dataclass(frozen=True)
class SimplifiedDebt:
    debtor: User
    creditor: User
    amount: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "debtor": self.debtor.to_dict(),
            "creditor": self.creditor.to_dict(),
            "amount": as_float(self.amount),
        }


@dataclass(frozen=True)
class GroupDebt:
    group_id: str
    group_name: str
    amount: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {"groupId": self.group_id, "groupName": self.group_name, "amount": as_float(self.amount)}


@dataclass(frozen=True)
class DebtBreakdown:
    group_debts: Tuple[GroupDebt, ...]
    individual_debt: Decimal

    @property
    def total(self) -> Decimal:
        return sum((debt.amount for debt in self.group_debts), ZERO) + self.individual_debt

    def to_dict(self) -> Dict[str, Any]:
        return {
            "groupDebts": [debt.to_dict() for debt in self.group_debts],
            "individualDebt": as_float(self.individual_debt),
            "total": as_float(self.total),
        }


@dataclass(frozen=True)
class SettlementLine:
    """One constituent debt of a net settlement; ``group_id`` None is the direct debt."""

    group_id: Optional[str]
    group_name: str
    amount: Decimal
    direction: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "groupId": self.group_id or "",
            "groupName": self.group_name,
            "amount": as_float(self.amount),
            "direction": self.direction,
        }


@dataclass(frozen=True)
class SettlementRequest:
    """An amount to settle inside one group, or directly when ``group_id`` is None."""

    group_id: Optional[str]
    amount: Decimal


@dataclass(frozen=True)
class NetSettlement:
    net_amount: Decimal
    direction: str
    settlements: List[SettlementLine] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "netAmount": as_float(self.net_amount),
            "direction": self.direction,
            "settlements": [line.to_dict() for line in self.settlements],
        }
