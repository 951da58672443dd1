from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Callable, Dict, List, Optional, Sequence

from .models import ExpenseDraft, Group, Participant, SettlementRequest, User
from .money import CENT, EPSILON, ZERO, to_decimal


class ValidationError(ValueError):
    """Invalid input rejected at the boundary, identified by ``code``."""

    def __init__(self, code: str) -> None:
        super().__init__(code)
        self.code = code


UserLookup = Callable[[str], Optional[User]]
GroupLookup = Callable[[str], Optional[Group]]


def parse_amount(value: Any, code: str = "invalid_amount") -> Decimal:
    if value is None or isinstance(value, bool):
        raise ValidationError(code)
    try:
        amount = to_decimal(value)
    except (TypeError, ValueError, InvalidOperation):
        raise ValidationError(code) from None
    if not amount.is_finite() or amount <= ZERO:
        raise ValidationError(code)
    return amount


def equal_shares(amount: Decimal, users: Sequence[User]) -> List[Participant]:
    count = len(users)
    if count == 0:
        raise ValidationError("empty_participants")

    per_person = (amount / count).quantize(CENT, rounding=ROUND_HALF_UP)
    shares: List[Participant] = []
    total_assigned = ZERO

    for user in users[:-1]:
        shares.append(Participant(user=user, share=per_person))
        total_assigned += per_person

    last_share = (amount - total_assigned).quantize(CENT, rounding=ROUND_HALF_UP)
    shares.append(Participant(user=users[-1], share=last_share))

    return shares


def _resolve_user(user_id: Any, find_user: UserLookup, code: str = "unknown_user") -> User:
    user = find_user(str(user_id)) if user_id not in (None, "") else None
    if user is None:
        raise ValidationError(code)
    return user


def _normalize_custom_shares(payload: Any, find_user: UserLookup) -> List[Participant]:
    if not isinstance(payload, list):
        raise ValidationError("invalid_share_payload")

    participants: List[Participant] = []
    seen = set()
    for item in payload:
        if not isinstance(item, dict) or "userId" not in item:
            raise ValidationError("invalid_share_payload")
        user = _resolve_user(item["userId"], find_user)
        share = parse_amount(item.get("share"), "invalid_share_amount")

        if user.id in seen:
            raise ValidationError("duplicate_participant")

        seen.add(user.id)
        participants.append(Participant(user=user, share=share))
    return participants


def parse_expense_draft(
    payload: Dict[str, Any],
    find_user: UserLookup,
    find_group: GroupLookup,
    default_payer: User,
    default_date: str,
) -> ExpenseDraft:
    """Build a draft from a JSON body and validate it."""
    if not isinstance(payload, dict):
        raise ValidationError("invalid_payload")
    description = (payload.get("description") or "").strip()
    if not description or payload.get("amount") is None:
        raise ValidationError("missing_fields")

    amount = parse_amount(payload.get("amount"))

    group = None
    group_id = payload.get("groupId") or None
    if group_id is not None:
        group = find_group(str(group_id))
        if group is None:
            raise ValidationError("unknown_group")

    paid_by_id = payload.get("paidBy")
    paid_by = default_payer if paid_by_id in (None, "") else _resolve_user(paid_by_id, find_user)

    if payload.get("participants"):
        participants = _normalize_custom_shares(payload["participants"], find_user)
    elif payload.get("splitAmong"):
        split_ids = payload["splitAmong"]
        if not isinstance(split_ids, list) or len(set(map(str, split_ids))) != len(split_ids):
            raise ValidationError("duplicate_participant")
        participants = equal_shares(amount, [_resolve_user(user_id, find_user) for user_id in split_ids])
    elif group is not None:
        participants = equal_shares(amount, list(group.members))
    else:
        raise ValidationError("empty_participants")

    draft = ExpenseDraft(
        description=description,
        amount=amount,
        paid_by=paid_by,
        participants=tuple(participants),
        date=payload.get("date") or default_date,
        group_id=group.id if group else None,
    )
    validate_draft(draft, group)
    return draft


def validate_draft(draft: ExpenseDraft, group: Optional[Group] = None) -> None:
    if not draft.description.strip():
        raise ValidationError("missing_fields")
    if draft.amount <= ZERO:
        raise ValidationError("invalid_amount")
    if not draft.participants:
        raise ValidationError("empty_participants")

    user_ids = [participant.user.id for participant in draft.participants]
    if len(set(user_ids)) != len(user_ids):
        raise ValidationError("duplicate_participant")
    if any(participant.share < ZERO for participant in draft.participants):
        raise ValidationError("invalid_share_amount")

    if draft.is_settlement:
        if len(draft.participants) != 1 or abs(draft.participants[0].share - draft.amount) > EPSILON:
            raise ValidationError("invalid_settlement")

    if group is not None:
        if not group.has_member(draft.paid_by.id):
            raise ValidationError("payer_not_in_group")
        if not all(group.has_member(user_id) for user_id in user_ids):
            raise ValidationError("participant_not_in_group")


def parse_settlement_requests(
    payload: Any,
    find_group: GroupLookup,
    payer: User,
    payee: User,
) -> List[SettlementRequest]:
    if not isinstance(payload, list) or not payload:
        raise ValidationError("invalid_settlement")

    requests: List[SettlementRequest] = []
    for item in payload:
        if not isinstance(item, dict):
            raise ValidationError("invalid_settlement")
        group_id = item.get("groupId") or None
        if group_id is not None:
            group = find_group(str(group_id))
            if group is None:
                raise ValidationError("unknown_group")
            if not group.has_member(payer.id):
                raise ValidationError("payer_not_in_group")
            if not group.has_member(payee.id):
                raise ValidationError("payee_not_in_group")
        requests.append(SettlementRequest(group_id=group_id, amount=parse_amount(item.get("amount"))))
    return requests
