"""Change summaries for the expense history log."""

from __future__ import annotations

from decimal import Decimal
from typing import List, NamedTuple, Optional, Sequence

from .models import Expense, ExpenseDraft, Participant
from .money import amounts_close, format_money

NO_CHANGES = "made an update to this expense"
ARROW = "→"


class AuditDetails(NamedTuple):
    action: str
    details: Optional[str] = None


def join_clauses(clauses: Sequence[str]) -> str:
    """English list: "X", "X and Y", "X, Y, and Z"."""
    if len(clauses) == 1:
        return clauses[0]
    if len(clauses) == 2:
        return f"{clauses[0]} and {clauses[1]}"
    return ", ".join(clauses[:-1]) + f", and {clauses[-1]}"


def is_equal_split(amount: Decimal, participants: Sequence[Participant]) -> bool:
    if not participants:
        return False
    even_share = amount / len(participants)
    return all(amounts_close(participant.share, even_share) for participant in participants)


def _change(label: str, before: str, after: str) -> str:
    return f"{label}: {before} {ARROW} {after}"


def _names(participants: Sequence[Participant]) -> str:
    return ", ".join(participant.user.name for participant in participants)


def generate_audit_details(original: Expense, updated: ExpenseDraft) -> AuditDetails:
    summary: List[str] = []
    sections: List[str] = []

    if original.description != updated.description:
        summary.append("the description")
        sections.append(_change("Description", f'"{original.description}"', f'"{updated.description}"'))

    if not amounts_close(original.amount, updated.amount):
        summary.append("the amount")
        sections.append(_change("Amount", format_money(original.amount), format_money(updated.amount)))

    if original.paid_by.id != updated.paid_by.id:
        summary.append("who paid")
        sections.append(_change("Paid by", original.paid_by.name, updated.paid_by.name))

    original_ids = {participant.user.id for participant in original.participants}
    updated_ids = {participant.user.id for participant in updated.participants}
    added = [p for p in updated.participants if p.user.id not in original_ids]
    removed = [p for p in original.participants if p.user.id not in updated_ids]

    if added or removed:
        summary.append("the participants")
        lines = []
        if added:
            lines.append(f"Added: {_names(added)}")
        if removed:
            lines.append(f"Removed: {_names(removed)}")
        sections.append("\n".join(lines))
    else:
        split_section = _split_changes(original, updated)
        if split_section:
            summary.append("the split")
            sections.append(split_section)

    if not summary:
        return AuditDetails(action=NO_CHANGES)

    return AuditDetails(action=f"updated {join_clauses(summary)}", details="\n\n".join(sections))


def _split_changes(original: Expense, updated: ExpenseDraft) -> Optional[str]:
    was_equal = is_equal_split(original.amount, original.participants)
    now_equal = is_equal_split(updated.amount, updated.participants)

    # An equal split that stays equal only moves with the amount.
    if was_equal and now_equal:
        return None

    lines = []
    if was_equal and not now_equal:
        lines.append(_change("Split", "Equal", "Custom"))
    elif now_equal and not was_equal:
        lines.append(_change("Split", "Custom", "Equal"))

    for participant in updated.participants:
        before = original.share_of(participant.user.id)
        if not amounts_close(before, participant.share):
            lines.append(_change(participant.user.name, format_money(before), format_money(participant.share)))

    if not lines:
        return None
    return "\n".join(lines)
