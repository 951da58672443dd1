from decimal import Decimal

import pytest

from settleup.audit import NO_CHANGES, generate_audit_details, is_equal_split, join_clauses

from .conftest import ALICE, BOB, CAROL, YOU, make_draft, make_expense, shares


@pytest.fixture
def lunch():
    return make_expense(YOU, "50.00", [(YOU, "25.00"), (ALICE, "25.00")], description="Lunch")


def test_unchanged_draft_reports_a_generic_update(lunch):
    audit = generate_audit_details(lunch, lunch.as_draft())

    assert audit.action == NO_CHANGES == "made an update to this expense"
    assert audit.details is None


def test_amount_change(lunch):
    draft = make_draft(lunch, amount=Decimal("60.00"), participants=shares((YOU, "30.00"), (ALICE, "30.00")))

    audit = generate_audit_details(lunch, draft)

    assert audit.action == "updated the amount"
    assert "Amount: $50.00 → $60.00" in audit.details


def test_sub_cent_amount_difference_is_ignored(lunch):
    draft = make_draft(lunch, amount=Decimal("50.005"))

    assert generate_audit_details(lunch, draft).action == NO_CHANGES


def test_two_changes_use_and(lunch):
    draft = make_draft(lunch, description="Brunch", paid_by=ALICE)

    audit = generate_audit_details(lunch, draft)

    assert audit.action == "updated the description and who paid"
    assert audit.details == 'Description: "Lunch" → "Brunch"\n\nPaid by: You → Alice'


def test_three_changes_use_serial_comma(lunch):
    draft = make_draft(
        lunch,
        description="Brunch",
        amount=Decimal("80.00"),
        participants=shares((YOU, "40.00"), (ALICE, "20.00"), (BOB, "20.00")),
    )

    audit = generate_audit_details(lunch, draft)

    assert audit.action == "updated the description, the amount, and the participants"
    assert audit.details.split("\n\n") == [
        'Description: "Lunch" → "Brunch"',
        "Amount: $50.00 → $80.00",
        "Added: Bob",
    ]


def test_participant_changes_list_added_and_removed(lunch):
    draft = make_draft(lunch, participants=shares((YOU, "25.00"), (CAROL, "25.00")))

    audit = generate_audit_details(lunch, draft)

    assert audit.action == "updated the participants"
    assert audit.details == "Added: Carol\nRemoved: Alice"


def test_equal_to_custom_split(lunch):
    draft = make_draft(lunch, participants=shares((YOU, "10.00"), (ALICE, "40.00")))

    audit = generate_audit_details(lunch, draft)

    assert audit.action == "updated the split"
    assert audit.details == "Split: Equal → Custom\nYou: $25.00 → $10.00\nAlice: $25.00 → $40.00"


def test_custom_to_equal_split():
    dinner = make_expense(YOU, "90.00", [(YOU, "30.00"), (ALICE, "60.00")])
    draft = make_draft(dinner, participants=shares((YOU, "45.00"), (ALICE, "45.00")))

    audit = generate_audit_details(dinner, draft)

    assert audit.action == "updated the split"
    assert audit.details.startswith("Split: Custom → Equal\n")


def test_custom_split_adjustment():
    dinner = make_expense(YOU, "90.00", [(YOU, "30.00"), (ALICE, "60.00")])
    draft = make_draft(dinner, participants=shares((YOU, "20.00"), (ALICE, "70.00")))

    audit = generate_audit_details(dinner, draft)

    assert audit.details == "You: $30.00 → $20.00\nAlice: $60.00 → $70.00"


def test_split_is_not_compared_when_participants_change(lunch):
    draft = make_draft(lunch, participants=shares((YOU, "5.00"), (ALICE, "5.00"), (BOB, "40.00")))

    assert generate_audit_details(lunch, draft).action == "updated the participants"


def test_join_clauses():
    assert join_clauses(["the amount"]) == "the amount"
    assert join_clauses(["a", "b"]) == "a and b"
    assert join_clauses(["a", "b", "c", "d"]) == "a, b, c, and d"


def test_three_way_rounding_still_counts_as_equal():
    assert is_equal_split(Decimal("100.00"), shares((YOU, "33.33"), (ALICE, "33.33"), (BOB, "33.34")))
    assert not is_equal_split(Decimal("100.00"), ())
