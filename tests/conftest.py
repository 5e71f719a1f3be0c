"""
Shared fixtures: a full four-player session (A, B, C, D) with court and
shuttlecock costs totalling 400000.
"""
import pytest

from models import Expense, ExpenseCategory, Member, ParticipantEntry, Session


def make_session(capacity=4, present=True, ids=("A", "B", "C", "D"), expenses=()):
    return Session(
        id="s1",
        name="Thursday doubles",
        capacity=capacity,
        participants=tuple(
            ParticipantEntry(member_id=i, display_name=i, is_present=present) for i in ids
        ),
        expenses=tuple(expenses),
    )


@pytest.fixture
def base_expenses():
    return (
        Expense("court-cost", "Court", 300000, ExpenseCategory.BASE_COURT),
        Expense("shuttlecock-cost", "Shuttlecocks", 100000, ExpenseCategory.BASE_SHUTTLECOCK),
    )


@pytest.fixture
def water():
    return Expense("water", "Nước", 40000, ExpenseCategory.SUPPLEMENTAL, ("A", "B"))


@pytest.fixture
def full_session(base_expenses, water):
    return make_session(expenses=base_expenses + (water,))


@pytest.fixture
def directory():
    return {i: Member(i, f"Player {i}") for i in ("A", "B", "C", "D", "E", "F")}
