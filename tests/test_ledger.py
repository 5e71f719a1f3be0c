"""
tests/test_ledger.py

Expense validation and ExpenseLedger value semantics.
"""
import pytest

from errors import ValidationError
from ledger import (
    COURT_EXPENSE_ID,
    ExpenseLedger,
    court_expense,
    shuttlecock_expense,
    slot_price,
)
from models import Expense, ExpenseCategory


class TestExpense:

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationError):
            Expense("x", "Water", -1)

    @pytest.mark.parametrize("amount", [float("inf"), float("-inf"), float("nan")])
    def test_non_finite_amount_rejected(self, amount):
        with pytest.raises(ValidationError):
            Expense("x", "Water", amount)

    def test_non_numeric_amount_rejected(self):
        with pytest.raises(ValidationError):
            Expense("x", "Water", "lots")

    def test_amount_coerced_to_float(self):
        assert Expense("x", "Water", "15000").amount == 15000.0

    def test_category_from_string(self):
        assert Expense("c", "Court", 1, "court").category is ExpenseCategory.BASE_COURT

    def test_unknown_category_rejected(self):
        with pytest.raises(ValidationError):
            Expense("c", "Court", 1, "parking")

    def test_subset_on_base_expense_rejected(self):
        with pytest.raises(ValidationError):
            Expense("c", "Court", 1, ExpenseCategory.BASE_COURT, ("A",))

    def test_blank_subset_id_rejected(self):
        with pytest.raises(ValidationError):
            Expense("w", "Water", 1, ExpenseCategory.SUPPLEMENTAL, ("A", " "))

    def test_string_subset_rejected(self):
        # a bare string is one id, not a list of single-letter ids
        with pytest.raises(ValidationError):
            Expense("w", "Water", 30000, ExpenseCategory.SUPPLEMENTAL, "AB")

    def test_non_iterable_subset_rejected(self):
        with pytest.raises(ValidationError):
            Expense("w", "Water", 30000, ExpenseCategory.SUPPLEMENTAL, 42)

    def test_subset_list_becomes_tuple(self):
        e = Expense("w", "Water", 1, ExpenseCategory.SUPPLEMENTAL, ["A", "B"])
        assert e.participant_subset == ("A", "B")


class TestExpenseLedger:

    def test_base_and_supplemental_totals(self, base_expenses, water):
        ledger = ExpenseLedger.of(base_expenses + (water,))
        assert ledger.get_base_total() == 400000
        assert ledger.get_supplemental_expenses() == [water]
        assert ledger.total_cost() == 440000

    def test_add_returns_new_ledger(self, water):
        empty = ExpenseLedger()
        ledger = empty.add(water)
        assert empty.expenses == ()
        assert ledger.expenses == (water,)

    def test_duplicate_id_rejected(self, water):
        ledger = ExpenseLedger().add(water)
        with pytest.raises(ValidationError):
            ledger.add(water)

    def test_update_revalidates(self, water):
        ledger = ExpenseLedger().add(water)
        with pytest.raises(ValidationError):
            ledger.update("water", amount=-5)
        assert ledger.get("water").amount == 40000

    def test_update_changes_amount(self, water):
        ledger = ExpenseLedger().add(water).update("water", amount=60000)
        assert ledger.get("water").amount == 60000
        assert ledger.get("water").participant_subset == ("A", "B")

    def test_update_unknown_id(self):
        with pytest.raises(ValidationError):
            ExpenseLedger().update("nope", amount=1)

    def test_update_unknown_field(self, water):
        with pytest.raises(ValidationError):
            ExpenseLedger().add(water).update("water", colour="blue")

    def test_remove_and_remove_unknown(self, water):
        ledger = ExpenseLedger().add(water)
        assert ledger.remove("water").expenses == ()
        assert ledger.remove("nope") is ledger


class TestCostBuilders:

    def test_court_expense(self):
        e = court_expense(120000, "18:00", "20:30")
        assert e.id == COURT_EXPENSE_ID
        assert e.category is ExpenseCategory.BASE_COURT
        assert e.amount == 300000

    def test_court_expense_needs_positive_duration(self):
        with pytest.raises(ValidationError):
            court_expense(120000, "20:00", "18:00")

    def test_shuttlecock_expense(self):
        e = shuttlecock_expense(4, 25000)
        assert e.amount == 100000
        assert e.category is ExpenseCategory.BASE_SHUTTLECOCK

    def test_slot_price(self):
        assert slot_price(130000, "18:00", "20:00", 8) == 32500
