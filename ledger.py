"""
Expense ledger for a session: base costs (court, shuttlecocks) and supplemental items
"""
from __future__ import annotations
import dataclasses
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from errors import ValidationError
from models import Expense, ExpenseCategory
from utils import session_duration_hours

COURT_EXPENSE_ID = "court-cost"
SHUTTLECOCK_EXPENSE_ID = "shuttlecock-cost"


@dataclass(frozen=True)
class ExpenseLedger:
    """
    Ordered, immutable set of expenses.
    add/update/remove return a new ledger; a rejected change raises
    ValidationError and leaves the original untouched.
    """
    expenses: Tuple[Expense, ...] = ()

    @classmethod
    def of(cls, expenses: Iterable[Expense]) -> "ExpenseLedger":
        ledger = cls()
        for e in expenses:
            ledger = ledger.add(e)
        return ledger

    def get(self, expense_id: str) -> Optional[Expense]:
        return next((e for e in self.expenses if e.id == expense_id), None)

    def add(self, expense: Expense) -> "ExpenseLedger":
        if not isinstance(expense, Expense):
            raise ValidationError("Ledger only accepts Expense entries", {"type": type(expense).__name__})
        if self.get(expense.id) is not None:
            raise ValidationError("Duplicate expense id", {"expense_id": expense.id})
        return ExpenseLedger(self.expenses + (expense,))

    def update(self, expense_id: str, **patch) -> "ExpenseLedger":
        """Replace fields of one expense; the result is re-validated"""
        current = self.get(expense_id)
        if current is None:
            raise ValidationError("Unknown expense id", {"expense_id": expense_id})
        if "id" in patch and patch["id"] != expense_id:
            raise ValidationError("Expense id cannot be changed", {"expense_id": expense_id})
        try:
            updated = dataclasses.replace(current, **patch)
        except TypeError as ex:
            raise ValidationError("Unknown expense field", {"expense_id": expense_id, "error": ex}) from ex
        return ExpenseLedger(tuple(updated if e.id == expense_id else e for e in self.expenses))

    def remove(self, expense_id: str) -> "ExpenseLedger":
        if self.get(expense_id) is None:
            return self
        return ExpenseLedger(tuple(e for e in self.expenses if e.id != expense_id))

    def get_base_total(self) -> float:
        return sum(e.amount for e in self.expenses if e.category.is_base)

    def get_supplemental_expenses(self) -> List[Expense]:
        return [e for e in self.expenses if e.category is ExpenseCategory.SUPPLEMENTAL]

    def get_supplemental_total(self) -> float:
        return sum(e.amount for e in self.get_supplemental_expenses())

    def total_cost(self) -> float:
        return self.get_base_total() + self.get_supplemental_total()


def court_expense(price_per_hour: float, start_time: str, end_time: str, name: str = "Court") -> Expense:
    """Court rent for the booked time range (price per hour x hours)"""
    hours = session_duration_hours(start_time, end_time)
    if hours <= 0:
        raise ValidationError(
            "End time must be after start time", {"start_time": start_time, "end_time": end_time}
        )
    return Expense(
        id=COURT_EXPENSE_ID,
        name=name,
        amount=float(price_per_hour) * hours,
        category=ExpenseCategory.BASE_COURT,
        description=f"{hours:g} h x {price_per_hour:g}",
    )


def shuttlecock_expense(count: int, unit_price: float, name: str = "Shuttlecocks") -> Expense:
    if count < 0:
        raise ValidationError("Shuttlecock count must be >= 0", {"count": count})
    return Expense(
        id=SHUTTLECOCK_EXPENSE_ID,
        name=name,
        amount=count * float(unit_price),
        category=ExpenseCategory.BASE_SHUTTLECOCK,
        description=f"{count} x {unit_price:g}",
    )


def slot_price(price_per_hour: float, start_time: str, end_time: str, max_slots: int) -> float:
    """Court cost of one roster slot; charged to whoever takes over a passed slot"""
    hours = session_duration_hours(start_time, end_time)
    return float(price_per_hour) * max(0.0, hours) / max(1, max_slots)
