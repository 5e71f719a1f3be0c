"""
Data models for SessionSplit
"""
from __future__ import annotations
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from errors import ValidationError


@dataclass(frozen=True)
class Member:
    """Directory entry; owned by the member directory, not by a session"""
    id: str
    display_name: str


@dataclass(frozen=True)
class ParticipantEntry:
    """One roster slot"""
    member_id: str
    display_name: str = ""
    is_present: bool = False
    is_custom: bool = False  # typed-in name, not from the directory
    replacement_note: Optional[str] = None  # e.g. "slot of Minh"


@dataclass(frozen=True)
class WaitingEntry:
    """Overflow queue entry; priority is 1-based position"""
    member_id: str
    display_name: str = ""
    is_custom: bool = False
    priority: int = 1


class ExpenseCategory(Enum):
    BASE_COURT = "court"
    BASE_SHUTTLECOCK = "shuttlecock"
    SUPPLEMENTAL = "other"

    @property
    def is_base(self) -> bool:
        return self is not ExpenseCategory.SUPPLEMENTAL


@dataclass(frozen=True)
class Expense:
    """
    Single session expense.

    Base expenses (court, shuttlecock) are split among everyone present.
    Supplemental expenses go to participant_subset, or to everyone present
    when the subset is empty.
    """
    id: str
    name: str
    amount: float
    category: ExpenseCategory = ExpenseCategory.SUPPLEMENTAL
    participant_subset: Tuple[str, ...] = ()
    description: str = ""

    def __post_init__(self):
        if not isinstance(self.category, ExpenseCategory):
            try:
                object.__setattr__(self, "category", ExpenseCategory(self.category))
            except ValueError:
                raise ValidationError(
                    "Unknown expense category",
                    {"expense_id": self.id, "category": self.category},
                ) from None
        try:
            amount = float(self.amount)
        except (TypeError, ValueError):
            raise ValidationError(
                "Expense amount must be numeric", {"expense_id": self.id, "amount": self.amount}
            ) from None
        if not math.isfinite(amount) or amount < 0:
            raise ValidationError(
                "Expense amount must be a finite number >= 0", {"expense_id": self.id, "amount": self.amount}
            )
        object.__setattr__(self, "amount", amount)

        raw = self.participant_subset or ()
        if isinstance(raw, (str, bytes)):
            raise ValidationError(
                "Participant subset must be a list of member ids",
                {"expense_id": self.id, "participant_subset": raw},
            )
        try:
            subset = tuple(raw)
        except TypeError:
            raise ValidationError(
                "Participant subset must be a list of member ids",
                {"expense_id": self.id, "participant_subset": raw},
            ) from None
        if subset and self.category.is_base:
            raise ValidationError(
                "Participant subset is only allowed on supplemental expenses",
                {"expense_id": self.id, "category": self.category.value},
            )
        for member_id in subset:
            if not isinstance(member_id, str) or not member_id.strip():
                raise ValidationError(
                    "Participant subset contains a blank member id", {"expense_id": self.id}
                )
        object.__setattr__(self, "participant_subset", subset)


@dataclass(frozen=True)
class SupplementalShare:
    expense_name: str
    amount: float
    shared_with_count: int


@dataclass(frozen=True)
class SettlementRecord:
    """Per-person obligation for one session"""
    member_id: str
    display_name: str
    base_share: float
    supplemental: Tuple[SupplementalShare, ...]
    total: float
    is_paid: bool = False
    payment_note: Optional[str] = None
    replacement_note: Optional[str] = None
    is_present: bool = False


class SessionStatus(Enum):
    SCHEDULED = "scheduled"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Session:
    """
    Session aggregate snapshot.

    Every command returns a new Session; an existing snapshot never changes.
    """
    id: str
    name: str
    capacity: int
    status: SessionStatus = SessionStatus.SCHEDULED
    participants: Tuple[ParticipantEntry, ...] = ()
    waiting_queue: Tuple[WaitingEntry, ...] = ()
    pass_request_ids: Tuple[str, ...] = ()
    expenses: Tuple[Expense, ...] = ()
    settlements: Tuple[SettlementRecord, ...] = ()
    price_slot: float = 0.0
    notes: str = field(default="", compare=False)

    @property
    def current_participants(self) -> int:
        return len(self.participants)

    @property
    def present_count(self) -> int:
        return sum(1 for p in self.participants if p.is_present)

    @property
    def total_cost(self) -> float:
        return sum(e.amount for e in self.expenses)

    def roster_ids(self) -> Tuple[str, ...]:
        return tuple(p.member_id for p in self.participants)

    def waiting_ids(self) -> Tuple[str, ...]:
        return tuple(w.member_id for w in self.waiting_queue)

    def is_tracked(self, member_id: str) -> bool:
        return member_id in self.roster_ids() or member_id in self.waiting_ids()
