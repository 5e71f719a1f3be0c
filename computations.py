"""
Settlement computations for SessionSplit
"""
from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from ledger import ExpenseLedger
from models import (
    Expense,
    ExpenseCategory,
    Member,
    ParticipantEntry,
    Session,
    SettlementRecord,
    SupplementalShare,
    WaitingEntry,
)
from utils import dedupe

UNKNOWN_NAME = "Unknown"
DEFAULT_TOLERANCE = 1.0  # currency units


@dataclass(frozen=True)
class SettlementAnomaly:
    """Settlement totals do not add up to the ledger; advisory only"""
    expected: float
    actual: float

    @property
    def difference(self) -> float:
        return self.actual - self.expected


def _lookup_name(directory: Optional[Mapping[str, Member]], member_id: str) -> Optional[str]:
    if not directory:
        return None
    member = directory.get(member_id)
    return member.display_name if member else None


def compute_settlements(
    participants: Sequence[ParticipantEntry],
    supplemental_expenses: Iterable[Expense],
    base_total: float,
    directory: Optional[Mapping[str, Member]] = None,
    waiting_queue: Sequence[WaitingEntry] = (),
) -> List[SettlementRecord]:
    """
    Turn attendance plus expenses into one record per member.

    Base costs are split evenly over present participants. Each supplemental
    expense is split over its participant subset (deduplicated), or over
    everyone present when the subset is empty. Subset members need not be on
    the roster; they get a record of their own after the roster members, in
    first-seen order. Pure: identical inputs give identical output.
    """
    present_ids = [p.member_id for p in participants if p.is_present]
    base_share = float(base_total) / max(1, len(present_ids))

    buckets: Dict[str, List[SupplementalShare]] = {p.member_id: [] for p in participants}
    extra_ids: List[str] = []
    for e in supplemental_expenses:
        if e.category is not ExpenseCategory.SUPPLEMENTAL:
            continue
        targets = dedupe(e.participant_subset) if e.participant_subset else present_ids
        per_head = e.amount / max(1, len(targets))
        for member_id in targets:
            if member_id not in buckets:
                buckets[member_id] = []
                extra_ids.append(member_id)
            buckets[member_id].append(SupplementalShare(e.name, per_head, len(targets)))

    records = []
    for p in participants:
        base = base_share if p.is_present else 0.0
        shares = tuple(buckets[p.member_id])
        records.append(SettlementRecord(
            member_id=p.member_id,
            display_name=p.display_name or _lookup_name(directory, p.member_id) or UNKNOWN_NAME,
            base_share=base,
            supplemental=shares,
            total=base + sum(s.amount for s in shares),
            replacement_note=p.replacement_note,
            is_present=p.is_present,
        ))

    waiting_names = {w.member_id: w.display_name for w in waiting_queue}
    for member_id in extra_ids:
        shares = tuple(buckets[member_id])
        records.append(SettlementRecord(
            member_id=member_id,
            display_name=(waiting_names.get(member_id)
                          or _lookup_name(directory, member_id)
                          or UNKNOWN_NAME),
            base_share=0.0,
            supplemental=shares,
            total=sum(s.amount for s in shares),
        ))
    return records


def compute_session_settlements(
    session: Session,
    directory: Optional[Mapping[str, Member]] = None,
) -> List[SettlementRecord]:
    """compute_settlements over a session snapshot"""
    base_total = ExpenseLedger(session.expenses).get_base_total()
    return compute_settlements(
        session.participants,
        session.expenses,
        base_total,
        directory,
        session.waiting_queue,
    )


def merge_settlements(
    new_records: Iterable[SettlementRecord],
    previous_records: Iterable[SettlementRecord],
) -> List[SettlementRecord]:
    """
    Carry manual payment flags over to freshly computed records.
    Members missing from the new computation are dropped with their history.
    """
    previous = {r.member_id: r for r in previous_records}
    merged = []
    for r in new_records:
        old = previous.get(r.member_id)
        if old is not None:
            merged.append(replace(r, is_paid=old.is_paid, payment_note=old.payment_note))
        else:
            merged.append(replace(r, is_paid=False, payment_note=None))
    return merged


def check_conservation(
    records: Iterable[SettlementRecord],
    base_total: float,
    supplemental_total: float,
    tolerance: float = DEFAULT_TOLERANCE,
) -> Optional[SettlementAnomaly]:
    """
    Compare what the records charge with what the ledger spent.
    Returns None when they agree within tolerance. A mismatch is legitimate
    when nobody is present to carry base costs or an open supplemental
    expense, so it is reported, never raised.
    """
    expected = float(base_total) + float(supplemental_total)
    actual = sum(r.total for r in records)
    if abs(actual - expected) > tolerance:
        return SettlementAnomaly(expected=expected, actual=actual)
    return None


def payment_stats(
    records: Sequence[SettlementRecord],
    price_slot: float = 0.0,
    present_only: bool = False,
) -> dict:
    """
    Collection progress for a session.
    Returns {total_amount, paid_amount, unpaid_amount, payment_progress, paid_count, pass_slot_total}

    present_only limits the totals to members marked present, so charges
    to absent members tagged on a supplemental expense are left out.
    """
    if present_only:
        records = [r for r in records if r.is_present]
    total_amount = sum(r.total for r in records)
    paid_amount = sum(r.total for r in records if r.is_paid)
    taken_slots = sum(1 for r in records if r.replacement_note and r.replacement_note.strip())
    return {
        "total_amount": total_amount,
        "paid_amount": paid_amount,
        "unpaid_amount": total_amount - paid_amount,
        "payment_progress": (paid_amount / total_amount) * 100 if total_amount > 0 else 0.0,
        "paid_count": sum(1 for r in records if r.is_paid),
        "pass_slot_total": taken_slots * float(price_slot),
    }
