"""
Session commands: roster/expense changes followed by a settlement refresh.

Each command returns a SettlementResult carrying the new snapshot and, when
the settlement totals drift from the ledger, an advisory anomaly. Persisting
is the caller's job: hand persisted_fields(result.session) to the store.
"""
from __future__ import annotations
import logging
from dataclasses import replace
from typing import Iterable, Mapping, NamedTuple, Optional, Protocol

import roster
from config import session_to_dict
from computations import (
    DEFAULT_TOLERANCE,
    SettlementAnomaly,
    check_conservation,
    compute_session_settlements,
    merge_settlements,
)
from ledger import ExpenseLedger
from models import Expense, Member, Session, SessionStatus

logger = logging.getLogger(__name__)

Directory = Optional[Mapping[str, Member]]

PERSISTED_KEYS = (
    "participants",
    "waiting_queue",
    "pass_request_ids",
    "current_participants",
    "expenses",
    "total_cost",
    "settlements",
    "status",
)


class SettlementResult(NamedTuple):
    session: Session
    anomaly: Optional[SettlementAnomaly] = None


class SessionStore(Protocol):
    """Document store collaborator; one call replaces the given fields atomically"""

    def replace_session_fields(self, session_id: str, fields: dict) -> None:
        ...


def refresh_settlements(
    session: Session,
    directory: Directory = None,
    tolerance: float = DEFAULT_TOLERANCE,
) -> SettlementResult:
    """Recompute settlements and keep payment flags from the stored ones"""
    ledger = ExpenseLedger(session.expenses)
    fresh = compute_session_settlements(session, directory)
    merged = merge_settlements(fresh, session.settlements)
    anomaly = check_conservation(
        merged, ledger.get_base_total(), ledger.get_supplemental_total(), tolerance
    )
    if anomaly is not None:
        logger.warning(
            "Session %s settlements total %.2f, expenses total %.2f (diff %.2f)",
            session.id, anomaly.actual, anomaly.expected, anomaly.difference,
        )
    return SettlementResult(replace(session, settlements=tuple(merged)), anomaly)


def record_attendance(
    session: Session, member_id: str, is_present: bool, directory: Directory = None
) -> SettlementResult:
    return refresh_settlements(roster.set_presence(session, member_id, is_present), directory)


def pass_participant(session: Session, member_id: str, directory: Directory = None) -> SettlementResult:
    return refresh_settlements(roster.remove_participant(session, member_id), directory)


def promote_waiting(session: Session, member_id: str, directory: Directory = None) -> SettlementResult:
    return refresh_settlements(roster.promote(session, member_id), directory)


def replace_expenses(
    session: Session, expenses: Iterable[Expense], directory: Directory = None
) -> SettlementResult:
    """Swap in an edited expense list (validated through ExpenseLedger)"""
    ledger = ExpenseLedger.of(expenses)
    return refresh_settlements(replace(session, expenses=ledger.expenses), directory)


def complete_session(session: Session, directory: Directory = None) -> SettlementResult:
    result = refresh_settlements(replace(session, status=SessionStatus.COMPLETED), directory)
    logger.info("Session %s completed with %d settlement records",
                session.id, len(result.session.settlements))
    return result


def mark_paid(session: Session, member_id: str, is_paid: bool) -> Session:
    settlements = tuple(
        replace(s, is_paid=bool(is_paid)) if s.member_id == member_id else s
        for s in session.settlements
    )
    return replace(session, settlements=settlements)


def set_payment_note(session: Session, member_id: str, note: Optional[str]) -> Session:
    settlements = tuple(
        replace(s, payment_note=note or None) if s.member_id == member_id else s
        for s in session.settlements
    )
    return replace(session, settlements=settlements)


def persisted_fields(session: Session) -> dict:
    """Payload for a single replace-fields call on the store"""
    d = session_to_dict(session)
    return {key: d[key] for key in PERSISTED_KEYS}


def save(session: Session, store: SessionStore) -> None:
    store.replace_session_fields(session.id, persisted_fields(session))
