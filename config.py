"""
Configuration and data loading/saving for SessionSplit
"""
from __future__ import annotations
import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from typing import Optional

from errors import ValidationError
from models import (
    Expense,
    ParticipantEntry,
    Session,
    SessionStatus,
    SettlementRecord,
    SupplementalShare,
    WaitingEntry,
)
from utils import app_dir, new_id

logger = logging.getLogger(__name__)

SETTINGS_FILE = "settings.json"


@dataclass
class AppSettings:
    """Organizer defaults; stored as settings.json in the app directory"""
    default_capacity: int = 8
    default_shuttlecock_price: float = 25000.0
    default_price_slot: float = 32500.0
    mismatch_tolerance: float = 1.0
    currency: str = "VND"


def load_settings(path: Optional[str] = None) -> AppSettings:
    """Load settings from JSON file, falling back to defaults for anything missing"""
    path = path or os.path.join(app_dir(), SETTINGS_FILE)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return AppSettings()
    known = {f.name for f in fields(AppSettings)}
    unknown = sorted(set(data) - known)
    if unknown:
        logger.warning("Ignoring unknown settings in %s: %s", path, ", ".join(unknown))
    return AppSettings(**{k: v for k, v in data.items() if k in known})


def save_settings(settings: AppSettings, path: Optional[str] = None) -> None:
    path = path or os.path.join(app_dir(), SETTINGS_FILE)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(asdict(settings), f, ensure_ascii=False, indent=2)


def get_default_session(name: str, settings: Optional[AppSettings] = None) -> Session:
    """Create an empty session using the organizer's defaults"""
    settings = settings or load_settings()
    return Session(
        id=new_id(),
        name=name,
        capacity=settings.default_capacity,
        price_slot=settings.default_price_slot,
    )


def expense_to_dict(e: Expense) -> dict:
    return {
        "id": e.id,
        "name": e.name,
        "amount": e.amount,
        "category": e.category.value,
        "participant_subset": list(e.participant_subset),
        "description": e.description,
    }


def dict_to_expense(d: dict) -> Expense:
    return Expense(
        id=d["id"],
        name=d.get("name", ""),
        amount=d.get("amount", 0.0),
        category=d.get("category", "other"),
        participant_subset=d.get("participant_subset") or (),
        description=d.get("description", ""),
    )


def settlement_to_dict(s: SettlementRecord) -> dict:
    d = asdict(s)
    d["supplemental"] = [asdict(x) for x in s.supplemental]
    return d


def dict_to_settlement(d: dict) -> SettlementRecord:
    return SettlementRecord(
        member_id=d["member_id"],
        display_name=d.get("display_name", ""),
        base_share=float(d.get("base_share", 0.0)),
        supplemental=tuple(SupplementalShare(**x) for x in d.get("supplemental", [])),
        total=float(d.get("total", 0.0)),
        is_paid=bool(d.get("is_paid", False)),
        payment_note=d.get("payment_note"),
        replacement_note=d.get("replacement_note"),
        is_present=bool(d.get("is_present", False)),
    )


def session_to_dict(session: Session) -> dict:
    """Convert Session to dictionary for JSON serialization"""
    return {
        "id": session.id,
        "name": session.name,
        "capacity": session.capacity,
        "status": session.status.value,
        "participants": [asdict(p) for p in session.participants],
        "waiting_queue": [asdict(w) for w in session.waiting_queue],
        "pass_request_ids": list(session.pass_request_ids),
        "current_participants": session.current_participants,
        "expenses": [expense_to_dict(e) for e in session.expenses],
        "total_cost": session.total_cost,
        "settlements": [settlement_to_dict(s) for s in session.settlements],
        "price_slot": session.price_slot,
        "notes": session.notes,
    }


def dict_to_session(d: dict) -> Session:
    """
    Convert dictionary from JSON to Session.
    Derived fields (current_participants, total_cost) are ignored on input.
    Raises ValidationError for malformed data or broken roster invariants.
    """
    try:
        session = Session(
            id=d["id"],
            name=d.get("name", ""),
            capacity=int(d["capacity"]),
            status=SessionStatus(d.get("status", "scheduled")),
            participants=tuple(ParticipantEntry(**p) for p in d.get("participants", [])),
            waiting_queue=tuple(WaitingEntry(**w) for w in d.get("waiting_queue", [])),
            pass_request_ids=tuple(d.get("pass_request_ids", [])),
            expenses=tuple(dict_to_expense(e) for e in d.get("expenses", [])),
            settlements=tuple(dict_to_settlement(s) for s in d.get("settlements", [])),
            price_slot=float(d.get("price_slot", 0.0)),
            notes=d.get("notes", ""),
        )
    except (KeyError, TypeError, ValueError) as ex:
        raise ValidationError("Malformed session data", {"error": repr(ex)}) from ex

    if len(session.participants) > session.capacity:
        raise ValidationError(
            "Roster exceeds capacity",
            {"capacity": session.capacity, "participants": len(session.participants)},
        )
    for label, ids in (("roster", session.roster_ids()), ("waiting queue", session.waiting_ids())):
        repeated = sorted({i for i in ids if ids.count(i) > 1})
        if repeated:
            raise ValidationError(f"Duplicate members on {label}", {"member_ids": repeated})
    overlap = sorted(set(session.roster_ids()) & set(session.waiting_ids()))
    if overlap:
        raise ValidationError("Members both on roster and waiting", {"member_ids": overlap})
    return session


def load_session(path: str) -> Session:
    with open(path, "r", encoding="utf-8") as f:
        d = json.load(f)
    return dict_to_session(d)


def save_session(session: Session, path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(session_to_dict(session), f, ensure_ascii=False, indent=2)
    logger.debug("Saved session %s to %s", session.id, path)
