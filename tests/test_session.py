"""
tests/test_session.py

Session commands: mutation, recompute, reconcile, persist payload.
"""
import logging
from dataclasses import replace

import pytest

import roster
import session as commands
from config import AppSettings
from conftest import make_session
from errors import ValidationError
from models import Expense, ExpenseCategory, Member, SessionStatus, WaitingEntry


class RecordingStore:
    def __init__(self):
        self.calls = []

    def replace_session_fields(self, session_id, fields):
        self.calls.append((session_id, fields))


def totals(session):
    return {r.member_id: r.total for r in session.settlements}


class TestRefreshSettlements:

    def test_computes_and_stores_records(self, full_session):
        result = commands.refresh_settlements(full_session)
        assert result.anomaly is None
        assert totals(result.session) == {"A": 120000, "B": 120000, "C": 100000, "D": 100000}
        assert full_session.settlements == ()

    def test_paid_flag_survives_attendance_change(self, full_session):
        s = commands.refresh_settlements(full_session).session
        s = commands.mark_paid(s, "A", True)
        s = commands.set_payment_note(s, "A", "cash")

        s = commands.record_attendance(s, "D", False).session
        a = next(r for r in s.settlements if r.member_id == "A")
        assert a.is_paid is True
        assert a.payment_note == "cash"
        assert a.total == pytest.approx(400000 / 3 + 20000)
        assert not any(r.is_paid for r in s.settlements if r.member_id != "A")

    def test_anomaly_logged_not_raised(self, base_expenses, caplog):
        s = make_session(present=False, expenses=base_expenses)
        with caplog.at_level(logging.WARNING, logger="session"):
            result = commands.refresh_settlements(s)
        assert result.anomaly is not None
        assert result.session.settlements
        assert "settlements total" in caplog.text

    def test_tolerance_from_settings(self, base_expenses):
        settings = AppSettings(mismatch_tolerance=500000)
        s = make_session(present=False, expenses=base_expenses)
        assert commands.refresh_settlements(s, tolerance=settings.mismatch_tolerance).anomaly is None


class TestCommands:

    def test_pass_hands_slot_and_recomputes(self, full_session):
        s = roster.add_participant(full_session, Member("E", "Em"))
        s = commands.refresh_settlements(s).session
        s = commands.mark_paid(s, "B", True)

        s = commands.pass_participant(s, "B").session
        assert s.roster_ids() == ("A", "E", "C", "D")
        # B is still tagged on the water expense, so keeps a record and the paid flag
        b = next(r for r in s.settlements if r.member_id == "B")
        assert b.is_paid is True
        assert b.total == 20000
        e = next(r for r in s.settlements if r.member_id == "E")
        assert e.replacement_note == "slot of B"
        assert e.total == 0

    def test_promote_waiting(self, base_expenses):
        s = replace(make_session(capacity=5, expenses=base_expenses),
                    waiting_queue=(WaitingEntry("E", "Em"),))
        result = commands.promote_waiting(s, "E")
        assert result.session.roster_ids() == ("A", "B", "C", "D", "E")
        e = next(r for r in result.session.settlements if r.member_id == "E")
        assert e.total == 0
        assert e.display_name == "Em"

    def test_replace_expenses_validates(self, full_session):
        with pytest.raises(ValidationError):
            commands.replace_expenses(
                full_session, [Expense("a", "Court", 1, "court"), Expense("a", "Dup", 1)]
            )

    def test_replace_expenses_recomputes(self, full_session):
        result = commands.replace_expenses(
            full_session,
            [Expense("court-cost", "Court", 200000, ExpenseCategory.BASE_COURT)],
        )
        assert set(totals(result.session).values()) == {50000}
        assert result.session.total_cost == 200000

    def test_complete_session(self, full_session):
        result = commands.complete_session(full_session)
        assert result.session.status is SessionStatus.COMPLETED
        assert len(result.session.settlements) == 4

    def test_mark_paid_unknown_member(self, full_session):
        s = commands.refresh_settlements(full_session).session
        assert commands.mark_paid(s, "Z", True).settlements == s.settlements


class TestPersistence:

    def test_persisted_fields(self, full_session):
        s = roster.add_participant(full_session, Member("E", "E"))
        s = roster.toggle_pass_request(s, "C")
        s = commands.refresh_settlements(s).session
        fields = commands.persisted_fields(s)
        assert set(fields) == set(commands.PERSISTED_KEYS)
        assert fields["current_participants"] == 4
        assert fields["pass_request_ids"] == ["C"]
        assert fields["waiting_queue"][0]["member_id"] == "E"
        assert fields["total_cost"] == 440000
        assert fields["status"] == "scheduled"

    def test_save_is_one_call(self, full_session):
        store = RecordingStore()
        commands.save(full_session, store)
        assert len(store.calls) == 1
        assert store.calls[0][0] == "s1"
