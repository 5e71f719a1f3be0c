"""
Roster and waiting-queue management for a session.

Every function takes a Session snapshot and returns a new one. The roster
never holds more than `capacity` entries, and a member id is never on the
roster and in the waiting queue at the same time.

Membership lifecycle:
    untracked -> waiting -> on roster (absent) <-> on roster (present) -> passed (untracked)

A pass request is only a declared intent; the slot is vacated by
remove_participant, which hands it to the head of the waiting queue.
"""
from __future__ import annotations
import logging
from dataclasses import replace
from typing import Iterable, List, Sequence, Tuple, Union

from errors import CapacityError, ValidationError
from models import Member, ParticipantEntry, Session, WaitingEntry

logger = logging.getLogger(__name__)

Candidate = Union[Member, ParticipantEntry, WaitingEntry]


def _renumber(queue: Iterable[WaitingEntry]) -> Tuple[WaitingEntry, ...]:
    """Priorities always mirror queue position (1-based)"""
    return tuple(
        w if w.priority == i + 1 else replace(w, priority=i + 1)
        for i, w in enumerate(queue)
    )


def _candidate_fields(candidate: Candidate) -> Tuple[str, str, bool]:
    if isinstance(candidate, Member):
        return candidate.id, candidate.display_name, False
    return candidate.member_id, candidate.display_name, candidate.is_custom


def add_participant(session: Session, candidate: Candidate) -> Session:
    """
    Put a member on the roster if there is room, otherwise at the tail of the
    waiting queue. A member who is already tracked is left where they are.
    """
    if session.capacity <= 0:
        raise CapacityError("Session capacity must be positive", {"capacity": session.capacity})

    member_id, name, is_custom = _candidate_fields(candidate)
    if session.is_tracked(member_id):
        logger.debug("Member %s already tracked in session %s", member_id, session.id)
        return session

    if len(session.participants) < session.capacity:
        entry = ParticipantEntry(member_id=member_id, display_name=name, is_custom=is_custom)
        return replace(session, participants=session.participants + (entry,))

    waiting = WaitingEntry(
        member_id=member_id,
        display_name=name,
        is_custom=is_custom,
        priority=len(session.waiting_queue) + 1,
    )
    logger.info("Roster full (%d/%d), %s queued at %d",
                len(session.participants), session.capacity, member_id, waiting.priority)
    return replace(session, waiting_queue=session.waiting_queue + (waiting,))


def remove_participant(session: Session, member_id: str) -> Session:
    """
    Pass: vacate a roster slot. The head of the waiting queue takes the same
    position with a replacement note naming the departed member. Unknown ids
    leave the session unchanged.
    """
    index = next((i for i, p in enumerate(session.participants) if p.member_id == member_id), None)
    if index is None:
        return session

    departed = session.participants[index]
    participants: List[ParticipantEntry] = list(session.participants)
    pass_ids = tuple(i for i in session.pass_request_ids if i != member_id)
    queue = session.waiting_queue

    if queue:
        head, queue = queue[0], _renumber(queue[1:])
        participants[index] = ParticipantEntry(
            member_id=head.member_id,
            display_name=head.display_name,
            is_present=False,
            is_custom=head.is_custom,
            replacement_note=f"slot of {departed.display_name or 'Unknown'}",
        )
        logger.info("Passed %s -> %s in session %s", member_id, head.member_id, session.id)
    else:
        del participants[index]
        logger.info("Passed %s in session %s, no one waiting", member_id, session.id)

    return replace(
        session,
        participants=tuple(participants),
        waiting_queue=queue,
        pass_request_ids=pass_ids,
    )


def toggle_pass_request(session: Session, member_id: str) -> Session:
    if member_id in session.pass_request_ids:
        ids = tuple(i for i in session.pass_request_ids if i != member_id)
        return replace(session, pass_request_ids=ids)
    if member_id not in session.roster_ids():
        logger.debug("Ignoring pass request for %s: not on roster", member_id)
        return session
    return replace(session, pass_request_ids=session.pass_request_ids + (member_id,))


def pass_requesters(session: Session) -> List[ParticipantEntry]:
    """Roster entries that declared they want to give up their slot"""
    pending = set(session.pass_request_ids)
    return [p for p in session.participants if p.member_id in pending]


def reorder_waiting_queue(session: Session, new_order: Sequence[str]) -> Session:
    current = {w.member_id: w for w in session.waiting_queue}
    requested = list(new_order)
    missing = sorted(set(current) - set(requested))
    extra = sorted(set(requested) - set(current))
    if missing or extra or len(requested) != len(current):
        raise ValidationError(
            "New order does not match the waiting queue",
            {"missing": missing, "extra": extra},
        )
    return replace(session, waiting_queue=_renumber(current[i] for i in requested))


def promote(session: Session, member_id: str) -> Session:
    """Move a waiting member straight onto the roster, ahead of FIFO order"""
    entry = next((w for w in session.waiting_queue if w.member_id == member_id), None)
    if entry is None:
        return session
    if len(session.participants) >= session.capacity:
        raise CapacityError(
            "Roster is full",
            {"capacity": session.capacity, "member_id": member_id},
        )
    participant = ParticipantEntry(
        member_id=entry.member_id,
        display_name=entry.display_name,
        is_custom=entry.is_custom,
    )
    return replace(
        session,
        participants=session.participants + (participant,),
        waiting_queue=_renumber(w for w in session.waiting_queue if w.member_id != member_id),
    )


def remove_from_waiting_queue(session: Session, member_id: str) -> Session:
    if member_id not in session.waiting_ids():
        return session
    return replace(
        session,
        waiting_queue=_renumber(w for w in session.waiting_queue if w.member_id != member_id),
    )


def set_presence(session: Session, member_id: str, is_present: bool) -> Session:
    if member_id not in session.roster_ids():
        return session
    participants = tuple(
        replace(p, is_present=bool(is_present)) if p.member_id == member_id else p
        for p in session.participants
    )
    return replace(session, participants=participants)


def set_capacity(session: Session, capacity: int) -> Session:
    """Change the roster size; growing it pulls waiting members in FIFO order"""
    if capacity <= 0:
        raise CapacityError("Session capacity must be positive", {"capacity": capacity})
    if capacity < len(session.participants):
        raise CapacityError(
            "Capacity below current roster size",
            {"capacity": capacity, "current_participants": len(session.participants)},
        )
    session = replace(session, capacity=capacity)
    while session.waiting_queue and len(session.participants) < capacity:
        session = promote(session, session.waiting_queue[0].member_id)
    return session
