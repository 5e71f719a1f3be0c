"""
Utility functions for SessionSplit
"""
from __future__ import annotations
import os
import uuid
from datetime import datetime
from typing import Iterable, List


def new_id() -> str:
    """Random hex id for expenses and custom members"""
    return uuid.uuid4().hex


def parse_time(s: str) -> datetime:
    """Parse HH:MM time string (date part is irrelevant)"""
    return datetime.strptime(s.strip(), "%H:%M")


def session_duration_hours(start_time: str, end_time: str) -> float:
    """Hours between two HH:MM times on the same day"""
    delta = parse_time(end_time) - parse_time(start_time)
    return delta.total_seconds() / 3600.0


def dedupe(ids: Iterable[str]) -> List[str]:
    """Drop repeated ids, keeping first-seen order"""
    seen = set()
    out = []
    for i in ids:
        if i in seen:
            continue
        seen.add(i)
        out.append(i)
    return out


def app_dir() -> str:
    """
    Get application data directory: $SESSIONSPLIT_HOME or ~/.sessionsplit
    Creates directory if it doesn't exist.
    """
    path = os.environ.get("SESSIONSPLIT_HOME") or os.path.join(
        os.path.expanduser("~"), ".sessionsplit"
    )
    os.makedirs(path, exist_ok=True)
    return path
