"""
Error types for SessionSplit

All errors inherit from SessionSplitError so a front end can catch them in one place.
"""
from __future__ import annotations
from typing import Optional


class SessionSplitError(Exception):
    """Base error carrying a message and optional structured details"""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ValidationError(SessionSplitError):
    """Rejected input: negative amount, malformed subset, mismatched queue order"""
    pass


class CapacityError(SessionSplitError):
    """Roster has no room for the requested change"""
    pass
