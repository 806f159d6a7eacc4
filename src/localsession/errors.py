"""Errors raised by the local session store."""
from __future__ import annotations


class SessionStoreError(Exception):
    """Base class for session store errors.

    ``kind`` is a stable identifier callers can switch on instead of
    matching message text.
    """

    kind: str = "session_store_error"


class InvalidOptionsError(SessionStoreError, TypeError):
    """Store options failed validation; no store was constructed."""

    kind = "invalid_options"

    def __init__(self, option: str | None, message: str):
        super().__init__(message)
        self.option = option


class UnresolvableSessionError(SessionStoreError):
    """``set`` was called without any of changed/rolling/renew/force."""

    kind = "unresolvable_session"

    def __init__(self, key: str, message: str = "Cannot resolve session"):
        super().__init__(message)
        self.key = key
