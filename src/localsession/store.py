"""In-memory session store with lazy, probability-gated garbage collection.

Records live in a dict owned by the store instance. ``get`` treats a record
as live until the ``_expire`` timestamp the session middleware wrote into its
payload. Reclamation happens on the read path: every ``get`` may trigger a
sweep (with chance ``probability``) that drops records more than
``maxlifetime`` ms past their ``_expire``. Records flagged ``_session`` are
only ever removed by ``destroy``.

Payload layout written by the middleware::

    {
        ...,
        "_expire": 1700000000000,  # ms since epoch
        "_maxAge": 86400000,
        "_session": True,          # optional, browser-session cookie
    }
"""
from __future__ import annotations

import logging
import random
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from localsession.errors import UnresolvableSessionError
from localsession.options import read_flag, verify_options

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class SessionRecord:
    """One stored session."""
    key: str
    payload: dict[str, Any]
    ttl: int | None
    created_at: int


def _is_session_length(payload: Any) -> bool:
    return isinstance(payload, Mapping) and payload.get("_session") is True


def _expire_of(payload: Any) -> float | None:
    """Return the payload's ``_expire`` timestamp, or None if it has none."""
    if not isinstance(payload, Mapping):
        return None
    expire = payload.get("_expire")
    if isinstance(expire, bool) or not isinstance(expire, (int, float)):
        return None
    return expire


class LocalSessionStore:
    """Process-local session store for a session middleware.

    Suitable for single-process deployments, development and tests. Sessions
    are lost when the process exits.

    Args:
        options: Mapping with ``gc`` (bool), ``probability`` (float in (0, 1]),
            ``maxlifetime`` (grace period in ms) and ``debug`` (callable taking
            one str). Validated before anything else happens.
        clock: Returns the current time in ms since epoch.
        rng: Returns a uniform sample in [0, 1); gates each sweep.

    Raises:
        InvalidOptionsError: If ``options`` is malformed.
    """

    def __init__(
        self,
        options: Mapping[str, Any] | None = None,
        *,
        clock: Callable[[], float] | None = None,
        rng: Callable[[], float] | None = None,
    ):
        resolved = verify_options(options)
        self.gc = resolved.gc
        self.probability = resolved.probability
        self.maxlifetime = resolved.maxlifetime
        self.debug = resolved.debug
        self.gc_running = False
        self.sessions: dict[str, SessionRecord] = {}
        self._clock = clock or _now_ms
        self._rng = rng or random.random
        self._lock = threading.RLock()

    def get(self, key: str, ttl: int | None = None, options: Any = None) -> dict[str, Any] | None:
        """Return the session payload for ``key``, or None if missing or expired."""
        with self._lock:
            self._perform_gc()
            record = self.sessions.get(key)
            if record is None:
                return None

            # Browser-session records never expire by time; skip the clock
            if _is_session_length(record.payload):
                return record.payload

            expire = _expire_of(record.payload)
            if expire is not None and expire > self._clock():
                return record.payload
            return None

    def set(
        self,
        key: str,
        payload: dict[str, Any],
        ttl: int | None = None,
        options: Any = None,
    ) -> None:
        """Store ``payload`` under ``key`` according to the middleware's intent.

        ``changed``/``rolling`` update the existing record in place (or create
        one). ``renew``/``force`` destroy any existing record and create a new
        one. Flags are checked in that order and each is read at most once.

        Raises:
            UnresolvableSessionError: If none of the four flags is set.
        """
        with self._lock:
            if read_flag(options, "changed") or read_flag(options, "rolling"):
                record = self.sessions.get(key)
                if record is None:
                    self.sessions[key] = self.new_session_entry(key, payload, ttl)
                    return
                record.ttl = ttl
                record.payload = payload
                return

            if read_flag(options, "renew") or read_flag(options, "force"):
                self.destroy(key)
                self.sessions[key] = self.new_session_entry(key, payload, ttl)
                return

        raise UnresolvableSessionError(key)

    def destroy(self, key: str) -> None:
        """Remove the session for ``key``. Missing keys are ignored."""
        with self._lock:
            self.sessions.pop(key, None)

    def new_session_entry(self, key: str, payload: dict[str, Any], ttl: int | None) -> SessionRecord:
        return SessionRecord(key=key, payload=payload, ttl=ttl, created_at=self._clock())

    @property
    def size(self) -> int:
        """Number of resident records, including expired ones not yet swept."""
        return len(self.sessions)

    def __len__(self) -> int:
        return len(self.sessions)

    def __contains__(self, key: object) -> bool:
        return key in self.sessions

    def _debug(self, message: str) -> None:
        logger.debug(message)
        if self.debug is None:
            return
        try:
            self.debug(message)
        except Exception:
            logger.warning("Session store debug sink raised", exc_info=True)

    def _is_reclaimable(self, record: SessionRecord, now: float) -> bool:
        if _is_session_length(record.payload):
            return False
        expire = _expire_of(record.payload)
        if expire is None:
            return True
        return now > expire + self.maxlifetime

    def _perform_gc(self) -> None:
        """Sweep expired records, if GC is enabled and the sample allows it.

        Never raises. A sweep triggered while another is running is skipped.
        """
        if not self.gc or self.gc_running or not self.sessions:
            return

        try:
            sample = self._rng()
        except Exception:
            logger.exception("Session garbage collection sampling failed")
            return
        if sample > self.probability:
            return

        self.gc_running = True
        started = time.perf_counter()
        removed = 0
        try:
            self._debug("Session garbage collection starting")
            now = self._clock()
            expired = [
                key for key, record in self.sessions.items() if self._is_reclaimable(record, now)
            ]
            for key in expired:
                del self.sessions[key]
            removed = len(expired)
        except Exception:
            logger.exception("Session garbage collection failed")
        finally:
            self.gc_running = False

        elapsed_ms = (time.perf_counter() - started) * 1000
        self._debug(
            f"Session garbage collection finished, removed {removed} session(s) in {elapsed_ms:.2f}ms"
        )
