"""Session store interface and factory.

Usage:
    # localsession.yaml
    session:
      gc: true
      probability: 0.05
      maxlifetime: 60000
      debug: false

    # Or via environment variables
    SESSION_GC=true
    SESSION_GC_PROBABILITY=0.05
    SESSION_GC_MAXLIFETIME=60000
    SESSION_DEBUG=false
"""
from __future__ import annotations

import logging
import os
from collections.abc import Callable
from typing import Any, Protocol

import yaml

from localsession.options import DEFAULT_MAXLIFETIME, DEFAULT_PROBABILITY
from localsession.store import LocalSessionStore

logger = logging.getLogger(__name__)

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


class SessionStore(Protocol):
    """Interface a session middleware expects from its store."""

    def get(self, key: str, ttl: int | None = None, options: Any = None) -> dict[str, Any] | None:
        """Get session payload by key. Returns None if missing or expired."""
        ...

    def set(
        self,
        key: str,
        payload: dict[str, Any],
        ttl: int | None = None,
        options: Any = None,
    ) -> None:
        """Store session payload."""
        ...

    def destroy(self, key: str) -> None:
        """Remove session payload."""
        ...


def _load_session_config() -> Any | None:
    """Best-effort settings loader for session config."""
    try:
        from localsession.settings import load_settings
        return load_settings().session
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.warning("Could not load localsession.yaml, using defaults: %s", e)
        return None


def _bool_from_env(value: str) -> Any:
    """Parse a boolean env value; unknown spellings are returned unchanged."""
    normalized = value.strip().lower()
    if normalized in _TRUE:
        return True
    if normalized in _FALSE:
        return False
    return value


def _number_from_env(value: str) -> Any:
    """Parse a numeric env value; unparseable values are returned unchanged."""
    try:
        number = float(value)
    except ValueError:
        return value
    return int(number) if number.is_integer() and "." not in value else number


def _option(env_name: str, session_cfg: Any, attr: str, default: Any, parse: Callable[[str], Any]) -> Any:
    raw = os.getenv(env_name)
    if raw is not None:
        return parse(raw)
    return getattr(session_cfg, attr, default) if session_cfg else default


def create_session_store(debug: Callable[[str], Any] | None = None) -> LocalSessionStore:
    """Factory to create the session store from config.

    Precedence for all fields: env vars > localsession.yaml > defaults.

    Raises:
        InvalidOptionsError: If the merged configuration is invalid.
    """
    session_cfg = _load_session_config()
    options: dict[str, Any] = {
        "gc": _option("SESSION_GC", session_cfg, "gc", False, _bool_from_env),
        "probability": _option(
            "SESSION_GC_PROBABILITY", session_cfg, "probability", DEFAULT_PROBABILITY, _number_from_env
        ),
        "maxlifetime": _option(
            "SESSION_GC_MAXLIFETIME", session_cfg, "maxlifetime", DEFAULT_MAXLIFETIME, _number_from_env
        ),
    }

    debug_enabled = _option("SESSION_DEBUG", session_cfg, "debug", False, _bool_from_env)
    if debug is None and debug_enabled is True:
        debug = logging.getLogger("localsession.gc").info
    options["debug"] = debug

    store = LocalSessionStore(options)
    logger.info(
        "Session store ready (gc=%s, probability=%s, maxlifetime=%sms)",
        store.gc,
        store.probability,
        store.maxlifetime,
    )
    return store
