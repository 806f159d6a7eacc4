"""localsession — in-memory session store with lazy garbage collection.

File guide
----------
store.py      LocalSessionStore (get/set/destroy + probability-gated sweep)
options.py    Store option defaults and validation, set-intent flags
errors.py     SessionStoreError hierarchy
aio.py        AsyncLocalSessionStore, awaitable facade for async middleware
settings.py   Configuration (localsession.yaml, .env)
session.py    SessionStore protocol + create_session_store() factory
cli.py        `localsession check` / `localsession sweep`

Public API
----------
- ``LocalSessionStore``      — the store
- ``AsyncLocalSessionStore`` — same store behind coroutines
- ``create_session_store``   — store built from localsession.yaml / env
"""

from localsession.aio import AsyncLocalSessionStore
from localsession.errors import InvalidOptionsError, SessionStoreError, UnresolvableSessionError
from localsession.options import SetOptions, StoreOptions
from localsession.session import SessionStore, create_session_store
from localsession.store import LocalSessionStore, SessionRecord

__all__ = [
    "AsyncLocalSessionStore",
    "InvalidOptionsError",
    "LocalSessionStore",
    "SessionRecord",
    "SessionStore",
    "SessionStoreError",
    "SetOptions",
    "StoreOptions",
    "UnresolvableSessionError",
    "create_session_store",
]
