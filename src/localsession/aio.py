"""Awaitable facade over ``LocalSessionStore`` for async session middleware."""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from localsession.store import LocalSessionStore


class AsyncLocalSessionStore:
    """Expose ``get``/``set``/``destroy`` as coroutines.

    The wrapped store never blocks, so each call runs inline on the event
    loop without suspending.
    """

    def __init__(self, store: LocalSessionStore | None = None, options: Mapping[str, Any] | None = None):
        self.store = store if store is not None else LocalSessionStore(options)

    async def get(self, key: str, ttl: int | None = None, options: Any = None) -> dict[str, Any] | None:
        return self.store.get(key, ttl, options)

    async def set(
        self,
        key: str,
        payload: dict[str, Any],
        ttl: int | None = None,
        options: Any = None,
    ) -> None:
        self.store.set(key, payload, ttl, options)

    async def destroy(self, key: str) -> None:
        self.store.destroy(key)

    @property
    def size(self) -> int:
        return self.store.size
