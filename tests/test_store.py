"""Tests for LocalSessionStore get/set/destroy."""

from __future__ import annotations

import time
from unittest.mock import MagicMock

import pytest

from localsession import LocalSessionStore, SessionRecord, SetOptions, UnresolvableSessionError

TTL = 15 * 1000
NOW = 1_700_000_000_000
KEY1 = "abc1234567890"
KEY2 = "0987654321cba"
KEY3 = "foobarasasdas"


class FlagCounter:
    """Options object that counts how often each flag is read."""

    def __init__(self, **flags: bool):
        self._flags = flags
        self.reads: dict[str, int] = {}

    def __getattr__(self, name: str) -> bool:
        if name.startswith("_") or name == "reads":
            raise AttributeError(name)
        self.reads[name] = self.reads.get(name, 0) + 1
        return self._flags.get(name, False)


def _store(now: int = NOW) -> tuple[LocalSessionStore, MagicMock]:
    clock = MagicMock(return_value=now)
    return LocalSessionStore(clock=clock), clock


def _record(key: str = KEY1, expire: int = NOW + TTL, **extra) -> SessionRecord:
    return SessionRecord(
        key=key, payload={"views": 1, "_expire": expire, **extra}, ttl=TTL, created_at=NOW
    )


def test_new_store_is_empty():
    store = LocalSessionStore()
    assert store.size == 0
    assert len(store) == 0


def test_new_store_uses_default_gc_values():
    store = LocalSessionStore()
    assert store.gc is False
    assert store.probability == 0.05
    assert store.maxlifetime == 60000
    assert store.debug is None
    assert store.gc_running is False


def test_new_session_entry_captures_clock():
    store, clock = _store()
    payload = {"views": 1, "_expire": NOW + TTL}

    record = store.new_session_entry(KEY1, payload, TTL)

    clock.assert_called_once()
    assert record == SessionRecord(key=KEY1, payload=payload, ttl=TTL, created_at=NOW)


# ---------------------------------------------------------------------------
# set
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("flag", ["changed", "rolling"])
def test_set_creates_when_missing(flag):
    store, _ = _store()
    opts = FlagCounter(**{flag: True})

    store.set(KEY1, {"views": 1}, TTL, opts)

    assert store.size == 1
    assert opts.reads[flag] == 1
    assert store.sessions[KEY1].payload == {"views": 1}
    assert store.sessions[KEY1].created_at == NOW


@pytest.mark.parametrize("flag", ["changed", "rolling"])
def test_set_updates_existing_in_place(flag, monkeypatch):
    store, clock = _store()
    existing = _record()
    store.sessions[KEY1] = existing
    creator = MagicMock()
    monkeypatch.setattr(store, "new_session_entry", creator)
    opts = FlagCounter(**{flag: True})

    store.set(KEY1, {"views": 2}, 30000, opts)

    creator.assert_not_called()
    assert opts.reads[flag] == 1
    assert store.size == 1
    assert store.sessions[KEY1] is existing
    assert existing.payload == {"views": 2}
    assert existing.ttl == 30000
    assert existing.created_at == NOW


@pytest.mark.parametrize("flag", ["renew", "force"])
def test_set_replaces_existing_record(flag, monkeypatch):
    store, clock = _store()
    old = _record()
    store.sessions[KEY1] = old
    clock.return_value = NOW + 5000
    destroy = MagicMock(wraps=store.destroy)
    monkeypatch.setattr(store, "destroy", destroy)
    opts = FlagCounter(**{flag: True})

    store.set(KEY1, {"views": 1}, TTL, opts)

    destroy.assert_called_once_with(KEY1)
    assert opts.reads[flag] == 1
    assert store.size == 1
    assert store.sessions[KEY1] is not old
    assert store.sessions[KEY1].created_at == NOW + 5000


def test_set_force_on_missing_key_creates():
    store, _ = _store()
    store.set(KEY1, {"views": 1}, TTL, {"force": True})
    assert store.size == 1


def test_set_changed_wins_over_renew():
    store, _ = _store()
    existing = _record()
    store.sessions[KEY1] = existing

    store.set(KEY1, {"views": 3}, TTL, {"changed": True, "renew": True})

    assert store.sessions[KEY1] is existing
    assert existing.payload == {"views": 3}


def test_set_accepts_set_options_dataclass():
    store, _ = _store()
    store.set(KEY1, {"views": 1}, TTL, SetOptions(rolling=True))
    assert KEY1 in store


@pytest.mark.parametrize("options", [None, {}, {"changed": False}, SetOptions()])
def test_set_without_intent_raises_and_leaves_store_untouched(options):
    store, _ = _store()
    store.sessions[KEY3] = _record(KEY3)

    with pytest.raises(UnresolvableSessionError, match="Cannot resolve session") as exc_info:
        store.set(KEY1, {"views": 1}, TTL, options)

    assert exc_info.value.kind == "unresolvable_session"
    assert exc_info.value.key == KEY1
    assert store.size == 1
    assert KEY1 not in store


def test_set_without_intent_reads_each_flag_once():
    store, _ = _store()
    opts = FlagCounter(changed=False)

    with pytest.raises(UnresolvableSessionError):
        store.set(KEY1, {"views": 1}, TTL, opts)

    assert opts.reads == {"changed": 1, "rolling": 1, "renew": 1, "force": 1}


# ---------------------------------------------------------------------------
# get
# ---------------------------------------------------------------------------


def test_get_missing_key_returns_none_without_clock():
    store, clock = _store()
    assert store.get(KEY1) is None
    clock.assert_not_called()


def test_get_session_length_record_skips_clock():
    store, clock = _store()
    store.sessions[KEY1] = _record(expire=NOW - 10_000_000, _session=True)

    payload = store.get(KEY1)

    assert payload == {"views": 1, "_expire": NOW - 10_000_000, "_session": True}
    clock.assert_not_called()


def test_get_returns_live_payload():
    store, clock = _store()
    record = _record()
    store.sessions[KEY1] = record

    assert store.get(KEY1, TTL, {}) is record.payload
    clock.assert_called_once()


def test_get_returns_none_for_expired_record():
    store, clock = _store()
    store.sessions[KEY1] = _record(expire=NOW - 20_000)

    assert store.get(KEY1) is None
    clock.assert_called_once()
    assert store.size == 1


def test_get_treats_expire_equal_to_now_as_expired():
    store, _ = _store()
    store.sessions[KEY1] = _record(expire=NOW)
    assert store.get(KEY1) is None


def test_get_session_flag_must_be_true():
    store, _ = _store()
    store.sessions[KEY1] = _record(expire=NOW - 1, _session="yes")
    assert store.get(KEY1) is None


def test_get_without_expire_marker_returns_none():
    store, _ = _store()
    store.sessions[KEY1] = SessionRecord(key=KEY1, payload={"views": 1}, ttl=TTL, created_at=NOW)
    assert store.get(KEY1) is None


# ---------------------------------------------------------------------------
# destroy
# ---------------------------------------------------------------------------


def test_destroy_removes_record():
    store, _ = _store()
    store.sessions[KEY1] = _record()

    store.destroy(KEY1)

    assert store.size == 0


def test_destroy_leaves_other_records():
    store, _ = _store()
    store.sessions[KEY1] = _record()
    store.sessions[KEY2] = _record(KEY2)

    store.destroy(KEY1)

    assert store.size == 1
    assert store.get(KEY2) is not None


def test_destroy_missing_key_is_noop():
    store, _ = _store()
    store.sessions[KEY3] = _record(KEY3)

    store.destroy(KEY1)
    store.destroy(KEY1)

    assert store.size == 1
    assert KEY3 in store


def test_create_read_destroy_scenario():
    store = LocalSessionStore()
    expire = int(time.time() * 1000) + 86_400_000
    store.set(KEY1, {"views": 1, "_expire": expire}, 86_400_000, {"changed": True})

    assert store.get(KEY1) == {"views": 1, "_expire": expire}

    store.destroy(KEY1)
    assert store.get(KEY1) is None


def test_stores_do_not_share_records():
    first, _ = _store()
    second, _ = _store()

    first.set(KEY1, {"_expire": NOW + TTL}, TTL, {"force": True})

    assert second.size == 0
