"""Tests for orbstack_provider.cache module."""

from __future__ import annotations

from orbstack_provider.cache import StateCache


class TestGetSet:
    def test_get_after_set_returns_value(self, clock):
        cache = StateCache(ttl=5, clock=clock)
        cache.set("vm", "running")
        assert cache.get("vm") == "running"

    def test_missing_key_returns_default(self, clock):
        cache = StateCache(clock=clock)
        assert cache.get("nope") is None
        assert cache.get("nope", "fallback") == "fallback"

    def test_set_overwrites_and_resets_timestamp(self, clock):
        cache = StateCache(ttl=5, clock=clock)
        cache.set("vm", "stopped")
        clock.advance(4)
        cache.set("vm", "running")
        clock.advance(4)
        assert cache.get("vm") == "running"

    def test_default_ttl(self):
        assert StateCache().ttl == 5


class TestExpiry:
    def test_boundary_is_inclusive(self):
        now = [1000.0]
        cache = StateCache(ttl=5, clock=lambda: now[0])
        cache.set("vm", "running")
        now[0] = 1005.0
        assert cache.get("vm") == "running"
        now[0] = 1005.1
        assert cache.get("vm") is None

    def test_expired_entry_is_dropped_on_read(self, clock):
        cache = StateCache(ttl=5, clock=clock)
        cache.set("vm", "running")
        clock.advance(6)
        assert len(cache) == 1
        assert cache.lookup("vm").hit is False
        assert len(cache) == 0

    def test_get_never_refills(self, clock):
        cache = StateCache(ttl=5, clock=clock)
        cache.set("vm", "running")
        clock.advance(10)
        cache.get("vm")
        assert cache.get("vm") is None


class TestPresence:
    def test_falsy_values_are_hits(self, clock):
        cache = StateCache(clock=clock)
        for key, value in (("none", None), ("empty", []), ("zero", 0), ("blank", "")):
            cache.set(key, value)
            found = cache.lookup(key)
            assert found.hit is True
            assert found.value == value

    def test_miss_is_distinguishable_from_stored_none(self, clock):
        cache = StateCache(clock=clock)
        cache.set("stored", None)
        assert cache.lookup("stored").hit is True
        assert cache.lookup("absent").hit is False


class TestInvalidate:
    def test_invalidate_removes_key(self, clock):
        cache = StateCache(clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.invalidate("a")
        assert cache.lookup("a").hit is False
        assert cache.get("b") == 2

    def test_invalidate_missing_key_is_noop(self, clock):
        cache = StateCache(clock=clock)
        cache.invalidate("missing")
        cache.invalidate("missing")
        assert len(cache) == 0

    def test_invalidate_all(self, clock):
        cache = StateCache(clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.invalidate_all()
        cache.invalidate_all()
        assert len(cache) == 0
