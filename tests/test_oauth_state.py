"""Tests for OAuth state tokens and the TTL cache behind them."""
import time

from services.cache import SimpleCache
from services.pos import OAuthStateManager


def test_state_round_trip():
    state = OAuthStateManager.generate_state("merchant-1", "square", "user-1")

    assert OAuthStateManager.validate_state(state) == {
        "merchant_id": "merchant-1",
        "provider": "square",
        "user_id": "user-1"
    }


def test_state_cannot_be_reused():
    state = OAuthStateManager.generate_state("merchant-1", "clover", "user-1")

    assert OAuthStateManager.validate_state(state) is not None
    assert OAuthStateManager.validate_state(state) is None


def test_unknown_state_is_rejected():
    assert OAuthStateManager.validate_state("forged") is None


def test_states_are_unique():
    first = OAuthStateManager.generate_state("merchant-1", "square", "user-1")
    second = OAuthStateManager.generate_state("merchant-1", "square", "user-1")
    assert first != second


def test_cache_entries_expire(monkeypatch):
    cache = SimpleCache()
    now = time.time()
    monkeypatch.setattr(time, "time", lambda: now)
    cache.set("key", "value", ttl_seconds=300)

    monkeypatch.setattr(time, "time", lambda: now + 301)

    assert cache.get("key") is None
    assert cache.pop("key") is None
