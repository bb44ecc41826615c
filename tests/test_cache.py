import asyncio

import pytest

from dream_interpreter.cache import InterpretationCache, cache_key, sweep_periodically
from dream_interpreter.models import InterpretationResult


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def _result(text="A reading"):
    return InterpretationResult(interpretation=text, energy=50, symbols=[])


def test_key_ignores_case_and_surrounding_whitespace():
    assert cache_key("  I was Flying  ", "u1", "MYSTIC") == cache_key("i was flying", "u1", "MYSTIC")


def test_key_separates_persona_and_user():
    base = cache_key("I was flying", "u1", "MYSTIC")
    assert cache_key("I was flying", "u1", "GUIDE") != base
    assert cache_key("I was flying", "u2", "MYSTIC") != base
    assert cache_key("I was flying", None, None) == cache_key("I was flying", "", "")


def test_key_is_fixed_length_hex():
    key = cache_key("x" * 4000)
    assert len(key) == 64
    int(key, 16)


def test_entries_expire_after_ttl():
    clock = FakeClock()
    cache = InterpretationCache(ttl=600, clock=clock)
    cache.set("k", _result())

    clock.now += 599
    assert cache.get("k") is not None

    clock.now += 2
    assert cache.get("k") is None
    assert len(cache) == 0


def test_last_write_wins():
    cache = InterpretationCache()
    cache.set("k", _result("first"))
    cache.set("k", _result("second"))
    assert cache.get("k").interpretation == "second"


def test_sweep_removes_only_expired_entries():
    clock = FakeClock()
    cache = InterpretationCache(ttl=10, clock=clock)
    cache.set("old", _result())
    clock.now += 5
    cache.set("new", _result())
    clock.now += 6

    assert cache.sweep() == 1
    assert len(cache) == 1
    assert cache.get("new") is not None


def test_stats_count_hits_and_misses():
    cache = InterpretationCache()
    cache.get("missing")
    cache.set("k", _result())
    cache.get("k")
    cache.get("k")

    stats = cache.stats()
    assert stats["hits"] == 2
    assert stats["misses"] == 1
    assert cache.hit_ratio() == pytest.approx(2 / 3)


@pytest.mark.asyncio
async def test_background_sweeper_evicts_and_stops_on_cancel():
    cache = InterpretationCache(ttl=0.01)
    cache.set("k", _result())

    task = asyncio.create_task(sweep_periodically(cache, period=0.02))
    await asyncio.sleep(0.1)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert len(cache) == 0
