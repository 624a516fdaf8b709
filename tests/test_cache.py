from forecast_core.cache import SnapshotCache, snapshot_digest
from forecast_core.settings import ForecastSettings

from .conftest import day, make_event


def test_digest_ignores_item_order(items, history):
    assert snapshot_digest(items, history) == snapshot_digest(list(reversed(items)), history)


def test_digest_tracks_content(items, history):
    base = snapshot_digest(items, history, as_of=day(34), settings=ForecastSettings())

    assert base != snapshot_digest(items, history + [make_event("A100", 34, -1)], as_of=day(34))
    assert base != snapshot_digest(items, history, as_of=day(35), settings=ForecastSettings())
    assert base != snapshot_digest(items, history, as_of=day(34), settings=ForecastSettings(top_n=9))
    assert base != snapshot_digest(items, history, as_of=day(34), settings=ForecastSettings(), start=day(-5))
    assert base == snapshot_digest(items, list(history), as_of=day(34), settings=ForecastSettings())


def test_get_or_compute_counts_hits():
    cache = SnapshotCache(maxsize=4)
    calls = []

    def compute():
        calls.append(1)
        return ("result",)

    assert cache.get_or_compute("k", compute) == ("result",)
    assert cache.get_or_compute("k", compute) == ("result",)
    assert len(calls) == 1
    assert (cache.hits, cache.misses) == (1, 1)


def test_lru_eviction_and_clear():
    cache = SnapshotCache(maxsize=1)
    cache.get_or_compute("a", lambda: 1)
    cache.get_or_compute("b", lambda: 2)

    assert len(cache) == 1
    assert cache.get_or_compute("a", lambda: 3) == 3

    cache.clear()
    assert len(cache) == 0
    assert (cache.hits, cache.misses) == (0, 0)
