from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

from models import PlaceQuery, ScoreBreakdown
from services.cache import ResultCache, cache_key

from fakes import entry

SCORE = ScoreBreakdown(
    semantic=1.0, geographic=1.0, type=0.0, weights=(0.6, 0.4, 0.0), total=1.0, confidence_threshold=0.7
)


class _Clock:
    def __init__(self) -> None:
        self.now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now


def test_cache_key_buckets_coordinates() -> None:
    key = cache_key(PlaceQuery("Golden Gate Bridge", coordinate=(37.8199, -122.4783)))
    assert key == "golden_gate_bridge@37.82,-122.48"
    nearby = cache_key(PlaceQuery("golden gate  bridge!", coordinate=(37.8201, -122.4779)))
    assert nearby == key
    assert cache_key(PlaceQuery("Golden Gate Bridge")) == "golden_gate_bridge"


def test_lru_eviction() -> None:
    cache = ResultCache(max_items=2)
    cache.put("a", entry("A"), SCORE)
    cache.put("b", entry("B"), SCORE)
    assert cache.get("a") is not None  # a is now most recent
    cache.put("c", entry("C"), SCORE)

    assert cache.get("b") is None
    assert cache.get("a") is not None
    assert cache.get("c") is not None
    assert cache.stats() == {"count": 2, "max_size": 2}


def test_records_expire() -> None:
    clock = _Clock()
    cache = ResultCache(ttl_sec=7 * 24 * 3600, clock=clock)
    cache.put("bridge", entry("Golden Gate Bridge"), SCORE)

    clock.now += timedelta(days=6)
    assert cache.get("bridge") is not None
    clock.now += timedelta(days=2)
    assert cache.get("bridge") is None
    assert cache.stats()["count"] == 0


def test_invalidate_and_clear() -> None:
    cache = ResultCache()
    cache.put("a", entry("A"), SCORE)
    cache.put("b", entry("B"), SCORE)
    assert cache.invalidate("a") is True
    assert cache.invalidate("a") is False
    cache.clear()
    assert cache.stats()["count"] == 0


def test_persists_across_instances(tmp_path) -> None:
    path = tmp_path / "cache" / "records.json"
    first = ResultCache(path=str(path))
    bridge = entry("Golden Gate Bridge", "A suspension bridge.", coordinate=(37.8199, -122.4783))
    first.put("bridge", bridge, SCORE)
    first.put("louvre", entry("Louvre", language="fr"), SCORE)

    stored = json.loads(path.read_text(encoding="utf-8"))
    assert [item["key"] for item in stored] == ["louvre", "bridge"]
    assert set(stored[0]) == {"key", "entry", "score", "inserted_at"}

    second = ResultCache(path=str(path))
    record = second.get("bridge")
    assert record is not None
    assert record.entry == bridge
    assert record.score == SCORE
    assert second.get("louvre") is not None
    assert second.stats()["count"] == 2


def test_unreadable_file_starts_empty(tmp_path) -> None:
    path = tmp_path / "records.json"
    path.write_text("{not json", encoding="utf-8")
    cache = ResultCache(path=str(path))
    assert cache.stats()["count"] == 0
    cache.put("a", entry("A"), SCORE)
    assert json.loads(path.read_text(encoding="utf-8"))[0]["key"] == "a"


def test_cache_without_path_writes_nothing(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    cache = ResultCache(path=None)
    cache.put("a", entry("A"), SCORE)
    cache.clear()
    assert list(tmp_path.iterdir()) == []
