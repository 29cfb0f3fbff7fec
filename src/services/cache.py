"""Accepted matches keyed by normalized query identity.

Records are bounded (LRU) and expire after a TTL. When a path is given they
are persisted as a JSON list of ``{key, entry, score, inserted_at}`` records
and reloaded on start; an unreadable file starts an empty cache.
"""

from __future__ import annotations

import json
import os
import threading
from collections import OrderedDict
from dataclasses import asdict
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

from loguru import logger

from models import CacheRecord, CandidateEntry, PlaceQuery, ScoreBreakdown
from utils import normalize_text

COORD_BUCKET_DEG = 0.01  # roughly 1 km


def cache_key(query: PlaceQuery) -> str:
    name = normalize_text(query.name).replace(" ", "_")
    if query.coordinate is None:
        return name
    lat, lon = query.coordinate
    lat_b = round(lat / COORD_BUCKET_DEG) * COORD_BUCKET_DEG
    lon_b = round(lon / COORD_BUCKET_DEG) * COORD_BUCKET_DEG
    return f"{name}@{lat_b:.2f},{lon_b:.2f}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _record_to_dict(record: CacheRecord) -> Dict[str, Any]:
    return {
        "key": record.key,
        "entry": asdict(record.entry),
        "score": asdict(record.score),
        "inserted_at": record.inserted_at.isoformat(),
    }


def _coord(value: Any) -> Optional[tuple]:
    if value is None:
        return None
    return (float(value[0]), float(value[1]))


def _record_from_dict(raw: Dict[str, Any]) -> CacheRecord:
    entry = dict(raw["entry"])
    entry["coordinate"] = _coord(entry.get("coordinate"))
    score = dict(raw["score"])
    score["weights"] = tuple(float(w) for w in score["weights"])
    return CacheRecord(
        key=str(raw["key"]),
        entry=CandidateEntry(**entry),
        score=ScoreBreakdown(**score),
        inserted_at=datetime.fromisoformat(raw["inserted_at"]),
    )


class ResultCache:
    def __init__(
        self,
        max_items: int = 50,
        ttl_sec: float = 7 * 24 * 3600,
        path: Optional[str] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.max_items = max(1, max_items)
        self.ttl = timedelta(seconds=ttl_sec)
        self.path = path
        self._clock = clock
        self._lock = threading.Lock()
        self._records: "OrderedDict[str, CacheRecord]" = OrderedDict()
        if path:
            self._load()

    def _expired(self, record: CacheRecord) -> bool:
        return self.ttl.total_seconds() > 0 and self._clock() - record.inserted_at > self.ttl

    def get(self, key: str) -> Optional[CacheRecord]:
        with self._lock:
            record = self._records.get(key)
            if record is None:
                return None
            if self._expired(record):
                self._records.pop(key, None)
                self._save_locked()
                logger.debug("cache expired key={}", key)
                return None
            self._records.move_to_end(key)
            return record

    def put(self, key: str, entry: CandidateEntry, score: ScoreBreakdown) -> CacheRecord:
        record = CacheRecord(key=key, entry=entry, score=score, inserted_at=self._clock())
        with self._lock:
            self._records.pop(key, None)
            self._records[key] = record
            while len(self._records) > self.max_items:
                evicted, _ = self._records.popitem(last=False)
                logger.debug("cache evicted (capacity) key={}", evicted)
            self._save_locked()
        return record

    def invalidate(self, key: str) -> bool:
        with self._lock:
            removed = self._records.pop(key, None) is not None
            if removed:
                self._save_locked()
        return removed

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
            self._save_locked()

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {"count": len(self._records), "max_size": self.max_items}

    # -- persistence ---------------------------------------------------------

    def _load(self) -> None:
        if not self.path or not os.path.exists(self.path):
            return
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                payload = json.load(fh)
            records = [_record_from_dict(item) for item in payload]
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning("cache file {} unreadable, starting empty: {}", self.path, exc)
            return
        # stored most recent first
        for record in reversed(records):
            if not self._expired(record):
                self._records[record.key] = record
        while len(self._records) > self.max_items:
            self._records.popitem(last=False)
        logger.info("cache loaded {} records from {}", len(self._records), self.path)

    def _save_locked(self) -> None:
        if not self.path:
            return
        payload = [_record_to_dict(r) for r in reversed(self._records.values())]
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp_path = f"{self.path}.tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError as exc:
            logger.warning("cache save failed path={}: {}", self.path, exc)
