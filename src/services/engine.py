"""Top-level resolution: cache, cooldown, language planning and the fetch batch."""

from __future__ import annotations

import asyncio
import math
from typing import Optional

from loguru import logger

from config import Configuration
from models import Matched, MatchResult, NoMatch, NoMatchReason, PlaceQuery
from services import scoring
from services.cache import ResultCache, cache_key
from services.cooldown import CooldownGate
from services.fetcher import ConcurrentFetcher, KnowledgeBase
from services.planner import plan
from services.validation import judge
from services.wikipedia import WikipediaClient


class InvalidQueryError(ValueError):
    pass


def check_query(query: PlaceQuery) -> None:
    if not query.name or not query.name.strip():
        raise InvalidQueryError("place name must not be empty")
    if query.coordinate is not None:
        lat, lon = query.coordinate
        if not (math.isfinite(lat) and math.isfinite(lon)):
            raise InvalidQueryError("coordinate must be finite")
        if not -90.0 <= lat <= 90.0:
            raise InvalidQueryError(f"latitude out of range: {lat}")
        if not -180.0 <= lon <= 180.0:
            raise InvalidQueryError(f"longitude out of range: {lon}")


class Engine:
    def __init__(
        self,
        cfg: Configuration,
        client: Optional[KnowledgeBase] = None,
        cache: Optional[ResultCache] = None,
        gate: Optional[CooldownGate] = None,
        fetcher: Optional[ConcurrentFetcher] = None,
    ) -> None:
        cfg.require_valid()
        self.cfg = cfg
        self.client = client if client is not None else WikipediaClient(cfg)
        self.cache = cache if cache is not None else ResultCache(
            max_items=cfg.cache_max_items, ttl_sec=cfg.cache_ttl_sec, path=cfg.cache_path
        )
        self.gate = gate if gate is not None else CooldownGate(cfg.cooldown_sec, cfg.cooldown_mode)
        self.fetcher = fetcher if fetcher is not None else ConcurrentFetcher(
            self.client,
            task_timeout=cfg.task_timeout_sec,
            search_limit=cfg.wiki_search_limit,
            fallback_mode=cfg.fallback_mode,
        )

    async def _from_cache(self, query: PlaceQuery, key: str) -> Optional[Matched]:
        # cache reads and writes may touch the persistence file
        record = await asyncio.to_thread(self.cache.get, key)
        if record is None:
            return None

        # the cached entry must still hold up against the query as asked now
        breakdown = scoring.score(query, record.entry)
        if scoring.has_substantial_overlap(query.name, record.entry.title):
            verdict = judge(query, record.entry, breakdown, fallback_mode=self.cfg.fallback_mode)
            if verdict.accepted:
                logger.info("cache hit key={} title={}", key, record.entry.title)
                return Matched(record.entry, breakdown)

        logger.info("cache record failed revalidation key={} title={}", key, record.entry.title)
        await asyncio.to_thread(self.cache.invalidate, key)
        return None

    async def resolve(self, query: PlaceQuery) -> MatchResult:
        check_query(query)
        key = cache_key(query)

        cached = await self._from_cache(query, key)
        if cached is not None:
            return cached

        loop = asyncio.get_running_loop()
        deadline = self.cfg.resolve_deadline_sec
        started = loop.time()
        # the cooldown wait counts against the caller-facing deadline
        if not await self.gate.acquire(max_delay=deadline):
            logger.warning("cooldown queue exceeds deadline {}s name={}", deadline, query.name)
            return NoMatch(NoMatchReason.TIMED_OUT)
        languages = plan(query.name, self.cfg.max_languages)
        logger.info("resolve name={} languages={}", query.name, languages)

        remaining = max(0.0, deadline - (loop.time() - started))
        try:
            result = await asyncio.wait_for(self.fetcher.fetch(query, languages), timeout=remaining)
        except asyncio.TimeoutError:
            logger.warning("resolve deadline {}s exceeded name={}", deadline, query.name)
            return NoMatch(NoMatchReason.TIMED_OUT)

        if isinstance(result, Matched):
            await asyncio.to_thread(self.cache.put, key, result.candidate, result.score)
        return result

    def resolve_sync(self, query: PlaceQuery) -> MatchResult:
        return asyncio.run(self.resolve(query))

    def invalidate(self, query: PlaceQuery) -> bool:
        return self.cache.invalidate(cache_key(query))

    def close(self) -> None:
        self.fetcher.close()
        close = getattr(self.client, "close", None)
        if callable(close):
            close()
