"""Concurrent, timeout-bounded lookup of a place across language editions.

One task per planned language races its own timeout. Results are consumed
in completion order; a confident, acceptable candidate ends the batch early
and every other task is cancelled. Otherwise the surviving candidates are
ranked once all tasks have settled.
"""

from __future__ import annotations

import asyncio
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Tuple

from loguru import logger

from models import CandidateEntry, Matched, MatchResult, NoMatch, NoMatchReason, PlaceQuery, ScoreBreakdown
from services import scoring
from services.planner import MAX_LANGUAGES, query_variants
from services.validation import HIGH_CONFIDENCE, Verdict, judge
from services.wikipedia import WikipediaError


class KnowledgeBase(Protocol):
    def summary(self, title: str, language: str) -> Optional[CandidateEntry]: ...

    def search_titles(self, query: str, language: str, *, limit: Optional[int] = None) -> List[str]: ...


@dataclass
class _Scored:
    candidate: CandidateEntry
    score: ScoreBreakdown
    arrival: int


class ConcurrentFetcher:
    def __init__(
        self,
        client: KnowledgeBase,
        *,
        task_timeout: float = 8.0,
        search_limit: int = 5,
        fallback_mode: str = "strict",
        max_workers: Optional[int] = None,
    ) -> None:
        self.client = client
        self.task_timeout = task_timeout
        self.search_limit = search_limit
        self.fallback_mode = fallback_mode
        # lookups outliving a cancelled batch run here, not in the loop default executor
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or 4 * MAX_LANGUAGES, thread_name_prefix="kb-lookup"
        )

    # -- per-language work (runs in a worker thread) -----------------------

    def _safe_summary(self, title: str, language: str) -> Optional[CandidateEntry]:
        try:
            return self.client.summary(title, language)
        except WikipediaError as exc:
            logger.warning("summary failed lang={} title={}: {}", language, title, exc)
            return None

    def lookup(self, query: PlaceQuery, language: str, cancel: threading.Event) -> Optional[CandidateEntry]:
        """Direct title lookup, then full-text search over the query variants."""
        direct = self._safe_summary(query.name, language)
        if direct is not None:
            return direct

        for variant in query_variants(query.name):
            if cancel.is_set():
                return None
            try:
                titles = self.client.search_titles(variant, language, limit=self.search_limit)
            except WikipediaError as exc:
                logger.warning("search failed lang={} variant={}: {}", language, variant, exc)
                continue

            best: Optional[Tuple[Tuple[float, float], CandidateEntry]] = None
            for title in titles:
                if cancel.is_set():
                    return None
                candidate = self._safe_summary(title, language)
                if candidate is None:
                    continue
                key = scoring.rank_key(scoring.score(query, candidate))
                if best is None or key > best[0]:
                    best = (key, candidate)
            if best is not None:
                return best[1]
        return None

    async def _run_language(
        self, query: PlaceQuery, language: str, cancel: threading.Event
    ) -> Tuple[str, Optional[CandidateEntry]]:
        loop = asyncio.get_running_loop()
        try:
            candidate = await asyncio.wait_for(
                loop.run_in_executor(self._executor, self.lookup, query, language, cancel),
                timeout=self.task_timeout,
            )
        except asyncio.TimeoutError:
            cancel.set()
            logger.warning("lookup timed out lang={} after {}s", language, self.task_timeout)
            return language, None
        return language, candidate

    def close(self, wait: bool = False) -> None:
        self._executor.shutdown(wait=wait, cancel_futures=True)

    # -- orchestration -----------------------------------------------------

    def _judge(self, query: PlaceQuery, item: _Scored) -> Verdict:
        return judge(query, item.candidate, item.score, fallback_mode=self.fallback_mode)

    async def fetch(self, query: PlaceQuery, languages: List[str]) -> MatchResult:
        tokens: Dict[str, threading.Event] = {lang: threading.Event() for lang in languages}
        tasks = [asyncio.create_task(self._run_language(query, lang, tokens[lang])) for lang in languages]
        survivors: list[_Scored] = []

        try:
            for completed in asyncio.as_completed(tasks):
                language, candidate = await completed
                if candidate is None:
                    continue

                breakdown = scoring.score(query, candidate)
                logger.debug("candidate lang={} title={} {}", language, candidate.title, breakdown.describe())
                if not scoring.has_substantial_overlap(query.name, candidate.title):
                    logger.debug("dropped (no overlap) lang={} title={}", language, candidate.title)
                    continue

                item = _Scored(candidate, breakdown, arrival=len(survivors))
                survivors.append(item)

                if breakdown.semantic > HIGH_CONFIDENCE:
                    verdict = self._judge(query, item)
                    if verdict.accepted:
                        pending = sum(1 for t in tasks if not t.done())
                        logger.info(
                            "early match lang={} title={} path={} cancelling={}",
                            language,
                            candidate.title,
                            verdict.path,
                            pending,
                        )
                        return Matched(candidate, breakdown)
        finally:
            for token in tokens.values():
                token.set()
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        return self._select(query, survivors)

    def _select(self, query: PlaceQuery, survivors: List[_Scored]) -> MatchResult:
        if not survivors:
            return NoMatch(NoMatchReason.NO_OVERLAP)

        ranked = sorted(survivors, key=lambda s: (-s.score.total, -s.score.geographic, s.arrival))
        first_reason: Optional[NoMatchReason] = None
        for item in ranked:
            verdict = self._judge(query, item)
            if verdict.accepted:
                logger.info(
                    "match title={} lang={} path={} {}",
                    item.candidate.title,
                    item.candidate.language,
                    verdict.path,
                    item.score.describe(),
                )
                return Matched(item.candidate, item.score)
            if first_reason is None:
                first_reason = verdict.reason

        logger.info("no match for {} reason={}", query.name, first_reason)
        return NoMatch(first_reason or NoMatchReason.LOW_CONFIDENCE)
