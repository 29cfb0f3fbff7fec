"""Address-keyword validation and the acceptance policy for scored candidates.

Name similarity alone cannot tell apart two same-named entries in different
cities; the address keywords of the query, compared against the candidate
summary, are the tie breaker for anything short of a confident,
geographically confirmed match.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Set

from loguru import logger

from models import CandidateEntry, NoMatchReason, PlaceQuery, ScoreBreakdown
from services.lexicon import (
    ADDRESS_PATTERNS,
    IMPORTANT_LOCATION_TOKENS,
    LOCATION_SEPARATORS,
    LOCATION_STOP_WORDS,
)
from services.scoring import geography_measured

HIGH_CONFIDENCE = 0.8
MEDIUM_CONFIDENCE = 0.5
FALLBACK_CONFIDENCE = 0.4
VALIDATION_PASS = 0.5
IMPORTANT_BONUS = 0.2

_NUMBER = re.compile(r"\d+")
_SPLIT = re.compile("[" + re.escape(LOCATION_SEPARATORS) + "]+")


def extract_location_keywords(text: Optional[str]) -> Set[str]:
    if not text:
        return set()
    keywords: set[str] = set(_NUMBER.findall(text))
    lower = text.lower()

    for pattern in ADDRESS_PATTERNS:
        if pattern in lower:
            keywords.add(pattern)

    for component in _SPLIT.split(text):
        component = component.strip()
        if len(component) >= 2:
            keywords.add(component)
            keywords.add(component.lower())

    return keywords - LOCATION_STOP_WORDS


def _is_important(keyword: str) -> bool:
    lower = keyword.lower()
    return any(token in lower for token in IMPORTANT_LOCATION_TOKENS)


def location_match_score(query_keywords: Set[str], candidate_keywords: Set[str]) -> float:
    if not query_keywords or not candidate_keywords:
        return 0.0
    intersection = query_keywords & candidate_keywords
    union = query_keywords | candidate_keywords
    similarity = len(intersection) / len(union)
    important = sum(1 for kw in intersection if _is_important(kw))
    return min(similarity + important * IMPORTANT_BONUS, 1.0)


def validate(candidate: CandidateEntry, query: PlaceQuery) -> bool:
    score = location_match_score(
        extract_location_keywords(query.address),
        extract_location_keywords(candidate.summary),
    )
    logger.debug("validation title={} address={} score={:.3f}", candidate.title, query.address, score)
    return score > VALIDATION_PASS


@dataclass(frozen=True)
class Verdict:
    accepted: bool
    path: str
    reason: Optional[NoMatchReason] = None


def judge(
    query: PlaceQuery,
    candidate: CandidateEntry,
    breakdown: ScoreBreakdown,
    *,
    fallback_mode: str = "strict",
) -> Verdict:
    """Decide whether an overlapping candidate may be surfaced to the caller."""
    total = breakdown.total
    threshold = breakdown.confidence_threshold

    if total > HIGH_CONFIDENCE and total > threshold:
        if geography_measured(breakdown) or not query.address:
            return Verdict(True, "direct")
        # nothing but the name vouches for it; make the address agree
        if validate(candidate, query):
            return Verdict(True, "validated")
        return Verdict(False, "validated", NoMatchReason.VALIDATION_FAILED)

    if total > MEDIUM_CONFIDENCE and total > threshold:
        if validate(candidate, query):
            return Verdict(True, "validated")
        return Verdict(False, "validated", NoMatchReason.VALIDATION_FAILED)

    # below the threshold: only the explicit legacy mode surfaces these
    if total > FALLBACK_CONFIDENCE and fallback_mode == "legacy":
        return Verdict(True, "fallback-legacy")
    if total > FALLBACK_CONFIDENCE:
        return Verdict(False, "fallback", NoMatchReason.LOW_CONFIDENCE)

    return Verdict(False, "rejected", NoMatchReason.LOW_CONFIDENCE)
