"""Three-dimensional match scoring between a place query and a candidate entry.

The score combines:

- semantic: how alike the query name and the candidate title are
- geographic: how close the two coordinates are, when both are known
- type: whether both names fall into the same (or a related) place category

A dimension that cannot be measured (missing coordinate, unclassifiable
query name) contributes nothing and its weight is moved onto the semantic
dimension, so the reported weights always sum to 1.0 and ``total`` is always
their weighted sum.
"""

from __future__ import annotations

from typing import FrozenSet, Iterable, Optional, Set, Tuple

from rapidfuzz.distance import Levenshtein

from models import CandidateEntry, Coordinate, PlaceQuery, ScoreBreakdown
from services.lexicon import (
    CATEGORIES,
    CROSS_SCRIPT_SYNONYMS,
    DISTANCE_TOLERANCE,
    EXACT_CUES,
    PROXIMITY_CUES,
    RELATED_CATEGORIES,
    SYNONYM_INDEX,
    TYPE_CUES,
)
from services.planner import detect_script
from utils import clamp01, haversine_km, jaccard, normalize_text

Weights = Tuple[float, float, float]

BASE_WEIGHTS: Weights = (0.5, 0.4, 0.1)
PROXIMITY_WEIGHTS: Weights = (0.3, 0.6, 0.1)
TYPE_WEIGHTS: Weights = (0.4, 0.3, 0.3)
LONG_QUERY_WEIGHTS: Weights = (0.6, 0.3, 0.1)
LONG_QUERY_CHARS = 30

BASE_THRESHOLD = 0.7
EXACT_THRESHOLD = 0.85
SHORT_THRESHOLD = 0.6
SHORT_QUERY_CHARS = 10

TOKEN_OVERLAP_FLOOR = 0.6
SCRIPT_BONUS = 0.8

# synonym, token, levenshtein, trigram, script
_SEMANTIC_MIX = (0.30, 0.25, 0.20, 0.15, 0.10)


# -- semantic ---------------------------------------------------------------


def _token_set(normalized: str, min_len: int = 1) -> Set[str]:
    return {tok for tok in normalized.split(" ") if len(tok) >= min_len}


def _has_core_match(a: Iterable[str], b: Iterable[str]) -> bool:
    b = list(b)
    for word in a:
        if len(word) < 2:
            continue
        if any(len(other) >= 2 and (word in other or other in word) for other in b):
            return True
    return False


def _expand_synonyms(tokens: Set[str]) -> Set[str]:
    expanded = set(tokens)
    for tok in tokens:
        expanded |= SYNONYM_INDEX.get(tok, frozenset())
    return expanded


def _ngrams(text: str, n: int = 3) -> Set[str]:
    if len(text) < n:
        return {text} if text else set()
    return {text[i : i + n] for i in range(len(text) - n + 1)}


def _mentions(text: str, terms: Iterable[str]) -> bool:
    return any(term in text for term in terms)


def _script_bonus(a: str, b: str) -> float:
    if detect_script(a) != "han" or detect_script(b) != "han":
        return 0.0
    for head, members in CROSS_SCRIPT_SYNONYMS.items():
        family = (head, *members)
        if _mentions(a, family) and _mentions(b, family):
            return SCRIPT_BONUS
    return 0.0


def semantic_similarity(query_name: str, title: str) -> float:
    a = normalize_text(query_name)
    b = normalize_text(title)
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0

    if a in b or b in a:
        ratio = min(len(a), len(b)) / max(len(a), len(b))
        if ratio >= 0.7:
            return 0.9
        if ratio >= 0.5:
            return 0.7

    tokens_a = _token_set(a)
    tokens_b = _token_set(b)
    intersection = tokens_a & tokens_b

    token_score = jaccard(tokens_a, tokens_b)
    if _has_core_match(tokens_a, tokens_b):
        token_score = min(token_score * 1.5, 1.0)

    synonym_score = jaccard(_expand_synonyms(tokens_a), _expand_synonyms(tokens_b))
    lev_score = Levenshtein.normalized_similarity(a, b)
    ngram_score = jaccard(_ngrams(a), _ngrams(b))
    script_score = _script_bonus(a, b)

    w_syn, w_tok, w_lev, w_ngram, w_script = _SEMANTIC_MIX
    combined = (
        synonym_score * w_syn
        + token_score * w_tok
        + lev_score * w_lev
        + ngram_score * w_ngram
        + script_score * w_script
    )
    if intersection:
        combined = max(combined, TOKEN_OVERLAP_FLOOR)
    return clamp01(combined)


def has_substantial_overlap(query_name: str, title: str) -> bool:
    """At least one shared token (len >= 2) or a containing pair of tokens (len >= 3).

    Guards against numerically inflated matches built from short coincidental
    fragments.
    """
    words_a = _token_set(normalize_text(query_name), min_len=2)
    words_b = _token_set(normalize_text(title), min_len=2)
    if words_a & words_b:
        return True
    for word in words_a:
        if len(word) < 3:
            continue
        for other in words_b:
            if len(other) >= 3 and (word in other or other in word):
                return True
    return False


# -- geographic -------------------------------------------------------------


def distance_band(distance_km: float) -> float:
    if distance_km < 0.1:
        return 1.0
    if distance_km < 0.5:
        return 0.95
    if distance_km < 1.0:
        return 0.85
    if distance_km < 2.0:
        return 0.7
    if distance_km < 5.0:
        return 0.5
    if distance_km < 10.0:
        return 0.3
    return max(0.0, 0.2 - distance_km / 100.0)


def distance_tolerance(title: str) -> float:
    tokens = _token_set(normalize_text(title))
    for keywords, bonus in DISTANCE_TOLERANCE:
        if tokens.intersection(keywords):
            return bonus
    return 0.0


def geographic_similarity(
    query_coord: Optional[Coordinate], candidate_coord: Optional[Coordinate], title: str
) -> Optional[float]:
    """Distance score in [0, 1], or None when either coordinate is missing."""
    if query_coord is None or candidate_coord is None:
        return None
    dist = haversine_km(query_coord[0], query_coord[1], candidate_coord[0], candidate_coord[1])
    return clamp01(distance_band(dist) + distance_tolerance(title))


# -- type -------------------------------------------------------------------


def _keyword_hit(keyword: str, normalized: str, tokens: FrozenSet[str]) -> bool:
    # phrases and non-Latin keywords match as substrings, single Latin words as tokens
    if " " in keyword or not keyword.isascii():
        return keyword in normalized
    return keyword in tokens


def classify(name: str) -> Optional[str]:
    normalized = normalize_text(name)
    tokens = frozenset(normalized.split(" "))
    for category, keywords in CATEGORIES.items():
        if any(_keyword_hit(kw, normalized, tokens) for kw in keywords):
            return category
    return None


def type_similarity(query_category: Optional[str], candidate_category: Optional[str]) -> float:
    if query_category is None or candidate_category is None:
        return 0.0
    if query_category == candidate_category:
        return 1.0
    if candidate_category in RELATED_CATEGORIES.get(query_category, ()):
        return 0.6
    return 0.0


# -- weighting --------------------------------------------------------------


def _has_cue(text: str, cues: Iterable[str]) -> bool:
    tokens = set(normalize_text(text).split(" "))
    return any(cue in tokens for cue in cues)


def dynamic_weights(query_text: str) -> Weights:
    if _has_cue(query_text, PROXIMITY_CUES):
        return PROXIMITY_WEIGHTS
    if _has_cue(query_text, TYPE_CUES):
        return TYPE_WEIGHTS
    if len(query_text.strip()) > LONG_QUERY_CHARS:
        return LONG_QUERY_WEIGHTS
    return BASE_WEIGHTS


def confidence_threshold(query_text: str) -> float:
    if _has_cue(query_text, EXACT_CUES):
        return EXACT_THRESHOLD
    if len(query_text.strip()) < SHORT_QUERY_CHARS:
        return SHORT_THRESHOLD
    return BASE_THRESHOLD


def redistribute(weights: Weights, geographic_measured: bool, type_measured: bool) -> Weights:
    ws, wg, wt = weights
    if not geographic_measured:
        ws, wg = round(ws + wg, 10), 0.0
    if not type_measured:
        ws, wt = round(ws + wt, 10), 0.0
    return (ws, wg, wt)


def score(query: PlaceQuery, candidate: CandidateEntry) -> ScoreBreakdown:
    semantic = semantic_similarity(query.name, candidate.title)

    geographic = geographic_similarity(query.coordinate, candidate.coordinate, candidate.title)

    query_category = classify(query.name)
    type_score = type_similarity(query_category, classify(candidate.title))

    weights = redistribute(
        dynamic_weights(query.name),
        geographic_measured=geographic is not None,
        type_measured=query_category is not None,
    )
    geo = geographic if geographic is not None else 0.0
    total = clamp01(weights[0] * semantic + weights[1] * geo + weights[2] * type_score)

    return ScoreBreakdown(
        semantic=semantic,
        geographic=geo,
        type=type_score,
        weights=weights,
        total=total,
        confidence_threshold=confidence_threshold(query.name),
    )


def geography_measured(breakdown: ScoreBreakdown) -> bool:
    return breakdown.weights[1] > 0.0


def rank_key(breakdown: ScoreBreakdown) -> Tuple[float, float]:
    return (breakdown.total, breakdown.geographic)


__all__ = [
    "score",
    "semantic_similarity",
    "has_substantial_overlap",
    "geographic_similarity",
    "classify",
    "type_similarity",
    "dynamic_weights",
    "confidence_threshold",
    "geography_measured",
    "rank_key",
]
