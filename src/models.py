"""Data models for the place resolver."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple, Union

Coordinate = Tuple[float, float]  # lat, lon


@dataclass(frozen=True)
class PlaceQuery:
    name: str
    address: Optional[str] = None
    coordinate: Optional[Coordinate] = None


@dataclass(frozen=True)
class CandidateEntry:
    source: str
    language: str
    title: str
    summary: str
    coordinate: Optional[Coordinate] = None
    thumbnail_ref: Optional[str] = None


@dataclass(frozen=True)
class ScoreBreakdown:
    semantic: float
    geographic: float
    type: float
    weights: Tuple[float, float, float]  # semantic, geographic, type
    total: float
    confidence_threshold: float

    def describe(self) -> str:
        return "S:%.2f G:%.2f T:%.2f w=(%.2f,%.2f,%.2f) = %.3f (threshold %.2f)" % (
            self.semantic,
            self.geographic,
            self.type,
            self.weights[0],
            self.weights[1],
            self.weights[2],
            self.total,
            self.confidence_threshold,
        )


class NoMatchReason(str, Enum):
    NO_OVERLAP = "no_overlap"
    LOW_CONFIDENCE = "low_confidence"
    VALIDATION_FAILED = "validation_failed"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class Matched:
    candidate: CandidateEntry
    score: ScoreBreakdown


@dataclass(frozen=True)
class NoMatch:
    reason: NoMatchReason


MatchResult = Union[Matched, NoMatch]


@dataclass
class CacheRecord:
    key: str
    entry: CandidateEntry
    score: ScoreBreakdown
    inserted_at: datetime
