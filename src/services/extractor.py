"""Decode knowledge-base JSON into typed candidates at the API boundary."""

from __future__ import annotations

from typing import Any, List, Optional

from loguru import logger
from pydantic import BaseModel, ValidationError

from models import CandidateEntry


class _Thumbnail(BaseModel):
    source: Optional[str] = None


class _Coordinates(BaseModel):
    lat: float
    lon: float


class SummaryPayload(BaseModel):
    title: str
    extract: str
    type: Optional[str] = None
    thumbnail: Optional[_Thumbnail] = None
    coordinates: Optional[_Coordinates] = None


class _SearchHit(BaseModel):
    title: str


class _SearchQuery(BaseModel):
    search: List[_SearchHit] = []


class SearchPayload(BaseModel):
    query: Optional[_SearchQuery] = None


def extract_candidate(payload: Any, language: str) -> Optional[CandidateEntry]:
    """Build a candidate from a page-summary response, or None if it is unusable."""
    if not isinstance(payload, dict):
        return None
    try:
        summary = SummaryPayload.model_validate(payload)
    except ValidationError as exc:
        logger.debug("summary payload rejected lang={} errors={}", language, exc.error_count())
        return None

    # disambiguation pages list many places and describe none of them
    if summary.type == "disambiguation":
        return None
    title = summary.title.strip()
    if not title:
        return None

    coordinate = None
    if summary.coordinates is not None:
        coordinate = (summary.coordinates.lat, summary.coordinates.lon)

    thumbnail = summary.thumbnail.source if summary.thumbnail else None

    return CandidateEntry(
        source=f"wikipedia_{language}",
        language=language,
        title=title,
        summary=summary.extract.strip(),
        coordinate=coordinate,
        thumbnail_ref=thumbnail or None,
    )


def extract_search_titles(payload: Any) -> List[str]:
    if not isinstance(payload, dict):
        return []
    try:
        parsed = SearchPayload.model_validate(payload)
    except ValidationError as exc:
        logger.debug("search payload rejected errors={}", exc.error_count())
        return []
    if parsed.query is None:
        return []
    titles = [hit.title.strip() for hit in parsed.query.search if hit.title.strip()]
    return list(dict.fromkeys(titles))
