"""Utility helpers for the place resolver."""

from __future__ import annotations

import math
import re
from typing import AbstractSet

_WS = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Casefold and turn every non-alphanumeric code point into a space.

    Unicode letters count as alphanumeric, so Han, kana, Hangul and accented
    Latin survive while punctuation and symbols do not.
    """
    if not text:
        return ""
    cleaned = "".join(ch if ch.isalnum() else " " for ch in text.casefold())
    return _WS.sub(" ", cleaned).strip()


def jaccard(a: AbstractSet[str], b: AbstractSet[str]) -> float:
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)


def clamp01(value: float) -> float:
    return min(max(value, 0.0), 1.0)


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometers."""
    R = 6371.0
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return R * c
