from __future__ import annotations

import re
from typing import List, Optional

from services.lexicon import (
    ABBREVIATIONS,
    ARTICLE_PREFIX,
    DEFAULT_LANGUAGES,
    KEYWORD_FAMILIES,
    SCRIPT_LANGUAGES,
    STRIPPABLE_SUFFIXES,
)

MAX_LANGUAGES = 4

# Checked in order: a Japanese name mixing kanji and kana resolves to Han.
_SCRIPT_PATTERNS = [
    ("han", re.compile(r"[\u3400-\u4dbf\u4e00-\u9fff\uf900-\ufaff]")),
    ("kana", re.compile(r"[\u3040-\u309f\u30a0-\u30ff\u31f0-\u31ff]")),
    ("hangul", re.compile(r"[\u1100-\u11ff\u3130-\u318f\uac00-\ud7af]")),
    ("arabic", re.compile(r"[\u0600-\u06ff\u0750-\u077f\u08a0-\u08ff]")),
]


def detect_script(text: str) -> Optional[str]:
    for family, pattern in _SCRIPT_PATTERNS:
        if pattern.search(text):
            return family
    return None


def plan(name: str, limit: int = MAX_LANGUAGES) -> List[str]:
    """Ordered language editions worth querying for ``name``."""
    limit = max(1, min(limit, MAX_LANGUAGES))
    script = detect_script(name)
    if script:
        return list(SCRIPT_LANGUAGES[script][:limit])

    lower = name.lower()
    for _, keywords, languages in KEYWORD_FAMILIES:
        if any(kw in lower for kw in keywords):
            return list(languages[:limit])
    return list(DEFAULT_LANGUAGES[:limit])


def query_variants(name: str) -> List[str]:
    """Search strings to try, most literal first."""
    query = name.strip()
    variants: list[str] = [query]
    lower = query.lower()

    for suffix in STRIPPABLE_SUFFIXES:
        if lower.endswith(" " + suffix):
            stripped = query[: -(len(suffix) + 1)].strip()
            if stripped:
                variants.append(stripped)

    for abbrev, expansion in ABBREVIATIONS.items():
        pattern = re.compile(rf"(?<!\S){re.escape(abbrev)}\.?(?!\S)", re.IGNORECASE)
        expanded = pattern.sub(expansion, query)
        if expanded != query:
            variants.append(expanded)

    if not lower.startswith(ARTICLE_PREFIX):
        variants.append(ARTICLE_PREFIX + query)

    return list(dict.fromkeys(variants))
