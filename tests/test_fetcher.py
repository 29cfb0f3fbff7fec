from __future__ import annotations

import asyncio
import threading
import time

from models import Matched, NoMatch, NoMatchReason, PlaceQuery
from services.fetcher import ConcurrentFetcher

from fakes import FakeWiki, entry

GOLDEN_GATE = (37.8199, -122.4783)
NATHAN_ROAD = "Nathan Road, Tsim Sha Tsui"


def _fetch(fetcher: ConcurrentFetcher, query: PlaceQuery, languages):
    return asyncio.run(fetcher.fetch(query, languages))


def test_direct_summary_match() -> None:
    wiki = FakeWiki(
        summaries={("en", "Golden Gate Bridge"): entry("Golden Gate Bridge", coordinate=GOLDEN_GATE)}
    )
    query = PlaceQuery("Golden Gate Bridge", coordinate=GOLDEN_GATE)
    result = _fetch(ConcurrentFetcher(wiki), query, ["en", "zh", "fr", "de"])
    assert isinstance(result, Matched)
    assert result.candidate.title == "Golden Gate Bridge"
    assert result.score.total > 0.95


def test_search_keeps_best_scoring_hit() -> None:
    park = entry(
        "Kowloon Park (Hong Kong)",
        "Kowloon Park is a public park on Nathan Road in Tsim Sha Tsui, Hong Kong.",
    )
    walled = entry("Kowloon Walled City", "Kowloon Walled City was an enclave in Kowloon City.")
    wiki = FakeWiki(
        summaries={("en", park.title): park, ("en", walled.title): walled},
        searches={("en", "Kowloon Park"): [walled.title, park.title]},
    )
    query = PlaceQuery("Kowloon Park", address=NATHAN_ROAD)
    result = _fetch(ConcurrentFetcher(wiki), query, ["en"])
    assert isinstance(result, Matched)
    assert result.candidate.title == "Kowloon Park (Hong Kong)"
    # the search hits were only fetched once the direct lookup missed
    assert wiki.calls[0] == ("summary", "en", "Kowloon Park")


def test_no_candidates_is_no_overlap() -> None:
    result = _fetch(ConcurrentFetcher(FakeWiki()), PlaceQuery("Nowhere In Particular"), ["en", "fr"])
    assert result == NoMatch(NoMatchReason.NO_OVERLAP)


def test_unrelated_candidate_dropped() -> None:
    opera = entry("Sydney Opera House", "A performing arts centre in Sydney.", coordinate=(-33.8568, 151.2153))
    wiki = FakeWiki(searches={("en", "Eiffel Tower"): [opera.title]}, summaries={("en", opera.title): opera})
    query = PlaceQuery("Eiffel Tower", coordinate=(48.8584, 2.2945))
    result = _fetch(ConcurrentFetcher(wiki, fallback_mode="legacy"), query, ["en"])
    assert result == NoMatch(NoMatchReason.NO_OVERLAP)


def test_same_name_in_another_city_fails_validation() -> None:
    church = entry("St Mary's Church", "St Mary's Church is a parish church in London, England.")
    wiki = FakeWiki(summaries={("en", church.title): church})
    query = PlaceQuery("St Mary's Church", address="Paris")
    result = _fetch(ConcurrentFetcher(wiki), query, ["en", "fr"])
    assert result == NoMatch(NoMatchReason.VALIDATION_FAILED)


def test_short_ambiguous_name_without_matching_address() -> None:
    singapore = entry("Central", "Central is a district of Singapore.")
    new_york = entry("Central Park", "Central Park is an urban park in Manhattan, New York City.", language="fr")
    wiki = FakeWiki(
        summaries={("en", "Central"): singapore, ("fr", "Central Park"): new_york},
        searches={("fr", "Central"): ["Central Park"]},
    )
    query = PlaceQuery("Central", address="Queen's Road, Hong Kong")
    assert query.coordinate is None
    result = _fetch(ConcurrentFetcher(wiki), query, ["en", "fr"])
    assert isinstance(result, NoMatch)
    assert result.reason is NoMatchReason.VALIDATION_FAILED


def test_failing_language_does_not_sink_the_batch() -> None:
    bridge = entry("Golden Gate Bridge", coordinate=GOLDEN_GATE)
    wiki = FakeWiki(summaries={("en", bridge.title): bridge}, failing={"zh"})
    query = PlaceQuery("Golden Gate Bridge", coordinate=GOLDEN_GATE)
    fetcher = ConcurrentFetcher(wiki)
    result = _fetch(fetcher, query, ["zh", "en"])
    fetcher.close(wait=True)
    assert isinstance(result, Matched)
    assert ("summary", "zh", "Golden Gate Bridge") in wiki.calls


class _ScriptedFetcher(ConcurrentFetcher):
    """Language ``winner`` answers at once; the others block until cancelled."""

    def __init__(self, winner, candidate, **kwargs) -> None:
        super().__init__(FakeWiki(), **kwargs)
        self.winner = winner
        self.candidate = candidate
        self.cancelled: dict = {}
        self._lock = threading.Lock()

    def lookup(self, query, language, cancel):
        if language == self.winner:
            return self.candidate
        seen = cancel.wait(5.0)
        with self._lock:
            self.cancelled[language] = seen
        return None


def test_early_termination_cancels_pending_languages() -> None:
    query = PlaceQuery("Golden Gate Bridge", coordinate=GOLDEN_GATE)
    fetcher = _ScriptedFetcher("fr", entry("Golden Gate Bridge", language="fr", coordinate=GOLDEN_GATE))

    started = time.monotonic()
    result = _fetch(fetcher, query, ["en", "zh", "fr", "de"])
    elapsed = time.monotonic() - started
    fetcher.close(wait=True)

    assert isinstance(result, Matched)
    assert result.candidate.language == "fr"
    assert fetcher.cancelled == {"en": True, "zh": True, "de": True}
    assert elapsed < 4.0


def test_task_timeout_sets_cancel_token() -> None:
    query = PlaceQuery("Golden Gate Bridge")
    fetcher = _ScriptedFetcher("fr", None, task_timeout=0.2)

    started = time.monotonic()
    result = _fetch(fetcher, query, ["en", "fr"])
    elapsed = time.monotonic() - started
    fetcher.close(wait=True)

    assert result == NoMatch(NoMatchReason.NO_OVERLAP)
    assert fetcher.cancelled == {"en": True}
    assert elapsed < 4.0


def test_similar_park_on_same_street_is_not_surfaced() -> None:
    walled = entry("Kowloon Walled City Park", "A park on Nathan Road, Tsim Sha Tsui.")
    wiki = FakeWiki(summaries={("en", "Kowloon Park"): walled})
    query = PlaceQuery("Kowloon Park", address=NATHAN_ROAD)

    result = _fetch(ConcurrentFetcher(wiki), query, ["en"])

    assert isinstance(result, NoMatch)
    assert result.reason is NoMatchReason.LOW_CONFIDENCE
