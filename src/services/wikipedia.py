from __future__ import annotations

import threading
import time
import urllib.parse
from dataclasses import dataclass
from typing import List, Optional

import requests
from loguru import logger

from config import Configuration
from models import CandidateEntry
from services.extractor import extract_candidate, extract_search_titles
from services.lexicon import LANGUAGE_ALIASES


class WikipediaError(RuntimeError):
    pass


@dataclass
class _RetryPolicy:
    retries: int = 1
    base_delay: float = 0.3


def api_language(language: str) -> str:
    lang = language.strip().lower()
    return LANGUAGE_ALIASES.get(lang, lang)


class WikipediaClient:
    """Blocking client for the page-summary and full-text search endpoints.

    Each worker thread gets its own ``requests.Session``; ``close`` releases
    all of them.
    """

    def __init__(self, cfg: Configuration) -> None:
        self.cfg = cfg
        self._local = threading.local()
        self._sessions: list[requests.Session] = []
        self._sessions_lock = threading.Lock()

    def _session(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers.update(
                {"Accept": "application/json", "User-Agent": self.cfg.wiki_user_agent}
            )
            self._local.session = session
            with self._sessions_lock:
                self._sessions.append(session)
        return session

    def close(self) -> None:
        with self._sessions_lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()

    def _get(self, url: str, params: Optional[dict] = None) -> Optional[dict]:
        """GET a JSON document; None on 404, WikipediaError on anything else unusable."""
        policy = _RetryPolicy()
        attempt = 0
        while True:
            attempt += 1
            try:
                resp = self._session().get(url, params=params, timeout=self.cfg.wiki_http_timeout)
            except requests.RequestException as exc:  # network error
                if attempt <= policy.retries:
                    time.sleep(policy.base_delay * attempt)
                    continue
                raise WikipediaError(f"request error: {exc}")

            if resp.status_code == 404:
                return None

            if resp.status_code in (429, 500, 502, 503, 504):
                if attempt <= policy.retries:
                    time.sleep(policy.base_delay * attempt)
                    continue
                raise WikipediaError(f"upstream {resp.status_code}: {resp.text[:300]}")

            if not resp.ok:
                raise WikipediaError(f"upstream {resp.status_code}: {resp.text[:300]}")

            try:
                return resp.json()
            except ValueError:
                raise WikipediaError("invalid json response")

    def summary(self, title: str, language: str) -> Optional[CandidateEntry]:
        lang = api_language(language)
        quoted = urllib.parse.quote(title.strip().replace(" ", "_"), safe="")
        url = f"{self.cfg.rest_base(lang)}/page/summary/{quoted}"
        payload = self._get(url)
        if payload is None:
            logger.debug("summary miss lang={} title={}", lang, title)
            return None
        return extract_candidate(payload, lang)

    def search_titles(self, query: str, language: str, *, limit: Optional[int] = None) -> List[str]:
        lang = api_language(language)
        params = {
            "action": "query",
            "list": "search",
            "format": "json",
            "srsearch": query,
            "srlimit": limit or self.cfg.wiki_search_limit,
        }
        payload = self._get(self.cfg.action_base(lang), params)
        if payload is None:
            return []
        return extract_search_titles(payload)
