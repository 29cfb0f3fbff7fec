from __future__ import annotations

import os
from typing import Any, Optional

from pydantic import BaseModel, Field


class Configuration(BaseModel):
    # Wikipedia endpoints, templated per language edition
    wiki_rest_url: str = Field(default="https://{lang}.wikipedia.org/api/rest_v1")
    wiki_action_url: str = Field(default="https://{lang}.wikipedia.org/w/api.php")
    wiki_user_agent: str = Field(default="place-resolver/0.1 (https://github.com/place-resolver)")
    wiki_http_timeout: float = Field(default=6.0)
    wiki_search_limit: int = Field(default=5)

    # Fan-out
    task_timeout_sec: float = Field(default=8.0)
    resolve_deadline_sec: float = Field(default=10.0)
    max_languages: int = Field(default=4)

    # Rate limiting
    cooldown_sec: float = Field(default=1.0)
    cooldown_mode: str = Field(default="wait")  # wait | reject

    # Cache
    cache_max_items: int = Field(default=50)
    cache_ttl_sec: int = Field(default=7 * 24 * 3600)
    cache_path: Optional[str] = Field(default=None)

    # strict: unvalidated fallback candidates are never surfaced
    fallback_mode: str = Field(default="strict")  # strict | legacy

    @classmethod
    def from_env(cls, overrides: Optional[dict[str, Any]] = None) -> "Configuration":
        raw: dict[str, Any] = {}

        env_map = {
            "wiki_rest_url": os.getenv("WIKI_REST_URL"),
            "wiki_action_url": os.getenv("WIKI_ACTION_URL"),
            "wiki_user_agent": os.getenv("WIKI_USER_AGENT"),
            "wiki_http_timeout": os.getenv("WIKI_HTTP_TIMEOUT"),
            "wiki_search_limit": os.getenv("WIKI_SEARCH_LIMIT"),
            "task_timeout_sec": os.getenv("TASK_TIMEOUT_SEC"),
            "resolve_deadline_sec": os.getenv("RESOLVE_DEADLINE_SEC"),
            "max_languages": os.getenv("MAX_LANGUAGES"),
            "cooldown_sec": os.getenv("COOLDOWN_SEC"),
            "cooldown_mode": os.getenv("COOLDOWN_MODE"),
            "cache_max_items": os.getenv("CACHE_MAX_ITEMS"),
            "cache_ttl_sec": os.getenv("CACHE_TTL_SEC"),
            "cache_path": os.getenv("CACHE_PATH"),
            "fallback_mode": os.getenv("FALLBACK_MODE"),
        }

        lower_fields = {"cooldown_mode", "fallback_mode"}

        for k, v in env_map.items():
            if v is None:
                continue
            if k in lower_fields:
                raw[k] = str(v).strip().lower()
            else:
                raw[k] = v

        if overrides:
            raw.update({k: v for k, v in overrides.items() if v is not None})

        return cls(**raw)

    def require_valid(self) -> None:
        if self.cooldown_mode not in {"wait", "reject"}:
            raise ValueError(f"COOLDOWN_MODE must be 'wait' or 'reject', got {self.cooldown_mode!r}")
        if self.fallback_mode not in {"strict", "legacy"}:
            raise ValueError(f"FALLBACK_MODE must be 'strict' or 'legacy', got {self.fallback_mode!r}")
        if not 1 <= self.max_languages <= 4:
            raise ValueError("MAX_LANGUAGES must be between 1 and 4")

    def log_summary(self) -> str:
        return (
            "rest=%s timeout=%s task_timeout=%s deadline=%s langs=%s cooldown=%s/%s cache=%s/%ss path=%s fallback=%s"
            % (
                self.wiki_rest_url,
                self.wiki_http_timeout,
                self.task_timeout_sec,
                self.resolve_deadline_sec,
                self.max_languages,
                self.cooldown_sec,
                self.cooldown_mode,
                self.cache_max_items,
                self.cache_ttl_sec,
                self.cache_path or "memory",
                self.fallback_mode,
            )
        )

    def rest_base(self, lang: str) -> str:
        return self.wiki_rest_url.format(lang=lang).rstrip("/")

    def action_base(self, lang: str) -> str:
        return self.wiki_action_url.format(lang=lang)
