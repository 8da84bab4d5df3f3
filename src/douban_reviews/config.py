# douban_reviews/config.py

"""Shared configuration and environment setup."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from os import getenv
from typing import TypeVar

from dotenv import load_dotenv

load_dotenv(override=True)


DEFAULT_TIMEOUT = 15.0
DEFAULT_MAX_PAGES = 4
DEFAULT_AUTHENTICATED_DELAY = 1.5
DEFAULT_ANONYMOUS_DELAY = 3.0


@dataclass(frozen=True, slots=True)
class CrawlSettings:
    """Runtime knobs for a crawl run."""

    auth_token: str = ""
    proxy_url: str | None = None
    timeout: float = DEFAULT_TIMEOUT
    max_pages: int = DEFAULT_MAX_PAGES
    authenticated_delay: float = DEFAULT_AUTHENTICATED_DELAY
    anonymous_delay: float = DEFAULT_ANONYMOUS_DELAY

    def __post_init__(self) -> None:
        if self.max_pages < 1:
            msg = "max_pages must be >= 1."
            raise ValueError(msg)
        if self.timeout <= 0:
            msg = "timeout must be positive."
            raise ValueError(msg)
        if self.authenticated_delay < 0 or self.anonymous_delay < 0:
            msg = "Pacing delays must be non-negative."
            raise ValueError(msg)

    def pacing_delay(self, auth_token: str) -> float:
        """Anonymous access is throttled harder, so it waits longer."""
        return self.authenticated_delay if auth_token else self.anonymous_delay


def load_settings() -> CrawlSettings:
    """Build settings from DOUBAN_* environment variables (and .env)."""
    return CrawlSettings(
        auth_token=getenv("DOUBAN_COOKIE", "").strip(),
        proxy_url=getenv("DOUBAN_PROXY_URL") or None,
        timeout=_env_number("DOUBAN_TIMEOUT", DEFAULT_TIMEOUT, float),
        max_pages=_env_number("DOUBAN_MAX_PAGES", DEFAULT_MAX_PAGES, int),
        authenticated_delay=_env_number(
            "DOUBAN_DELAY_AUTH", DEFAULT_AUTHENTICATED_DELAY, float
        ),
        anonymous_delay=_env_number(
            "DOUBAN_DELAY_ANON", DEFAULT_ANONYMOUS_DELAY, float
        ),
    )


T = TypeVar("T", int, float)


def _env_number(name: str, default: T, cast: Callable[[str], T]) -> T:
    raw = getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        msg = f"{name} must be a number, got {raw!r}."
        raise ValueError(msg) from None
