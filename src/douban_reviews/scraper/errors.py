# src/douban_reviews/scraper/errors.py

"""Errors surfaced to callers of the crawler.

Per-item parse problems and per-page fetch failures are handled inside the
crawler. Only a run that ends with no records at all raises one of these.
"""

from __future__ import annotations

EMPTY_RESULT_CAUSES = (
    "the IP address is blocked or rate limited",
    "the user id is invalid",
    "the user's listing is private or empty",
)


def describe_empty_result() -> str:
    causes = "; ".join(EMPTY_RESULT_CAUSES)
    return f"No reviews were collected. Possible causes: {causes}."


class CrawlError(Exception):
    """Base class for crawl failures."""

    def __init__(self, message: str, detail: str = "") -> None:
        super().__init__(f"{message} {detail}".strip())


class NetworkError(CrawlError):
    """The transport could not complete the request."""


class BlockedError(CrawlError):
    """An anti-scraping defense rejected the request."""

    def __init__(self, reason: str, detail: str = "") -> None:
        self.reason = reason
        super().__init__(f"Request blocked ({reason}).", detail)


class RedirectedError(CrawlError):
    """Access was denied by redirecting away from the category listing."""

    def __init__(self, target_host: str, detail: str = "") -> None:
        self.target_host = target_host
        super().__init__(
            f"Redirected to {target_host or 'an unknown location'}; "
            "a valid cookie is probably required.",
            detail,
        )


class EmptyResultError(CrawlError):
    """The crawl finished without collecting a single record."""

    def __init__(self) -> None:
        super().__init__(describe_empty_result())
