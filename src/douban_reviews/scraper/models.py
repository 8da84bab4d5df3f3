# src/douban_reviews/scraper/models.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from douban_reviews.scraper.errors import (
    BlockedError,
    CrawlError,
    NetworkError,
    RedirectedError,
)


class Category(str, Enum):
    MOVIE = "movie"
    BOOK = "book"
    MUSIC = "music"

    @property
    def subdomain(self) -> str:
        """Douban serves each category listing from its own subdomain."""
        return self.value


@dataclass(frozen=True, slots=True)
class ReviewRecord:
    """A single rated item from a user's collect listing."""

    title: str
    category: Category
    rating: int = 0  # 0 means "not rated"
    comment: str = ""
    date: str = ""  # kept as shown on the site, e.g. "2024-01-31"
    tags: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.title:
            msg = "title must be non-empty."
            raise ValueError(msg)
        if not 0 <= self.rating <= 5:
            msg = f"rating must be within 0..5, got {self.rating}."
            raise ValueError(msg)

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "rating": self.rating,
            "comment": self.comment,
            "date": self.date,
            "category": self.category.value,
            "tags": list(self.tags),
        }


# ---------------------------------------------------------------------------
# Page outcomes: exactly one is produced per fetch attempt
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Success:
    markup: str


@dataclass(frozen=True, slots=True)
class Blocked:
    reason: str

    def describe(self) -> str:
        return f"blocked ({self.reason})"

    def to_error(self, detail: str = "") -> CrawlError:
        return BlockedError(self.reason, detail)


@dataclass(frozen=True, slots=True)
class RateLimited:
    def describe(self) -> str:
        return "rate limited (HTTP 429)"

    def to_error(self, detail: str = "") -> CrawlError:
        return BlockedError("rate-limited", detail)


@dataclass(frozen=True, slots=True)
class Redirected:
    target_host: str

    def describe(self) -> str:
        return f"redirected to {self.target_host or 'an unknown location'}"

    def to_error(self, detail: str = "") -> CrawlError:
        return RedirectedError(self.target_host, detail)


@dataclass(frozen=True, slots=True)
class NetworkFailure:
    message: str

    def describe(self) -> str:
        return self.message

    def to_error(self, detail: str = "") -> CrawlError:
        return NetworkError(self.message, detail)


PageFailure = Blocked | RateLimited | Redirected | NetworkFailure
PageOutcome = Success | PageFailure


# ---------------------------------------------------------------------------
# Crawl session state, owned by a single crawl call
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class PageCursor:
    page: int = 1
    offset: int = 0

    def advance(self, page_size: int) -> None:
        self.page += 1
        self.offset += page_size


@dataclass(slots=True)
class CrawlSession:
    records: list[ReviewRecord] = field(default_factory=list)
    cursors: dict[Category, PageCursor] = field(default_factory=dict)
    failures: list[PageFailure] = field(default_factory=list)

    def cursor(self, category: Category) -> PageCursor:
        return self.cursors.setdefault(category, PageCursor())
