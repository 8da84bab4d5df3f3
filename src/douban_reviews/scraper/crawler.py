# src/douban_reviews/scraper/crawler.py

"""Paginated crawl of a user's Douban collect listings.

Pages of one category are fetched strictly one after another with a pacing
delay in between; that delay is the only defense against rate limiting, so
nothing here runs requests concurrently. The first failed page ends the
category for the rest of the run, and nothing is retried.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import TypeVar
from urllib.parse import quote

from douban_reviews.config import CrawlSettings
from douban_reviews.scraper.client import HttpxTransport, PageFetcher, Pacer, Sleep
from douban_reviews.scraper.errors import (
    EmptyResultError,
    describe_empty_result,
)
from douban_reviews.scraper.models import Category, CrawlSession, ReviewRecord, Success
from douban_reviews.scraper.parser import parse_collect_page

logger = logging.getLogger(__name__)


PAGE_SIZE = 15

LogSink = Callable[[str], None]
T = TypeVar("T")


def build_collect_url(user_id: str, category: Category, start: int) -> str:
    """Build the grid-mode collect listing URL for one page."""
    return (
        f"https://{category.subdomain}.douban.com/people/{quote(user_id, safe='')}"
        f"/collect?start={start}&sort=time&rating=all&filter=all&mode=grid"
    )


async def crawl_user_reviews(
    user_id: str,
    auth_token: str = "",
    log: LogSink | None = None,
    *,
    categories: Iterable[Category] = (Category.MOVIE,),
    fetcher: PageFetcher | None = None,
    settings: CrawlSettings | None = None,
    sleep: Sleep | None = None,
    cancel_event: asyncio.Event | None = None,
) -> list[ReviewRecord]:
    """Crawl every requested category and return all records in page order.

    Args:
        user_id: Douban user id or vanity name from the profile URL.
        auth_token: Raw Cookie header value. Empty means anonymous access,
            which gets a longer pacing delay.
        log: Callback receiving human-readable progress messages.
        categories: Categories to crawl, in order.
        fetcher: PageFetcher to use. When omitted, one is created from
            `settings` and closed again before returning.
        settings: Crawl settings; defaults to CrawlSettings().
        sleep: Awaitable sleep used for pacing (injectable for tests).
        cancel_event: When set, the pending pacing wait or page request is
            abandoned and the records collected so far are returned.

    Raises:
        ValueError: If `user_id` is empty.
        NetworkError, BlockedError, RedirectedError: If no records were
            collected and a page failed for that reason.
        EmptyResultError: If no records were collected and no page failed.
    """
    user_id = user_id.strip()
    if not user_id:
        msg = "user_id must be non-empty."
        raise ValueError(msg)

    settings = settings or CrawlSettings()
    emit = _make_emitter(log)

    owns_fetcher = fetcher is None
    if fetcher is None:
        fetcher = PageFetcher(
            HttpxTransport(timeout=settings.timeout, proxy_url=settings.proxy_url),
        )

    pacer = Pacer(settings.pacing_delay(auth_token), sleep=sleep)
    session = CrawlSession()

    emit(f"Mode: requests go through {fetcher.endpoint}")
    if auth_token:
        emit("Cookie loaded, crawling as a logged-in user")
    else:
        emit(
            "No cookie supplied, crawling anonymously "
            "(public items only, stricter rate limits)"
        )

    try:
        for category in categories:
            if _cancelled(cancel_event):
                break
            await _crawl_category(
                session,
                fetcher,
                pacer,
                user_id=user_id,
                auth_token=auth_token,
                category=category,
                max_pages=settings.max_pages,
                emit=emit,
                cancel_event=cancel_event,
            )
    finally:
        if owns_fetcher:
            await fetcher.aclose()

    if _cancelled(cancel_event):
        emit(f"Crawl cancelled, returning {len(session.records)} records")
        return session.records

    if not session.records:
        if session.failures:
            raise session.failures[0].to_error(describe_empty_result())
        raise EmptyResultError()

    logger.info("Crawl for %s finished with %s records.", user_id, len(session.records))
    return session.records


async def _crawl_category(
    session: CrawlSession,
    fetcher: PageFetcher,
    pacer: Pacer,
    *,
    user_id: str,
    auth_token: str,
    category: Category,
    max_pages: int,
    emit: LogSink,
    cancel_event: asyncio.Event | None,
) -> None:
    cursor = session.cursor(category)
    label = category.value.upper()

    while cursor.page <= max_pages:
        if _cancelled(cancel_event):
            return
        await _unless_cancelled(pacer.wait(cursor.page), cancel_event)
        if _cancelled(cancel_event):
            return

        url = build_collect_url(user_id, category, cursor.offset)
        emit(f"[{label}] P{cursor.page} requesting...")
        outcome = await _unless_cancelled(fetcher.fetch(url, auth_token), cancel_event)
        if outcome is None:
            return

        if not isinstance(outcome, Success):
            session.failures.append(outcome)
            emit(f"[{label}] stopped: {outcome.describe()}")
            return

        records = parse_collect_page(outcome.markup, category)
        if not records:
            if cursor.page == 1:
                emit(f"[{label}] no data, or the listing is private")
            return

        emit(f"[{label}] P{cursor.page} captured {len(records)} items")
        session.records.extend(records)
        cursor.advance(PAGE_SIZE)

    logger.debug("Reached page limit (%s) for %s.", max_pages, category.value)


def _make_emitter(log: LogSink | None) -> LogSink:
    def emit(message: str) -> None:
        logger.debug(message)
        if log is None:
            return
        try:
            log(message)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Log sink raised %r; continuing crawl.", exc)

    return emit


def _cancelled(cancel_event: asyncio.Event | None) -> bool:
    return cancel_event is not None and cancel_event.is_set()


async def _unless_cancelled(
    awaitable: Awaitable[T],
    cancel_event: asyncio.Event | None,
) -> T | None:
    """Await `awaitable`, abandoning it as soon as `cancel_event` is set.

    Returns None when the event won the race.
    """
    if cancel_event is None:
        return await awaitable

    work = asyncio.ensure_future(awaitable)
    stop = asyncio.ensure_future(cancel_event.wait())
    try:
        await asyncio.wait({work, stop}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (work, stop):
            if not task.done():
                task.cancel()
        await asyncio.gather(work, stop, return_exceptions=True)

    if work.cancelled():
        return None
    return work.result()
