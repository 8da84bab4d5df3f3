# src/douban_reviews/scraper/client.py

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Protocol
from urllib.parse import urlsplit

import httpx

from douban_reviews.config import DEFAULT_TIMEOUT
from douban_reviews.scraper.models import (
    Blocked,
    NetworkFailure,
    PageOutcome,
    RateLimited,
    Redirected,
    Success,
)

logger = logging.getLogger(__name__)


BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

# Douban answers soft blocks with HTTP 200 and one of these phrases.
BLOCK_MARKERS = (
    "检测到有异常请求",  # "abnormal request detected"
    "登录豆瓣",  # forced login wall
)

PROXY_HINT = "ensure the companion proxy process is running"


@dataclass(frozen=True, slots=True)
class TransportResponse:
    status_code: int
    text: str
    headers: Mapping[str, str] = field(default_factory=dict)


class Transport(Protocol):
    async def get(self, url: str, auth_token: str) -> TransportResponse: ...


class HttpxTransport:
    """Async HTTP transport that looks like a desktop browser.

    Redirects are never followed: Douban sends a user back from a category
    subdomain to www when the listing is not accessible, and following that
    would attribute the wrong page to the category.
    """

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        proxy_url: str | None = None,
        user_agent: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.proxy_url = proxy_url

        headers = {
            "User-Agent": user_agent or BROWSER_USER_AGENT,
            "Accept": "text/html,application/xhtml+xml",
            "Accept-Language": "zh-CN,zh;q=0.9,en;q=0.8",
        }

        kwargs: dict = {}
        if transport is not None:
            kwargs["transport"] = transport
        elif proxy_url:
            kwargs["proxy"] = proxy_url

        self._client = httpx.AsyncClient(
            headers=headers,
            timeout=timeout,
            follow_redirects=False,
            **kwargs,
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "HttpxTransport":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def get(self, url: str, auth_token: str) -> TransportResponse:
        host = urlsplit(url).hostname or "www.douban.com"
        headers = {"Referer": f"https://{host}/"}
        if auth_token:
            headers["Cookie"] = auth_token

        response = await self._client.get(url, headers=headers)
        return TransportResponse(
            status_code=response.status_code,
            text=response.text,
            headers=dict(response.headers),
        )


class PageFetcher:
    """Fetch one listing page and classify the response.

    Exactly one PageOutcome is returned per call. Nothing is retried here;
    whether to continue after a failure is up to the crawler.
    """

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    @property
    def endpoint(self) -> str:
        proxy_url = getattr(self._transport, "proxy_url", None)
        return proxy_url or "the network"

    async def aclose(self) -> None:
        close = getattr(self._transport, "aclose", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> "PageFetcher":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def fetch(self, url: str, auth_token: str = "") -> PageOutcome:
        try:
            response = await self._transport.get(url, auth_token)
        except (httpx.TransportError, OSError) as exc:
            logger.warning("Transport failure for %s: %r", url, exc)
            return NetworkFailure(
                f"Cannot reach {self.endpoint} ({type(exc).__name__}); "
                f"{PROXY_HINT}."
            )
        except httpx.RequestError as exc:
            # e.g. DecodingError for a corrupt compressed body
            logger.warning("Request error for %s: %r", url, exc)
            return NetworkFailure(f"Request failed ({type(exc).__name__}): {exc}")

        outcome = classify_response(response)
        logger.debug(
            "Fetched %s (status=%s) -> %s",
            url,
            response.status_code,
            type(outcome).__name__,
        )
        return outcome


def classify_response(response: TransportResponse) -> PageOutcome:
    """Map an HTTP response onto a PageOutcome."""
    status = response.status_code

    if status in (301, 302):
        location = _header(response.headers, "location")
        logger.warning("Redirect intercepted, target: %s", location or "<none>")
        return Redirected(urlsplit(location).hostname or location)
    if status == 403:
        return Blocked("forbidden")
    if status == 418:
        return Blocked("flagged-as-bot")
    if status == 429:
        return RateLimited()
    if not 200 <= status < 300:
        return NetworkFailure(f"http {status}")

    if any(marker in response.text for marker in BLOCK_MARKERS):
        return Blocked("content-marker")

    return Success(response.text)


def _header(headers: Mapping[str, str], name: str) -> str:
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return ""


Sleep = Callable[[float], Awaitable[None]]


class Pacer:
    """Wait between consecutive page requests.

    The first request of a category goes out immediately; every later one
    waits `delay` seconds plus a small random jitter so the requests do not
    form a perfectly regular pattern.
    """

    def __init__(
        self,
        delay: float,
        *,
        jitter: float = 0.15,
        sleep: Sleep | None = None,
    ) -> None:
        if delay < 0:
            msg = "delay must be non-negative."
            raise ValueError(msg)
        if jitter < 0:
            msg = "jitter must be non-negative."
            raise ValueError(msg)

        self.delay = delay
        self._jitter = jitter
        self._sleep = sleep or asyncio.sleep

    async def wait(self, page: int) -> None:
        if page <= 1:
            return
        pause = self.delay + random.uniform(0.0, self._jitter)
        logger.debug("Pacing: sleeping %.2fs before page %s.", pause, page)
        await self._sleep(pause)
