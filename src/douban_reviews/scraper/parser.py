# src/douban_reviews/scraper/parser.py

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Sequence

from bs4 import BeautifulSoup, Tag

from douban_reviews.scraper.models import Category, ReviewRecord

logger = logging.getLogger(__name__)


# Movies render as a grid of `.item` blocks, books and music as a list of
# `.subject-item` blocks. A page only ever uses one of the two shapes.
ITEM_SELECTOR = ".item, .subject-item"

RATING_CLASS_RE = re.compile(r"^rating(\d)-")
TAG_LABEL_RE = re.compile(r"^\s*标签\s*[:：]")
BLOCKED_TITLE_MARKERS = ("禁止访问", "登录豆瓣")

Locator = Callable[[Tag], str | None]


def parse_collect_page(html: str, category: Category) -> list[ReviewRecord]:
    """Parse one page of a user's collect listing into ReviewRecords.

    Items without a resolvable title are skipped. An item that fails to
    parse is logged and skipped; the rest of the page is still returned.
    An empty list means the listing ran out or is not visible.
    """
    soup = BeautifulSoup(html, "lxml")
    _warn_on_blocked_title(soup)

    records: list[ReviewRecord] = []
    for index, item in enumerate(soup.select(ITEM_SELECTOR)):
        try:
            record = _parse_item(item, category)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Skipping unparsable item #%s: %r", index, exc)
            continue
        if record is not None:
            records.append(record)

    logger.debug("Parsed %s %s records from page.", len(records), category.value)
    return records


def _parse_item(item: Tag, category: Category) -> ReviewRecord | None:
    title = first_text(item, TITLE_LOCATORS)
    if not title:
        return None

    return ReviewRecord(
        title=title,
        category=category,
        rating=parse_rating(item),
        comment=first_text(item, COMMENT_LOCATORS),
        date=first_text(item, DATE_LOCATORS),
        tags=parse_tags(first_text(item, TAG_LOCATORS)),
    )


# ---------------------------------------------------------------------------
# Field locators
# ---------------------------------------------------------------------------


def css_text(selector: str) -> Locator:
    """Locator returning the stripped text of the first match, if any."""

    def locate(node: Tag) -> str | None:
        found = node.select_one(selector)
        if found is None:
            return None
        return found.get_text(" ", strip=True)

    locate.__name__ = f"css_text({selector!r})"
    return locate


def first_text(node: Tag, locators: Iterable[Locator]) -> str:
    """Return the first non-empty text produced by `locators`, else ''."""
    for locate in locators:
        text = locate(node)
        if text:
            return text
    return ""


# Movies: <li class="title"><a>..</a></li>; books/music: <div class="info"><h2><a>
TITLE_LOCATORS: Sequence[Locator] = (css_text(".title a"), css_text(".info h2 a"))
# Books/music sometimes put the comment straight into .short-note
COMMENT_LOCATORS: Sequence[Locator] = (css_text(".comment"), css_text(".short-note"))
DATE_LOCATORS: Sequence[Locator] = (css_text(".date"),)
TAG_LOCATORS: Sequence[Locator] = (css_text(".tags"),)


def parse_rating(item: Tag) -> int:
    """Read the star rating from a `ratingN-t` class token, 0 if absent.

    Class lists look like ``["rating4-t"]`` or ``["date", "rating5-t"]``;
    the token is matched by pattern wherever it appears.
    """
    for node in item.find_all(class_=True):
        for token in node.get("class") or []:
            m = RATING_CLASS_RE.match(token)
            if m and int(m.group(1)) <= 5:
                return int(m.group(1))
    return 0


def parse_tags(text: str) -> tuple[str, ...]:
    """Split a '标签: a b c' block into ('a', 'b', 'c')."""
    stripped = TAG_LABEL_RE.sub("", text, count=1).strip()
    if not stripped:
        return ()
    return tuple(stripped.split())


def _warn_on_blocked_title(soup: BeautifulSoup) -> None:
    title_tag = soup.find("title")
    if title_tag is None:
        return
    title = title_tag.get_text(strip=True)
    if any(marker in title for marker in BLOCKED_TITLE_MARKERS):
        logger.warning("Page title suggests a block or login wall: %s", title)
