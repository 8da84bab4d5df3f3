# src/douban_reviews/scraper/cli.py

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from pathlib import Path

from douban_reviews.config import load_settings
from douban_reviews.scraper.crawler import crawl_user_reviews
from douban_reviews.scraper.errors import CrawlError
from douban_reviews.scraper.models import Category
from douban_reviews.scraper.storage import write_records

logger = logging.getLogger(__name__)
progress_logger = logging.getLogger("douban_reviews.progress")


def main(argv: list[str] | None = None) -> None:
    """Entry point for the douban-reviews CLI."""
    args = _build_arg_parser().parse_args(argv)

    _configure_logging(verbose=args.verbose)

    settings = load_settings()
    overrides: dict = {}
    if args.cookie is not None:
        overrides["auth_token"] = args.cookie.strip()
    if args.proxy is not None:
        overrides["proxy_url"] = args.proxy or None
    if args.max_pages is not None:
        overrides["max_pages"] = args.max_pages
    if overrides:
        settings = replace(settings, **overrides)

    categories = [Category(c) for c in args.category] or [Category.MOVIE]
    output_path = Path(args.output or f"data/{args.user_id}_reviews.jsonl")

    try:
        records = asyncio.run(
            crawl_user_reviews(
                args.user_id,
                settings.auth_token,
                progress_logger.info,
                categories=categories,
                settings=settings,
            ),
        )
    except CrawlError as exc:
        logger.error("%s", exc)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.warning("Interrupted by user. Exiting.")
        sys.exit(1)

    written = write_records(output_path, records)
    logger.info("Done. Wrote %s records to %s.", written, output_path)


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="douban-reviews",
        description="Export a Douban user's rated items into a JSONL file.",
    )

    parser.add_argument(
        "user_id",
        help="Douban user id (the part after /people/ in the profile URL).",
    )
    parser.add_argument(
        "--cookie",
        default=None,
        help="Cookie header of a logged-in session (default: $DOUBAN_COOKIE).",
    )
    parser.add_argument(
        "--category",
        action="append",
        choices=[c.value for c in Category],
        default=[],
        help="Category to crawl; repeat for several (default: movie).",
    )
    parser.add_argument(
        "--max-pages",
        type=_positive_int,
        default=None,
        help="Maximum listing pages per category (default: $DOUBAN_MAX_PAGES or 4).",
    )
    parser.add_argument(
        "--proxy",
        default=None,
        help="URL of the companion proxy process (default: $DOUBAN_PROXY_URL).",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Path to output JSONL file (default: data/<user_id>_reviews.jsonl).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging.",
    )

    return parser


def _positive_int(raw: str) -> int:
    value = int(raw)
    if value < 1:
        msg = "must be >= 1"
        raise argparse.ArgumentTypeError(msg)
    return value


def _configure_logging(*, verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


if __name__ == "__main__":
    # python -m douban_reviews.scraper.cli -v some_user --category movie
    main()
