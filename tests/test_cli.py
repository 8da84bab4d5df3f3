"""Tests for the command-line entry point."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from douban_reviews.scraper import cli
from douban_reviews.scraper.errors import EmptyResultError
from douban_reviews.scraper.models import Category, ReviewRecord


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("DOUBAN_COOKIE", "DOUBAN_PROXY_URL", "DOUBAN_MAX_PAGES"):
        monkeypatch.delenv(name, raising=False)


def test_cli_writes_records(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    calls: dict = {}

    async def fake_crawl(user_id, auth_token, log, *, categories, settings):
        calls.update(
            user_id=user_id,
            auth_token=auth_token,
            categories=categories,
            max_pages=settings.max_pages,
        )
        log("progress")
        return [ReviewRecord(title="Heat", category=Category.MOVIE, rating=5)]

    monkeypatch.setattr(cli, "crawl_user_reviews", fake_crawl)
    output = tmp_path / "reviews.jsonl"

    cli.main(
        [
            "someone",
            "--cookie",
            "dbcl2=abc",
            "--category",
            "movie",
            "--category",
            "book",
            "--max-pages",
            "2",
            "--output",
            str(output),
        ],
    )

    assert calls == {
        "user_id": "someone",
        "auth_token": "dbcl2=abc",
        "categories": [Category.MOVIE, Category.BOOK],
        "max_pages": 2,
    }
    (line,) = output.read_text(encoding="utf-8").splitlines()
    assert json.loads(line)["title"] == "Heat"


def test_cli_exits_on_crawl_error(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    async def fake_crawl(*args, **kwargs):
        raise EmptyResultError()

    monkeypatch.setattr(cli, "crawl_user_reviews", fake_crawl)
    output = tmp_path / "reviews.jsonl"

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["someone", "--output", str(output)])

    assert excinfo.value.code == 1
    assert not output.exists()
