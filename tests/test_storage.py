"""Tests for JSONL export."""

from __future__ import annotations

import json
from pathlib import Path

from douban_reviews.scraper.models import Category, ReviewRecord
from douban_reviews.scraper.storage import record_to_json, write_records


def test_record_to_json_keeps_unicode() -> None:
    record = ReviewRecord(title="活着", category=Category.BOOK, tags=("小说",))
    line = record_to_json(record)
    assert "活着" in line
    assert json.loads(line)["tags"] == ["小说"]


def test_write_records_replaces_previous_export(tmp_path: Path) -> None:
    path = tmp_path / "out" / "reviews.jsonl"
    first = [ReviewRecord(title=f"t{i}", category=Category.MOVIE) for i in range(3)]

    assert write_records(path, first) == 3
    assert write_records(path, first[:1]) == 1

    lines = path.read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["title"] for line in lines] == ["t0"]
