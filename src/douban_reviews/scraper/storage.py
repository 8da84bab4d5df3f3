# src/douban_reviews/scraper/storage.py

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable

from douban_reviews.scraper.models import ReviewRecord


def record_to_json(record: ReviewRecord) -> str:
    """Serialize one record as a single JSON line (without newline)."""
    return json.dumps(record.to_dict(), ensure_ascii=False)


def write_records(path: Path, records: Iterable[ReviewRecord]) -> int:
    """Write records to a JSONL file, replacing any previous export.

    Returns the number of records written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with path.open("w", encoding="utf-8") as f:
        for record in records:
            f.write(record_to_json(record) + "\n")
            count += 1
    return count
