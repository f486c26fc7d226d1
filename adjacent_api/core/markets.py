from __future__ import annotations

import re
from typing import Any, Iterable, Sequence

from .models import MarketRecord

_WORD_START = re.compile(r"\b\w")

FILTER_FIELDS = {
    "platform": "Platform",
    "status": "Status",
    "category": "Category",
}


def market_title(record: MarketRecord) -> str | None:
    """Return ``Question.Title`` of a record, if present."""

    question = record.get("Question")
    if isinstance(question, dict):
        title = question.get("Title")
        if isinstance(title, str) and title:
            return title
    return None


def format_market_title(title: str) -> str:
    """Turn a slug-like title into a readable one: ``will-x-win`` -> ``Will X Win``."""

    lowered = title.replace("-", " ").lower()
    return _WORD_START.sub(lambda match: match.group(0).upper(), lowered)


def filter_markets(records: Iterable[MarketRecord], **filters: Any) -> list[MarketRecord]:
    """Keep records whose fields equal every supplied filter value.

    Filter names are ``platform``, ``status`` and ``category``; ``None`` values
    are ignored.
    """

    results = list(records)
    for name, value in filters.items():
        if value is None:
            continue
        field = FILTER_FIELDS[name]
        results = [record for record in results if record.get(field) == value]
    return results


def page(records: Sequence[MarketRecord], *, offset: int, size: int) -> list[MarketRecord]:
    if offset < 0:
        raise ValueError("offset must be non-negative")
    return list(records[offset : offset + size])
