from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from adjacent_api.core.markets import filter_markets, format_market_title, market_title, page
from adjacent_api.core.models import NewsQuery, SimilarityMatch


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("will-the-fed-cut-rates-in-march", "Will The Fed Cut Rates In March"),
        ("BITCOIN-ABOVE-100K", "Bitcoin Above 100k"),
        ("Already Formatted", "Already Formatted"),
    ],
)
def test_format_market_title(raw, expected) -> None:
    assert format_market_title(raw) == expected


def test_market_title_reads_nested_question() -> None:
    assert market_title({"Question": {"Title": "will-it-rain"}}) == "will-it-rain"
    assert market_title({"Question": {"Title": ""}}) is None
    assert market_title({"Question": "flat"}) is None
    assert market_title({}) is None


def test_filter_markets_single_and_combined(markets) -> None:
    kalshi = filter_markets(markets, platform="kalshi")
    assert kalshi and all(m["Platform"] == "kalshi" for m in kalshi)

    combined = filter_markets(markets, platform="kalshi", status="closed", category="crypto")
    assert combined
    assert all(
        m["Platform"] == "kalshi" and m["Status"] == "closed" and m["Category"] == "crypto" for m in combined
    )
    assert [m["Id"] for m in combined] == sorted(m["Id"] for m in combined)


def test_filter_markets_ignores_missing_filters(markets) -> None:
    assert filter_markets(markets, platform=None, status=None, category=None) == markets


def test_page_bounds(markets) -> None:
    first = page(markets, offset=0, size=100)
    assert len(first) == 100
    assert first == markets[:100]
    assert page(markets, offset=len(markets), size=100) == []
    assert page(markets, offset=10_000, size=100) == []
    with pytest.raises(ValueError):
        page(markets, offset=-1, size=100)


def test_news_query_default_window() -> None:
    now = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)
    start, end = NewsQuery(market="election").window(days_back=7, now=now)
    assert end == now
    assert start == now - timedelta(days=7)


def test_news_query_explicit_window() -> None:
    query = NewsQuery(market="election", start_date=date(2024, 1, 1), end_date=date(2024, 1, 1))
    start, end = query.window(days_back=7)
    assert start == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert end.date() == date(2024, 1, 1)
    assert end > start


def test_news_query_rejects_inverted_window() -> None:
    with pytest.raises(ValidationError):
        NewsQuery(market="election", start_date=date(2024, 2, 1), end_date=date(2024, 1, 1))


def test_similarity_match_drops_embedding_field() -> None:
    match = SimilarityMatch.from_record(
        {"Platform": "kalshi", "vector": [1.0]},
        similarity=0.5,
        embedding_field="vector",
    )
    assert match.model_dump() == {"similarity": 0.5, "Platform": "kalshi"}
