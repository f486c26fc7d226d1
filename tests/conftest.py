from __future__ import annotations

from typing import Any, Callable

import pytest
from fastapi.testclient import TestClient

from adjacent_api.api.auth import get_auth_backend
from adjacent_api.api.routes import get_dataset, get_news_client, get_similarity
from adjacent_api.app import create_app
from adjacent_api.config import Settings, get_settings
from adjacent_api.core.models import SimilarityMatch

PLATFORMS = ["kalshi", "polymarket", "manifold"]
STATUSES = ["active", "closed"]
CATEGORIES = ["politics", "crypto", "sports", "economics"]


def build_markets(count: int) -> list[dict[str, Any]]:
    return [
        {
            "Question": {"Title": f"market-number-{index}"},
            "Platform": PLATFORMS[index % len(PLATFORMS)],
            "Status": STATUSES[index % len(STATUSES)],
            "Category": CATEGORIES[index % len(CATEGORIES)],
            "Id": index,
            "question_embedding": [1.0, float(index)],
        }
        for index in range(count)
    ]


class FakeDataset:
    def __init__(self, records: list[dict[str, Any]] | None = None, error: Exception | None = None) -> None:
        self.records = records or []
        self.error = error
        self.calls = 0

    async def fetch_all(self) -> list[dict[str, Any]]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.records)


class FakeNewsClient:
    def __init__(self, result: Any = None, error: Exception | None = None) -> None:
        self.result = result if result is not None else {"results": []}
        self.error = error
        self.calls: list[dict[str, Any]] = []

    async def search(self, query: str, **kwargs: Any) -> Any:
        self.calls.append({"query": query, **kwargs})
        if self.error is not None:
            raise self.error
        return self.result


class FakeStrategy:
    name = "fake"
    default_threshold = 0.5
    default_count = 3

    def __init__(self, matches: list[SimilarityMatch] | None = None, error: Exception | None = None) -> None:
        self.matches = matches or []
        self.error = error
        self.calls: list[dict[str, Any]] = []

    async def find_related(self, headline: str, *, threshold: float, count: int) -> list[SimilarityMatch]:
        self.calls.append({"headline": headline, "threshold": threshold, "count": count})
        if self.error is not None:
            raise self.error
        return list(self.matches)


class FakeAuthBackend:
    def __init__(self, plans: dict[str, str] | None = None, error: Exception | None = None) -> None:
        self.plans = plans or {}
        self.error = error
        self.calls: list[str] = []

    async def lookup_plan(self, api_key: str) -> str | None:
        self.calls.append(api_key)
        if self.error is not None:
            raise self.error
        return self.plans.get(api_key)


@pytest.fixture
def markets() -> list[dict[str, Any]]:
    return build_markets(250)


@pytest.fixture
def make_client() -> Callable[..., TestClient]:
    def factory(
        *,
        settings: Settings | None = None,
        news: FakeNewsClient | None = None,
        dataset: FakeDataset | None = None,
        strategy: FakeStrategy | None = None,
        auth: FakeAuthBackend | None = None,
    ) -> TestClient:
        app = create_app()
        resolved_settings = settings or Settings()
        app.dependency_overrides[get_settings] = lambda: resolved_settings
        app.dependency_overrides[get_news_client] = lambda: news or FakeNewsClient()
        app.dependency_overrides[get_dataset] = lambda: dataset or FakeDataset()
        app.dependency_overrides[get_similarity] = lambda: strategy or FakeStrategy()
        app.dependency_overrides[get_auth_backend] = lambda: auth
        return TestClient(app)

    return factory
