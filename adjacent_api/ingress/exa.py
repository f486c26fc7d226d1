from __future__ import annotations

from datetime import datetime
from typing import Any, Sequence

import httpx


def _iso(value: datetime) -> str:
    return value.isoformat().replace("+00:00", "Z")


class ExaNewsClient:
    """Async HTTP client for the Exa neural search API."""

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = "https://api.exa.ai",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._client = client or httpx.AsyncClient(base_url=base_url.rstrip("/"), timeout=timeout)

    async def search(
        self,
        query: str,
        *,
        start: datetime,
        end: datetime,
        num_results: int,
        exclude_domains: Sequence[str] = (),
    ) -> Any:
        """Search recent news for ``query`` and return the raw provider payload."""

        if not self._api_key:
            raise RuntimeError("EXA_API_KEY is required for news search")

        payload = {
            "query": query,
            "type": "neural",
            "useAutoprompt": True,
            "numResults": num_results,
            "category": "news",
            "startCrawlDate": _iso(start),
            "endCrawlDate": _iso(end),
            "startPublishedDate": _iso(start),
            "endPublishedDate": _iso(end),
            "excludeDomains": list(exclude_domains),
        }
        response = await self._client.post(
            "/search",
            json=payload,
            headers={"x-api-key": self._api_key},
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ExaNewsClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
