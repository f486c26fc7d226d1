from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Sequence

import httpx

from ..core.models import MarketRecord

logger = logging.getLogger(__name__)


def _records_from_payload(payload: Any) -> list[MarketRecord]:
    if isinstance(payload, list):
        return [item for item in payload if isinstance(item, dict)]

    if isinstance(payload, dict):
        for key in ("data", "markets"):
            if isinstance(payload.get(key), list):
                return [item for item in payload[key] if isinstance(item, dict)]

    return []


class MarketDataset:
    """Reads the static market dataset files and merges them in order."""

    def __init__(
        self,
        sources: Sequence[str],
        *,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._sources = list(sources)
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def sources(self) -> list[str]:
        return list(self._sources)

    async def _load(self, source: str) -> Any:
        if source.startswith(("http://", "https://")):
            response = await self._client.get(source)
            response.raise_for_status()
            return response.json()
        text = await asyncio.to_thread(Path(source).read_text, encoding="utf-8")
        return json.loads(text)

    async def fetch_all(self) -> list[MarketRecord]:
        """Fetch every source one after another and concatenate their records."""

        records: list[MarketRecord] = []
        for source in self._sources:
            payload = await self._load(source)
            chunk = _records_from_payload(payload)
            if not chunk:
                logger.warning("Dataset source %s contained no market records", source)
            records.extend(chunk)

        logger.debug("Loaded %s markets from %s sources", len(records), len(self._sources))
        return records

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "MarketDataset":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
