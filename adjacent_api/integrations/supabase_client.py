from __future__ import annotations

import logging
from typing import Any, Sequence

import httpx

from ..core.models import MarketRecord

logger = logging.getLogger(__name__)


class SupabaseClient:
    """Thin async wrapper around the Supabase edge functions and REST API we use."""

    def __init__(
        self,
        url: str,
        anon_key: str | None,
        *,
        embed_function: str = "embed",
        match_function: str = "match_documents",
        users_table: str = "users",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._embed_function = embed_function
        self._match_function = match_function
        self._users_table = users_table
        headers = {"Content-Type": "application/json"}
        if anon_key:
            headers["apikey"] = anon_key
            headers["Authorization"] = f"Bearer {anon_key}"
        self._client = client or httpx.AsyncClient(
            base_url=url.rstrip("/"),
            timeout=timeout,
            headers=headers,
        )

    async def embed(self, text: str) -> list[float]:
        """Return the embedding vector produced by the hosted embed function."""

        response = await self._client.post(
            f"/functions/v1/{self._embed_function}",
            json={"input": text},
        )
        response.raise_for_status()
        payload = response.json()
        vector = payload.get("embedding") if isinstance(payload, dict) else None
        if not isinstance(vector, list) or not vector:
            raise ValueError("Embed function returned no embedding")
        return [float(value) for value in vector]

    async def match_documents(
        self,
        vector: Sequence[float],
        *,
        threshold: float,
        count: int,
    ) -> list[MarketRecord]:
        """Call the nearest-neighbour RPC and return the matching market rows."""

        response = await self._client.post(
            f"/rest/v1/rpc/{self._match_function}",
            json={
                "query_embedding": list(vector),
                "match_threshold": threshold,
                "match_count": count,
            },
        )
        response.raise_for_status()
        rows = response.json()
        if not isinstance(rows, list):
            logger.warning("Unexpected %s response type: %s", self._match_function, type(rows).__name__)
            return []
        return [row for row in rows if isinstance(row, dict)]

    async def lookup_plan(self, api_key: str) -> str | None:
        """Return the plan attached to ``api_key``, or ``None`` if the key is unknown."""

        response = await self._client.get(
            f"/rest/v1/{self._users_table}",
            params={"select": "plan", "api_key": f"eq.{api_key}", "limit": 1},
        )
        response.raise_for_status()
        rows = response.json()
        if not rows:
            return None
        plan = rows[0].get("plan")
        return str(plan) if plan is not None else ""

    async def close(self) -> None:
        await self._client.aclose()


__all__ = ["SupabaseClient"]
