from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

MarketRecord = dict[str, Any]

NO_RELATED_MARKETS = "No related markets. Explore at https://data.adj.news"


class NewsQuery(BaseModel):
    """A news lookup for a market description with an optional date window."""

    market: str = Field(min_length=1)
    start_date: date | None = None
    end_date: date | None = None
    num_results: int = Field(default=10, ge=1)

    @model_validator(mode="after")
    def _check_window(self) -> "NewsQuery":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self

    def window(self, *, days_back: int, now: datetime | None = None) -> tuple[datetime, datetime]:
        """Return the (start, end) UTC datetimes to search between."""

        now = now or datetime.now(timezone.utc)
        if self.end_date is not None:
            end = datetime.combine(self.end_date, time.max, tzinfo=timezone.utc)
        else:
            end = now
        if self.start_date is not None:
            start = datetime.combine(self.start_date, time.min, tzinfo=timezone.utc)
        else:
            start = end - timedelta(days=days_back)
        return start, end


class SimilarityMatch(BaseModel):
    """A market returned for a headline, with its embedding removed."""

    model_config = ConfigDict(extra="allow")

    similarity: float | None = None

    @classmethod
    def from_record(
        cls,
        record: MarketRecord,
        *,
        similarity: float | None,
        embedding_field: str,
    ) -> "SimilarityMatch":
        payload = {key: value for key, value in record.items() if key != embedding_field}
        payload["similarity"] = similarity
        return cls.model_validate(payload)


class AuthDecision(BaseModel):
    allowed: bool
    reason: str | None = None
    status_code: int = 200


class DataResponse(BaseModel):
    data: Any


class RelatedMarketsResponse(BaseModel):
    data: list[SimilarityMatch]
    message: str | None = None


class ErrorResponse(BaseModel):
    error: str
