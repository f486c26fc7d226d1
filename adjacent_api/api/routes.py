from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request
from pydantic import ValidationError

from ..config import Settings, get_settings
from ..core.errors import (
    MARKETS_ERROR_MESSAGE,
    NEWS_ERROR_MESSAGE,
    RELATED_ERROR_MESSAGE,
    UpstreamError,
)
from ..core.markets import filter_markets, page
from ..core.models import (
    NO_RELATED_MARKETS,
    DataResponse,
    ErrorResponse,
    NewsQuery,
    RelatedMarketsResponse,
)
from ..core.similarity import SimilarityStrategy
from ..ingress.dataset import MarketDataset
from ..ingress.exa import ExaNewsClient
from .auth import require_api_key

logger = logging.getLogger(__name__)

router = APIRouter()
api_router = APIRouter(
    prefix="/api",
    dependencies=[Depends(require_api_key)],
    responses={
        401: {"model": ErrorResponse, "description": "Missing or invalid API key"},
        403: {"model": ErrorResponse, "description": "API key plan does not allow access"},
        500: {"model": ErrorResponse, "description": "Upstream service failed"},
    },
)


def get_news_client(request: Request) -> ExaNewsClient:
    client = getattr(request.app.state, "news_client", None)
    if client is None:
        raise HTTPException(status_code=500, detail="News provider is not available")
    return client


def get_dataset(request: Request) -> MarketDataset:
    dataset = getattr(request.app.state, "dataset", None)
    if dataset is None:
        raise HTTPException(status_code=500, detail="Market dataset is not available")
    return dataset


def get_similarity(request: Request) -> SimilarityStrategy:
    strategy = getattr(request.app.state, "similarity", None)
    if strategy is None:
        raise HTTPException(status_code=500, detail="Similarity backend is not available")
    return strategy


def _invalid_query(field: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail=[{"type": "value_error", "loc": ["query", field], "msg": message}],
    )


@router.get("/healthz")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@api_router.get(
    "/news/{market}",
    response_model=DataResponse,
    description="Get news articles for the given market",
)
async def get_news(
    market: str = Path(
        ...,
        min_length=1,
        examples=["Will the winner of the 2024 USA presidential election win Pennsylvania?"],
    ),
    start_date: date | None = Query(default=None, description="Oldest publication date (defaults to a week ago)"),
    end_date: date | None = Query(default=None, description="Newest publication date (defaults to now)"),
    num_results: int | None = Query(
        default=None,
        ge=1,
        description="Number of articles to return (at most NEWS_MAX_RESULTS)",
    ),
    settings: Settings = Depends(get_settings),
    client: ExaNewsClient = Depends(get_news_client),
) -> DataResponse:
    if num_results is not None and num_results > settings.news_max_results:
        raise _invalid_query("num_results", f"num_results must be at most {settings.news_max_results}")
    try:
        query = NewsQuery(
            market=market,
            start_date=start_date,
            end_date=end_date,
            num_results=num_results or settings.news_default_results,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors(include_url=False, include_context=False)) from exc

    start, end = query.window(days_back=settings.news_days_back)
    if start > end:
        raise _invalid_query("start_date", "start_date must not be after the end of the search window")
    try:
        results = await client.search(
            query.market,
            start=start,
            end=end,
            num_results=query.num_results,
            exclude_domains=settings.exclude_domains,
        )
    except Exception as exc:
        logger.exception("News search failed (market=%r)", query.market)
        raise UpstreamError(NEWS_ERROR_MESSAGE) from exc

    return DataResponse(data=results)


async def _market_page(
    dataset: MarketDataset,
    *,
    offset: int,
    size: int,
    platform: str | None,
    status: str | None,
    category: str | None,
) -> DataResponse:
    try:
        markets = await dataset.fetch_all()
    except Exception as exc:
        logger.exception("Failed to fetch market dataset")
        raise UpstreamError(MARKETS_ERROR_MESSAGE) from exc

    filtered = filter_markets(markets, platform=platform, status=status, category=category)
    return DataResponse(data=page(filtered, offset=offset, size=size))


@api_router.get(
    "/markets",
    response_model=DataResponse,
    description="Get all markets, returns 100 at a time.",
)
async def list_markets(
    platform: str | None = Query(default=None, description="Only markets from this platform"),
    status: str | None = Query(default=None, description="Only markets with this status"),
    category: str | None = Query(default=None, description="Only markets in this category"),
    settings: Settings = Depends(get_settings),
    dataset: MarketDataset = Depends(get_dataset),
) -> DataResponse:
    return await _market_page(
        dataset,
        offset=0,
        size=settings.market_page_size,
        platform=platform,
        status=status,
        category=category,
    )


@api_router.get(
    "/markets/{index}",
    response_model=DataResponse,
    description="Get all markets starting at the given offset, returns 100 at a time.",
)
async def list_markets_from(
    index: int = Path(..., ge=0, description="Index for pagination.", examples=[101]),
    platform: str | None = Query(default=None, description="Only markets from this platform"),
    status: str | None = Query(default=None, description="Only markets with this status"),
    category: str | None = Query(default=None, description="Only markets in this category"),
    settings: Settings = Depends(get_settings),
    dataset: MarketDataset = Depends(get_dataset),
) -> DataResponse:
    return await _market_page(
        dataset,
        offset=index,
        size=settings.market_page_size,
        platform=platform,
        status=status,
        category=category,
    )


@api_router.get(
    "/markets/headline/{headline}",
    response_model=RelatedMarketsResponse,
    description="Get related markets by headline",
)
async def related_markets(
    headline: str = Path(
        ...,
        min_length=1,
        examples=["Will the winner of the 2024 USA presidential election win Pennsylvania?"],
    ),
    threshold: float | None = Query(default=None, ge=0.0, le=1.0, description="Minimum similarity"),
    count: int | None = Query(default=None, ge=1, le=20, description="Maximum number of markets"),
    strategy: SimilarityStrategy = Depends(get_similarity),
) -> RelatedMarketsResponse:
    try:
        matches = await strategy.find_related(
            headline,
            threshold=strategy.default_threshold if threshold is None else threshold,
            count=count or strategy.default_count,
        )
    except Exception as exc:
        logger.exception("Related market lookup failed (strategy=%s)", strategy.name)
        raise UpstreamError(RELATED_ERROR_MESSAGE) from exc

    if not matches:
        return RelatedMarketsResponse(data=[], message=NO_RELATED_MARKETS)
    return RelatedMarketsResponse(data=matches)


router.include_router(api_router)
