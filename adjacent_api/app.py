from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api.routes import router
from .config import settings
from .core.errors import UpstreamError
from .core.similarity import build_strategy
from .ingress.dataset import MarketDataset
from .ingress.exa import ExaNewsClient
from .integrations.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    news_client = ExaNewsClient(
        settings.exa_api_key,
        base_url=settings.exa_base_url,
        timeout=settings.request_timeout,
    )
    dataset = MarketDataset(settings.dataset_sources, timeout=settings.request_timeout)
    supabase = SupabaseClient(
        settings.supabase_url,
        settings.supabase_anon_key,
        embed_function=settings.supabase_embed_function,
        match_function=settings.supabase_match_function,
        users_table=settings.supabase_users_table,
        timeout=settings.request_timeout,
    )
    similarity = build_strategy(settings, dataset=dataset, supabase=supabase)

    app.state.settings = settings
    app.state.news_client = news_client
    app.state.dataset = dataset
    app.state.supabase = supabase
    app.state.similarity = similarity
    app.state.auth_backend = supabase

    if not settings.exa_api_key:
        logger.warning("EXA_API_KEY is not set; news lookups will fail")
    if not settings.dataset_sources:
        logger.warning("MARKET_DATASET_SOURCES is empty; market listings will be empty")

    logger.info(
        "Gateway configuration loaded (similarity=%s, dataset_sources=%s, require_api_key=%s, timeout=%ss)",
        similarity.name,
        len(settings.dataset_sources),
        settings.require_api_key,
        settings.request_timeout,
    )

    try:
        yield
    finally:
        await news_client.close()
        await dataset.close()
        await supabase.close()


async def upstream_error_handler(request: Request, exc: UpstreamError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404 and exc.detail == "Not Found":
        content = {"error": "Not found"}
    elif isinstance(exc.detail, str):
        content = {"error": exc.detail}
    else:
        content = {"error": "Invalid request", "detail": jsonable_encoder(exc.detail)}
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"error": "Invalid request", "detail": jsonable_encoder(exc.errors())},
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title="Adjacent News API",
        version="v1",
        docs_url="/ui",
        redoc_url=None,
        openapi_url="/doc",
        servers=[{"url": settings.public_api_url, "description": "Production API server"}],
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(UpstreamError, upstream_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.include_router(router)

    @app.get("/", include_in_schema=False)
    async def root() -> RedirectResponse:
        return RedirectResponse(url="/ui")

    return app


app = create_app()
