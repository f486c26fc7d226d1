from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration sourced from environment variables."""

    model_config = SettingsConfigDict(
        env_file=(".env.local", ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    exa_api_key: Optional[str] = Field(
        default=None,
        alias="EXA_API_KEY",
        description="API key for the Exa news search provider.",
    )
    exa_base_url: str = Field(
        default="https://api.exa.ai",
        alias="EXA_BASE_URL",
        description="Base URL for the Exa REST API.",
    )
    news_days_back: int = Field(
        default=7,
        alias="NEWS_DAYS_BACK",
        description="Size of the default news window in days, ending now.",
    )
    news_default_results: int = Field(
        default=10,
        alias="NEWS_DEFAULT_RESULTS",
        description="Number of articles requested when the caller does not ask for a count.",
    )
    news_max_results: int = Field(
        default=50,
        alias="NEWS_MAX_RESULTS",
        description="Upper bound on the article count a caller may request.",
    )
    news_exclude_domains: str = Field(
        default="kalshi.com,metaculus.com,manifold.markets,polymarket.com",
        alias="NEWS_EXCLUDE_DOMAINS",
        description="Comma-separated domains excluded from news results.",
    )

    supabase_url: str = Field(
        default="https://fyeyeurwgxklumxgpcgz.supabase.co",
        alias="SUPABASE_URL",
        description="Project URL of the Supabase backend.",
    )
    supabase_anon_key: Optional[str] = Field(
        default=None,
        alias="SUPABASE_ANON_KEY",
        description="Anonymous API key for the Supabase backend.",
    )
    supabase_embed_function: str = Field(
        default="embed",
        alias="SUPABASE_EMBED_FUNCTION",
        description="Name of the Supabase edge function that embeds text.",
    )
    supabase_match_function: str = Field(
        default="match_documents",
        alias="SUPABASE_MATCH_FUNCTION",
        description="Name of the Postgres RPC that returns nearest markets for a vector.",
    )
    supabase_users_table: str = Field(
        default="users",
        alias="SUPABASE_USERS_TABLE",
        description="Table holding API keys and their plans.",
    )

    market_dataset_sources: str = Field(
        default="",
        alias="MARKET_DATASET_SOURCES",
        description="Comma-separated URLs or file paths of the JSON market dataset, in order.",
    )
    market_page_size: int = Field(
        default=100,
        alias="MARKET_PAGE_SIZE",
        description="Number of markets returned per listing page.",
    )
    embedding_field: str = Field(
        default="question_embedding",
        alias="EMBEDDING_FIELD",
        description="Record field holding the stored embedding vector of a market.",
    )

    similarity_strategy: Literal["lexical", "remote", "vector"] = Field(
        default="remote",
        alias="SIMILARITY_STRATEGY",
        description="How related markets are found for a headline.",
    )
    lexical_threshold: float = Field(
        default=0.90,
        alias="LEXICAL_THRESHOLD",
        description="Minimum fuzzy ratio for the lexical strategy.",
    )
    embedding_threshold: float = Field(
        default=0.803,
        alias="EMBEDDING_THRESHOLD",
        description="Minimum cosine similarity for the embedding strategies.",
    )
    match_count: int = Field(
        default=3,
        alias="MATCH_COUNT",
        description="Default number of related markets returned.",
    )

    require_api_key: bool = Field(
        default=False,
        alias="REQUIRE_API_KEY",
        description="Require an X-API-Key header on every /api route.",
    )
    api_key_required_plan: str = Field(
        default="pro",
        alias="API_KEY_REQUIRED_PLAN",
        description="Plan an API key must belong to in order to be accepted.",
    )

    request_timeout: float = Field(
        default=10.0,
        alias="REQUEST_TIMEOUT_SEC",
        description="Timeout in seconds for outbound HTTP requests.",
    )
    cors_allow_origins: str = Field(
        default="*",
        alias="CORS_ALLOW_ORIGINS",
        description="Comma-separated list of origins allowed for CORS (use '*' for all).",
    )
    public_api_url: str = Field(
        default="https://api.data.adj.news",
        alias="PUBLIC_API_URL",
        description="Server URL advertised in the OpenAPI document.",
    )

    @property
    def exclude_domains(self) -> list[str]:
        return _split_csv(self.news_exclude_domains)

    @property
    def dataset_sources(self) -> list[str]:
        return _split_csv(self.market_dataset_sources)

    @property
    def cors_origins(self) -> list[str]:
        return _split_csv(self.cors_allow_origins) or ["*"]


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()


settings = get_settings()
