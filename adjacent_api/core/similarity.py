from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol, Sequence

import numpy as np
from rapidfuzz import fuzz

from .markets import format_market_title, market_title
from .models import MarketRecord, SimilarityMatch

if TYPE_CHECKING:
    from ..config import Settings
    from ..ingress.dataset import MarketDataset
    from ..integrations.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)


class SimilarityStrategy(Protocol):
    """Ranks markets against a caller-supplied headline."""

    name: str
    default_threshold: float
    default_count: int

    async def find_related(
        self,
        headline: str,
        *,
        threshold: float,
        count: int,
    ) -> list[SimilarityMatch]: ...


def headline_similarity(headline: str, title: str) -> float:
    """Fuzzy ratio in ``[0, 1]`` between a headline and a normalized market title."""

    return fuzz.ratio(headline, format_market_title(title)) / 100


def _rank(
    scored: Sequence[tuple[float, MarketRecord]],
    *,
    threshold: float,
    count: int,
    embedding_field: str,
) -> list[SimilarityMatch]:
    kept = [(score, record) for score, record in scored if score >= threshold]
    # stable sort keeps dataset order between equal scores
    kept.sort(key=lambda item: item[0], reverse=True)
    return [
        SimilarityMatch.from_record(record, similarity=score, embedding_field=embedding_field)
        for score, record in kept[:count]
    ]


class LexicalSimilarity:
    """Fuzzy string comparison of the headline against every market title."""

    name = "lexical"

    def __init__(
        self,
        dataset: MarketDataset,
        *,
        default_threshold: float = 0.90,
        default_count: int = 3,
        embedding_field: str = "question_embedding",
    ) -> None:
        self._dataset = dataset
        self.default_threshold = default_threshold
        self.default_count = default_count
        self._embedding_field = embedding_field

    async def find_related(
        self,
        headline: str,
        *,
        threshold: float,
        count: int,
    ) -> list[SimilarityMatch]:
        records = await self._dataset.fetch_all()
        scored: list[tuple[float, MarketRecord]] = []
        for record in records:
            title = market_title(record)
            if title is None:
                continue
            scored.append((headline_similarity(headline, title), record))
        return _rank(scored, threshold=threshold, count=count, embedding_field=self._embedding_field)


class RemoteEmbeddingSimilarity:
    """Hosted embedding plus hosted nearest-neighbour RPC."""

    name = "remote"

    def __init__(
        self,
        supabase: SupabaseClient,
        *,
        default_threshold: float = 0.803,
        default_count: int = 3,
        embedding_field: str = "question_embedding",
    ) -> None:
        self._supabase = supabase
        self.default_threshold = default_threshold
        self.default_count = default_count
        self._embedding_field = embedding_field

    async def find_related(
        self,
        headline: str,
        *,
        threshold: float,
        count: int,
    ) -> list[SimilarityMatch]:
        vector = await self._supabase.embed(headline)
        rows = await self._supabase.match_documents(vector, threshold=threshold, count=count)
        matches: list[SimilarityMatch] = []
        for row in rows:
            row = dict(row)
            score = row.pop("similarity", None)
            matches.append(
                SimilarityMatch.from_record(
                    row,
                    similarity=float(score) if score is not None else None,
                    embedding_field=self._embedding_field,
                )
            )
        return matches


def _build_vector_matrix(
    records: Sequence[MarketRecord],
    embedding_field: str,
    dimension: int,
) -> tuple[list[MarketRecord], np.ndarray]:
    kept: list[MarketRecord] = []
    vectors = []
    for record in records:
        raw = record.get(embedding_field)
        if not isinstance(raw, list) or len(raw) != dimension:
            continue
        kept.append(record)
        vectors.append(np.array(raw, dtype=np.float32))
    if not vectors:
        return [], np.empty((0, dimension), dtype=np.float32)
    matrix = np.stack(vectors, axis=0)
    norms = np.linalg.norm(matrix, axis=1, keepdims=True)
    norms = np.where(norms == 0, 1, norms)
    return kept, matrix / norms


def cosine_scores(query: Sequence[float], matrix: np.ndarray) -> np.ndarray:
    """Cosine similarity of ``query`` against each row of a row-normalized matrix."""

    vector = np.asarray(query, dtype=np.float32)
    norm = np.linalg.norm(vector)
    if norm == 0 or matrix.size == 0:
        return np.zeros(matrix.shape[0], dtype=np.float32)
    return np.matmul(matrix, vector / norm)


class VectorSimilarity:
    """Hosted embedding of the headline ranked against the dataset's stored vectors."""

    name = "vector"

    def __init__(
        self,
        dataset: MarketDataset,
        supabase: SupabaseClient,
        *,
        default_threshold: float = 0.803,
        default_count: int = 3,
        embedding_field: str = "question_embedding",
    ) -> None:
        self._dataset = dataset
        self._supabase = supabase
        self.default_threshold = default_threshold
        self.default_count = default_count
        self._embedding_field = embedding_field

    async def find_related(
        self,
        headline: str,
        *,
        threshold: float,
        count: int,
    ) -> list[SimilarityMatch]:
        vector = await self._supabase.embed(headline)
        records = await self._dataset.fetch_all()
        kept, matrix = _build_vector_matrix(records, self._embedding_field, len(vector))
        if not kept:
            logger.info("No dataset records carry a %s-dim %s vector", len(vector), self._embedding_field)
            return []
        scores = cosine_scores(vector, matrix)
        scored = [(float(score), record) for score, record in zip(scores, kept)]
        return _rank(scored, threshold=threshold, count=count, embedding_field=self._embedding_field)


def build_strategy(
    settings: Settings,
    *,
    dataset: MarketDataset,
    supabase: SupabaseClient,
) -> SimilarityStrategy:
    """Create the strategy named by ``SIMILARITY_STRATEGY``."""

    if settings.similarity_strategy == "lexical":
        return LexicalSimilarity(
            dataset,
            default_threshold=settings.lexical_threshold,
            default_count=settings.match_count,
            embedding_field=settings.embedding_field,
        )
    if settings.similarity_strategy == "vector":
        return VectorSimilarity(
            dataset,
            supabase,
            default_threshold=settings.embedding_threshold,
            default_count=settings.match_count,
            embedding_field=settings.embedding_field,
        )
    return RemoteEmbeddingSimilarity(
        supabase,
        default_threshold=settings.embedding_threshold,
        default_count=settings.match_count,
        embedding_field=settings.embedding_field,
    )


__all__ = [
    "LexicalSimilarity",
    "RemoteEmbeddingSimilarity",
    "SimilarityStrategy",
    "VectorSimilarity",
    "build_strategy",
    "cosine_scores",
    "headline_similarity",
]
