"""Nearest-neighbor lookup over stored article embeddings."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Protocol, Sequence

from sqlalchemy import select

from cluster_articles.models import Neighbor
from story_store.connection import get_session
from story_store.models import Article, ArticleCluster
from story_store.repository import SessionFactory

logger = logging.getLogger(__name__)


class SimilarityIndex(Protocol):
    async def nearest_neighbors(
        self,
        vector: Sequence[float],
        window: timedelta,
        floor: float,
        limit: int,
        exclude_article_id: int | None,
        now: datetime,
    ) -> list[Neighbor]:
        """Most similar recent articles, best first, similarity >= floor."""
        ...


class PgVectorSimilarityIndex:
    """Cosine similarity via pgvector's `<=>` distance operator."""

    def __init__(self, session_factory: SessionFactory = get_session):
        self._session = session_factory

    async def nearest_neighbors(
        self,
        vector: Sequence[float],
        window: timedelta,
        floor: float,
        limit: int,
        exclude_article_id: int | None,
        now: datetime,
    ) -> list[Neighbor]:
        distance = Article.embedding.cosine_distance(list(vector))
        conditions = [
            Article.embedding.is_not(None),
            Article.fetched_at >= now - window,
            distance <= 1 - floor,
        ]
        if exclude_article_id is not None:
            conditions.append(Article.id != exclude_article_id)

        stmt = (
            select(
                Article.id,
                ArticleCluster.cluster_id,
                (1 - distance).label("similarity"),
            )
            .outerjoin(ArticleCluster, ArticleCluster.article_id == Article.id)
            .where(*conditions)
            .order_by(distance, Article.id)
            .limit(limit)
        )

        async with self._session() as session:
            result = await session.execute(stmt)
            rows = result.all()

        neighbors = [
            Neighbor(article_id=row.id, cluster_id=row.cluster_id, similarity=float(row.similarity))
            for row in rows
        ]
        logger.debug("Found %d neighbors (floor=%.2f)", len(neighbors), floor)
        return neighbors
