"""Assign incoming articles to story clusters.

Two strategies implement the same `assign` contract. Articles with a usable
embedding go through the Similarity Index; the rest fall back to normalized
title keys. Both only ever add memberships through the store's guarded
upserts, so re-running an assignment is a no-op.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Protocol, Sequence

from cluster_articles.models import (
    ALREADY_CLUSTERED,
    CREATED,
    JOINED_EXISTING,
    UNCLUSTERED,
    ArticleToCluster,
    ClusterAssignment,
)
from cluster_articles.similarity import SimilarityIndex
from cluster_articles.title_key import best_fuzzy_match, normalize_title_key
from common.batch import BatchResult, run_bounded
from common.errors import EmbeddingError
from common.settings import ClusteringSettings, EmbeddingSettings
from common.vectors import coerce_embedding, is_usable_embedding
from compute_embeddings.compute_embeddings import build_text_to_embed
from compute_embeddings.providers import EmbeddingProvider
from story_store.models import SYNTHETIC_KEY_PREFIX

logger = logging.getLogger(__name__)


class ClusterStore(Protocol):
    async def get_cluster_id(self, article_id: int) -> Optional[int]: ...

    async def find_cluster_by_key(self, key: str) -> Optional[int]: ...

    async def recent_cluster_keys(self, since: datetime) -> list[tuple[int, str]]: ...

    async def ensure_cluster(self, key: str) -> int: ...

    async def add_members(self, cluster_id: int, article_ids: Sequence[int]) -> list[int]: ...


def synthetic_key(article_id: int) -> str:
    """Key for a cluster seeded by an embedding-only match.

    Callers pass the lowest article id of the seeding group, so a retried
    run and a concurrent worker seeing the same group reuse one cluster.
    """
    return f"{SYNTHETIC_KEY_PREFIX}{article_id}"


async def _finish(
    store: ClusterStore,
    article: ArticleToCluster,
    cluster_id: int,
    member_ids: list[int],
    outcome: str,
    strategy: str,
    similarity: Optional[float] = None,
) -> ClusterAssignment:
    added = await store.add_members(cluster_id, member_ids)
    if article.id not in added:
        # Another worker placed this article first; report where it ended up
        current = await store.get_cluster_id(article.id)
        return ClusterAssignment(
            article_id=article.id,
            cluster_id=current,
            outcome=ALREADY_CLUSTERED if current is not None else UNCLUSTERED,
            strategy=strategy,
            joined_article_ids=added,
            reason="membership_conflict",
        )
    return ClusterAssignment(
        article_id=article.id,
        cluster_id=cluster_id,
        outcome=outcome,
        strategy=strategy,
        similarity=similarity,
        joined_article_ids=added,
    )


class TitleKeyStrategy:
    name = "title_key"

    def __init__(self, store: ClusterStore, settings: ClusteringSettings):
        self._store = store
        self._settings = settings

    async def assign(
        self,
        article: ArticleToCluster,
        embedding: Optional[Sequence[float]],
        now: datetime,
    ) -> ClusterAssignment:
        key = normalize_title_key(article.title, self._settings.title_key_max_chars)
        if not key:
            logger.warning("Article %s has no usable title key; leaving unclustered", article.id)
            return ClusterAssignment(
                article_id=article.id,
                cluster_id=None,
                outcome=UNCLUSTERED,
                strategy=self.name,
                reason="empty_title_key",
            )

        cluster_id = await self._store.find_cluster_by_key(key)
        if cluster_id is not None:
            return await _finish(self._store, article, cluster_id, [article.id], JOINED_EXISTING, self.name, 1.0)

        since = now - timedelta(hours=self._settings.fuzzy_window_hours)
        candidates = await self._store.recent_cluster_keys(since)
        match = best_fuzzy_match(key, candidates, self._settings.fuzzy_threshold)
        if match is not None:
            logger.debug("Article %s fuzzy-matched key %r (%.2f)", article.id, match.key, match.score)
            return await _finish(
                self._store, article, match.cluster_id, [article.id], JOINED_EXISTING, self.name, match.score
            )

        cluster_id = await self._store.ensure_cluster(key)
        return await _finish(self._store, article, cluster_id, [article.id], CREATED, self.name)


class EmbeddingStrategy:
    name = "embedding"

    def __init__(self, store: ClusterStore, index: SimilarityIndex, settings: ClusteringSettings):
        self._store = store
        self._index = index
        self._settings = settings

    async def assign(
        self,
        article: ArticleToCluster,
        embedding: Optional[Sequence[float]],
        now: datetime,
    ) -> ClusterAssignment:
        neighbors = await self._index.nearest_neighbors(
            embedding,
            window=timedelta(hours=self._settings.neighbor_window_hours),
            floor=self._settings.similarity_floor,
            limit=self._settings.neighbor_limit,
            exclude_article_id=article.id,
            now=now,
        )
        neighbors = [n for n in neighbors if n.article_id != article.id]
        if not neighbors:
            return ClusterAssignment(
                article_id=article.id,
                cluster_id=None,
                outcome=UNCLUSTERED,
                strategy=self.name,
                reason="no_neighbors",
            )

        orphans = [n.article_id for n in neighbors if n.cluster_id is None]
        clustered = [n for n in neighbors if n.cluster_id is not None]

        if clustered:
            # Strongest single neighbor wins, not the most common cluster
            best = max(clustered, key=lambda n: (n.similarity, -n.article_id))
            return await _finish(
                self._store,
                article,
                best.cluster_id,
                [article.id, *orphans],
                JOINED_EXISTING,
                self.name,
                best.similarity,
            )

        cluster_id = await self._store.ensure_cluster(synthetic_key(min(article.id, *orphans)))
        top = max(n.similarity for n in neighbors)
        return await _finish(
            self._store, article, cluster_id, [article.id, *orphans], CREATED, self.name, top
        )


class ClusteringEngine:
    """Entry point for AssignCluster."""

    def __init__(
        self,
        store: ClusterStore,
        index: SimilarityIndex,
        settings: Optional[ClusteringSettings] = None,
    ):
        self._store = store
        self.settings = settings or ClusteringSettings()
        self.title_key = TitleKeyStrategy(store, self.settings)
        self.embedding = EmbeddingStrategy(store, index, self.settings)

    async def existing_assignment(self, article: ArticleToCluster) -> Optional[ClusterAssignment]:
        cluster_id = await self._store.get_cluster_id(article.id)
        if cluster_id is None:
            return None
        return ClusterAssignment(
            article_id=article.id,
            cluster_id=cluster_id,
            outcome=ALREADY_CLUSTERED,
            strategy="none",
        )

    def select_strategy(self, embedding: Optional[Sequence[float]]):
        if is_usable_embedding(embedding):
            return self.embedding
        return self.title_key

    async def assign_cluster(
        self,
        article: ArticleToCluster,
        embedding: Optional[Sequence[float]] = None,
        now: Optional[datetime] = None,
    ) -> ClusterAssignment:
        """Place one article into at most one cluster.

        Args:
            article: The article to place
            embedding: Its embedding, or None to use the title-key fallback
            now: Reference time for the recency windows (default: current UTC time)

        Returns:
            ClusterAssignment describing what happened
        """
        existing = await self.existing_assignment(article)
        if existing is not None:
            return existing
        strategy = self.select_strategy(embedding)
        return await strategy.assign(article, embedding, now or datetime.now(timezone.utc))


def to_article_to_cluster(row: dict[str, Any]) -> ArticleToCluster:
    return ArticleToCluster(
        id=row["id"],
        title=row.get("title") or "",
        dek=row.get("dek"),
        content_text=row.get("content_text"),
        embedding=coerce_embedding(row.get("embedding")),
    )


async def resolve_embedding(
    article: ArticleToCluster,
    embedder: Optional[EmbeddingProvider],
    store: Any,
    embedding_settings: EmbeddingSettings,
) -> Optional[list[float]]:
    """Stored vector if usable, else a fresh one from the provider, else None.

    Provider failures degrade to None so the caller uses the title-key path.
    A fresh vector is written back once.
    """
    if is_usable_embedding(article.embedding):
        return article.embedding
    if embedder is None:
        return None

    text = build_text_to_embed(article, embedding_settings.word_limit, embedding_settings.max_chars)
    try:
        vector = await embedder.embed(text)
    except EmbeddingError as exc:
        logger.warning("Embedding failed for article %s (%s); using title key", article.id, exc.note)
        return None

    await store.save_embedding(article.id, vector)
    return vector


async def cluster_one(
    article: ArticleToCluster,
    engine: ClusteringEngine,
    store: Any,
    embedder: Optional[EmbeddingProvider],
    embedding_settings: EmbeddingSettings,
    now: datetime,
) -> ClusterAssignment:
    # Skip the provider for articles that already have a cluster
    assignment = await engine.existing_assignment(article)
    if assignment is None:
        embedding = await resolve_embedding(article, embedder, store, embedding_settings)
        assignment = await engine.assign_cluster(article, embedding, now)
    logger.debug(
        "Article %s -> cluster %s (%s via %s)",
        article.id,
        assignment.cluster_id,
        assignment.outcome,
        assignment.strategy,
    )
    return assignment


async def cluster_articles(
    articles: Sequence[ArticleToCluster],
    engine: ClusteringEngine,
    store: Any,
    embedder: Optional[EmbeddingProvider] = None,
    embedding_settings: Optional[EmbeddingSettings] = None,
    concurrency: int = 4,
    now: Optional[datetime] = None,
) -> BatchResult[ClusterAssignment]:
    """
    Assign clusters to a batch of articles with bounded concurrency.

    Args:
        articles: Articles to place
        engine: Clustering engine bound to a store and similarity index
        store: Store used to persist freshly computed embeddings
        embedder: Embedding provider for articles with no stored vector
        embedding_settings: Text-building settings for the provider
        concurrency: Maximum simultaneous assignments
        now: Reference time shared by every assignment in the batch

    Returns:
        BatchResult of ClusterAssignment; failed articles stay unclustered
    """
    if not articles:
        logger.warning("No articles to cluster")
        return BatchResult()

    embedding_settings = embedding_settings or EmbeddingSettings()
    now = now or datetime.now(timezone.utc)
    logger.info("Clustering %d articles (concurrency=%d)", len(articles), concurrency)

    result = await run_bounded(
        articles,
        lambda article: cluster_one(article, engine, store, embedder, embedding_settings, now),
        concurrency=concurrency,
        key=lambda article: article.id,
    )
    counts = summarize_assignments(result.results)
    logger.info("Clustering outcomes: %s", ", ".join(f"{k}={v}" for k, v in sorted(counts.items())))
    return result


def summarize_assignments(assignments: Sequence[ClusterAssignment]) -> dict[str, int]:
    """Counts by outcome, plus how many neighbors were pulled in retroactively."""
    counts: Counter[str] = Counter(a.outcome for a in assignments)
    counts["repaired_neighbors"] = sum(
        len([i for i in a.joined_article_ids if i != a.article_id]) for a in assignments
    )
    return dict(counts)


async def run_clustering_pass(
    store: Any,
    engine: ClusteringEngine,
    embedder: Optional[EmbeddingProvider] = None,
    embedding_settings: Optional[EmbeddingSettings] = None,
    lookback_hours: Optional[float] = None,
    limit: Optional[int] = None,
    concurrency: int = 4,
    now: Optional[datetime] = None,
) -> BatchResult[ClusterAssignment]:
    """Load recent unclustered articles and cluster them.

    With a long lookback this doubles as the maintenance pass that retries
    articles left unclustered earlier.
    """
    now = now or datetime.now(timezone.utc)
    since = now - timedelta(hours=lookback_hours or engine.settings.lookback_hours)
    rows = await store.list_unclustered(since, limit or engine.settings.batch_limit)
    logger.info("Loaded %d unclustered articles since %s", len(rows), since.isoformat())
    articles = [to_article_to_cluster(row) for row in rows]
    return await cluster_articles(
        articles,
        engine,
        store,
        embedder=embedder,
        embedding_settings=embedding_settings,
        concurrency=concurrency,
        now=now,
    )
