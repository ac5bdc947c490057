"""Postgres-backed store used by every pipeline stage.

All writes are uniqueness-constrained upserts or guarded updates, so
concurrent batches cannot create duplicate clusters, memberships or
articles. Each method runs in its own short session.
"""

from __future__ import annotations

import logging
from contextlib import AbstractAsyncContextManager
from datetime import datetime
from typing import Any, Callable, Iterable, Sequence

from sqlalchemy import text, update
from sqlalchemy.ext.asyncio import AsyncSession

from story_store.connection import get_session
from story_store.models import SYNTHETIC_KEY_PREFIX, Article

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class PostgresStore:
    def __init__(self, session_factory: SessionFactory = get_session):
        self._session = session_factory

    # Clusters and memberships

    async def get_cluster_id(self, article_id: int) -> int | None:
        async with self._session() as session:
            result = await session.execute(
                text("SELECT cluster_id FROM article_clusters WHERE article_id = :article_id LIMIT 1"),
                {"article_id": article_id},
            )
            return result.scalar_one_or_none()

    async def find_cluster_by_key(self, key: str) -> int | None:
        async with self._session() as session:
            result = await session.execute(
                text("SELECT id FROM clusters WHERE key = :key"),
                {"key": key},
            )
            return result.scalar_one_or_none()

    async def recent_cluster_keys(self, since: datetime) -> list[tuple[int, str]]:
        """Title-keyed clusters created since the given instant, oldest first."""
        async with self._session() as session:
            result = await session.execute(
                text(
                    """
                    SELECT id, key
                    FROM clusters
                    WHERE created_at >= :since
                      AND key NOT LIKE :synthetic_prefix
                    ORDER BY id
                    """
                ),
                {"since": since, "synthetic_prefix": f"{SYNTHETIC_KEY_PREFIX}%"},
            )
            return [(row.id, row.key) for row in result]

    async def ensure_cluster(self, key: str) -> int:
        """Return the id of the cluster with this key, creating it if needed."""
        async with self._session() as session:
            result = await session.execute(
                text(
                    """
                    INSERT INTO clusters (key)
                    VALUES (:key)
                    ON CONFLICT (key) DO UPDATE SET key = EXCLUDED.key
                    RETURNING id
                    """
                ),
                {"key": key},
            )
            cluster_id = result.scalar_one()
            await session.commit()
            return cluster_id

    async def add_members(self, cluster_id: int, article_ids: Sequence[int]) -> list[int]:
        """Add articles to a cluster; returns the ids that were actually added.

        Articles that already hold any membership are left alone. Ids are
        inserted in ascending order so concurrent writers lock rows in the
        same order.
        """
        added = []
        async with self._session() as session:
            for article_id in sorted(set(article_ids)):
                result = await session.execute(
                    text(
                        """
                        INSERT INTO article_clusters (article_id, cluster_id)
                        VALUES (:article_id, :cluster_id)
                        ON CONFLICT DO NOTHING
                        RETURNING article_id
                        """
                    ),
                    {"article_id": article_id, "cluster_id": cluster_id},
                )
                if result.scalar_one_or_none() is not None:
                    added.append(article_id)
            await session.commit()
        return added

    # Articles and embeddings

    async def list_unclustered(self, since: datetime, limit: int) -> list[dict[str, Any]]:
        async with self._session() as session:
            result = await session.execute(
                text(
                    """
                    SELECT a.id, a.title, a.dek, a.content_text, a.embedding
                    FROM articles a
                    WHERE a.fetched_at >= :since
                      AND NOT EXISTS (
                            SELECT 1 FROM article_clusters ac WHERE ac.article_id = a.id
                        )
                    ORDER BY a.fetched_at, a.id
                    LIMIT :limit
                    """
                ),
                {"since": since, "limit": limit},
            )
            return [dict(row) for row in result.mappings().all()]

    async def list_missing_embeddings(self, since: datetime, limit: int) -> list[dict[str, Any]]:
        async with self._session() as session:
            result = await session.execute(
                text(
                    """
                    SELECT id, title, dek, content_text
                    FROM articles
                    WHERE embedding IS NULL
                      AND fetched_at >= :since
                    ORDER BY fetched_at DESC, id
                    LIMIT :limit
                    """
                ),
                {"since": since, "limit": limit},
            )
            return [dict(row) for row in result.mappings().all()]

    async def save_embedding(self, article_id: int, embedding: Sequence[float]) -> bool:
        """Store an embedding unless one is already present. Returns True if written."""
        async with self._session() as session:
            result = await session.execute(
                update(Article)
                .where(Article.id == article_id, Article.embedding.is_(None))
                .values(embedding=list(embedding))
            )
            await session.commit()
            return bool(result.rowcount)

    # Scoring

    async def load_scoring_members(self, since: datetime) -> list[dict[str, Any]]:
        """Cluster members timed within the window, with their source data."""
        async with self._session() as session:
            result = await session.execute(
                text(
                    """
                    SELECT
                        ac.cluster_id,
                        a.id AS article_id,
                        COALESCE(a.published_at, a.fetched_at) AS published_at,
                        a.author,
                        a.dek,
                        a.canonical_url,
                        a.source_id,
                        s.weight
                    FROM article_clusters ac
                    JOIN articles a ON a.id = ac.article_id
                    LEFT JOIN sources s ON s.id = a.source_id
                    WHERE COALESCE(a.published_at, a.fetched_at) >= :since
                    ORDER BY ac.cluster_id, a.id
                    """
                ),
                {"since": since},
            )
            return [dict(row) for row in result.mappings().all()]

    async def replace_cluster_scores(self, records: Iterable[Any], updated_at: datetime) -> int:
        """Replace every cluster_scores row with the given records in one transaction."""
        rows = [
            {
                "cluster_id": record.cluster_id,
                "lead_article_id": record.lead_article_id,
                "size": record.size,
                "score": record.score,
                "why": record.why,
                "updated_at": updated_at,
            }
            for record in records
        ]
        async with self._session() as session:
            async with session.begin():
                await session.execute(text("DELETE FROM cluster_scores"))
                if rows:
                    await session.execute(
                        text(
                            """
                            INSERT INTO cluster_scores
                                (cluster_id, lead_article_id, size, score, why, updated_at)
                            VALUES
                                (:cluster_id, :lead_article_id, :size, :score, :why, :updated_at)
                            """
                        ),
                        rows,
                    )
        logger.info("Replaced cluster_scores with %d rows", len(rows))
        return len(rows)

    # Rewrites

    async def list_rewrite_candidates(self, since: datetime, limit: int) -> list[dict[str, Any]]:
        async with self._session() as session:
            result = await session.execute(
                text(
                    """
                    SELECT id, title, dek, content_text, content_html
                    FROM articles
                    WHERE rewritten_title IS NULL
                      AND COALESCE(published_at, fetched_at) >= :since
                    ORDER BY COALESCE(published_at, fetched_at) DESC, id DESC
                    LIMIT :limit
                    """
                ),
                {"since": since, "limit": limit},
            )
            return [dict(row) for row in result.mappings().all()]

    async def save_rewrite(self, outcome: Any, rewritten_at: datetime) -> bool:
        """Persist a rewrite outcome.

        Accepted headlines fill rewritten_title once; rejections and failures
        only record the model and notes, leaving the title untouched.
        """
        params = {
            "id": outcome.article_id,
            "model": outcome.model,
            "notes": outcome.notes,
        }
        if outcome.accepted:
            stmt = text(
                """
                UPDATE articles
                SET rewritten_title = :title,
                    rewritten_at = :rewritten_at,
                    rewrite_model = :model,
                    rewrite_notes = :notes
                WHERE id = :id
                  AND rewritten_title IS NULL
                """
            )
            params.update({"title": outcome.headline, "rewritten_at": rewritten_at})
        else:
            stmt = text(
                """
                UPDATE articles
                SET rewrite_model = :model,
                    rewrite_notes = :notes
                WHERE id = :id
                  AND rewritten_title IS NULL
                """
            )
        async with self._session() as session:
            result = await session.execute(stmt, params)
            await session.commit()
            return bool(result.rowcount)

    # Sources and ingestion

    async def upsert_source(
        self,
        slug: str,
        name: str,
        homepage_url: str | None = None,
        feed_url: str | None = None,
        weight: float | None = None,
    ) -> int:
        """Create or refresh a source by slug and return its id.

        An existing weight is never overwritten; it is curated separately.
        """
        async with self._session() as session:
            result = await session.execute(
                text(
                    """
                    INSERT INTO sources (slug, name, homepage_url, feed_url, weight)
                    VALUES (:slug, :name, :homepage_url, :feed_url, COALESCE(CAST(:weight AS double precision), 1.0))
                    ON CONFLICT (slug) DO UPDATE SET
                        name = EXCLUDED.name,
                        homepage_url = COALESCE(EXCLUDED.homepage_url, sources.homepage_url),
                        feed_url = COALESCE(EXCLUDED.feed_url, sources.feed_url)
                    RETURNING id
                    """
                ),
                {
                    "slug": slug,
                    "name": name,
                    "homepage_url": homepage_url,
                    "feed_url": feed_url,
                    "weight": weight,
                },
            )
            source_id = result.scalar_one()
            await session.commit()
            return source_id

    async def insert_article(self, article: dict[str, Any]) -> int | None:
        """Insert an article keyed by canonical URL. Returns None for duplicates."""
        async with self._session() as session:
            result = await session.execute(
                text(
                    """
                    INSERT INTO articles
                        (source_id, url, canonical_url, title, dek, author,
                         published_at, fetched_at, content_text)
                    VALUES
                        (:source_id, :url, :canonical_url, :title, :dek, :author,
                         :published_at, :fetched_at, :content_text)
                    ON CONFLICT (canonical_url) DO NOTHING
                    RETURNING id
                    """
                ),
                article,
            )
            article_id = result.scalar_one_or_none()
            await session.commit()
            return article_id
