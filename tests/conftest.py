"""Shared fixtures: in-memory stand-ins for the Postgres store and pgvector index."""

from datetime import datetime, timedelta, timezone
from itertools import count
from typing import Any, Optional, Sequence

import pytest

from cluster_articles.models import Neighbor
from common.vectors import cosine_similarity
from story_store.models import SYNTHETIC_KEY_PREFIX

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class InMemoryStore:
    """Dict-backed store with the same upsert and guard semantics as PostgresStore."""

    def __init__(self, now: datetime = NOW):
        self.now = now
        self.articles: dict[int, dict[str, Any]] = {}
        self.sources: dict[int, dict[str, Any]] = {}
        self.clusters: dict[int, dict[str, Any]] = {}
        self.memberships: dict[int, int] = {}
        self.cluster_scores: dict[int, dict[str, Any]] = {}
        self.calls: list[str] = []
        self._article_ids = count(1)
        self._source_ids = count(1)
        self._cluster_ids = count(1)

    # Test helpers

    def add_article(self, **fields: Any) -> int:
        article_id = fields.pop("id", None) or next(self._article_ids)
        row = {
            "id": article_id,
            "source_id": None,
            "url": f"https://example.com/{article_id}",
            "canonical_url": f"https://example.com/{article_id}",
            "title": f"Article {article_id}",
            "dek": None,
            "author": None,
            "published_at": self.now,
            "fetched_at": self.now,
            "embedding": None,
            "content_text": None,
            "content_html": None,
            "rewritten_title": None,
            "rewritten_at": None,
            "rewrite_model": None,
            "rewrite_notes": None,
        }
        row.update(fields)
        self.articles[article_id] = row
        return article_id

    def add_source(self, slug: str, weight: float = 1.0) -> int:
        source_id = next(self._source_ids)
        self.sources[source_id] = {"id": source_id, "slug": slug, "name": slug, "weight": weight}
        return source_id

    def members_of(self, cluster_id: int) -> list[int]:
        return sorted(a for a, c in self.memberships.items() if c == cluster_id)

    # Clusters and memberships

    async def get_cluster_id(self, article_id: int) -> Optional[int]:
        return self.memberships.get(article_id)

    async def find_cluster_by_key(self, key: str) -> Optional[int]:
        for cluster_id, cluster in self.clusters.items():
            if cluster["key"] == key:
                return cluster_id
        return None

    async def recent_cluster_keys(self, since: datetime) -> list[tuple[int, str]]:
        return [
            (cluster_id, cluster["key"])
            for cluster_id, cluster in sorted(self.clusters.items())
            if cluster["created_at"] >= since and not cluster["key"].startswith(SYNTHETIC_KEY_PREFIX)
        ]

    async def ensure_cluster(self, key: str) -> int:
        self.calls.append(f"ensure_cluster:{key}")
        existing = await self.find_cluster_by_key(key)
        if existing is not None:
            return existing
        cluster_id = next(self._cluster_ids)
        self.clusters[cluster_id] = {"id": cluster_id, "key": key, "created_at": self.now}
        return cluster_id

    async def add_members(self, cluster_id: int, article_ids: Sequence[int]) -> list[int]:
        added = []
        for article_id in sorted(set(article_ids)):
            if article_id in self.memberships:
                continue
            self.memberships[article_id] = cluster_id
            added.append(article_id)
        return added

    # Articles and embeddings

    async def list_unclustered(self, since: datetime, limit: int) -> list[dict[str, Any]]:
        rows = [
            a for a in self.articles.values()
            if a["fetched_at"] >= since and a["id"] not in self.memberships
        ]
        rows.sort(key=lambda a: (a["fetched_at"], a["id"]))
        return [
            {k: a[k] for k in ("id", "title", "dek", "content_text", "embedding")}
            for a in rows[:limit]
        ]

    async def list_missing_embeddings(self, since: datetime, limit: int) -> list[dict[str, Any]]:
        rows = [
            a for a in self.articles.values()
            if a["embedding"] is None and a["fetched_at"] >= since
        ]
        rows.sort(key=lambda a: (-a["fetched_at"].timestamp(), a["id"]))
        return [{k: a[k] for k in ("id", "title", "dek", "content_text")} for a in rows[:limit]]

    async def save_embedding(self, article_id: int, embedding: Sequence[float]) -> bool:
        article = self.articles.get(article_id)
        if article is None or article["embedding"] is not None:
            return False
        article["embedding"] = list(embedding)
        return True

    # Scoring

    async def load_scoring_members(self, since: datetime) -> list[dict[str, Any]]:
        rows = []
        for article_id, cluster_id in sorted(self.memberships.items(), key=lambda p: (p[1], p[0])):
            article = self.articles[article_id]
            timestamp = article["published_at"] or article["fetched_at"]
            if timestamp < since:
                continue
            source = self.sources.get(article["source_id"]) or {}
            rows.append(
                {
                    "cluster_id": cluster_id,
                    "article_id": article_id,
                    "published_at": timestamp,
                    "author": article["author"],
                    "dek": article["dek"],
                    "canonical_url": article["canonical_url"],
                    "source_id": article["source_id"],
                    "weight": source.get("weight"),
                }
            )
        return rows

    async def replace_cluster_scores(self, records, updated_at: datetime) -> int:
        self.cluster_scores = {
            r.cluster_id: {
                "cluster_id": r.cluster_id,
                "lead_article_id": r.lead_article_id,
                "size": r.size,
                "score": r.score,
                "why": r.why,
                "updated_at": updated_at,
            }
            for r in records
        }
        return len(self.cluster_scores)

    # Rewrites

    async def list_rewrite_candidates(self, since: datetime, limit: int) -> list[dict[str, Any]]:
        rows = [
            a for a in self.articles.values()
            if a["rewritten_title"] is None and (a["published_at"] or a["fetched_at"]) >= since
        ]
        rows.sort(key=lambda a: ((a["published_at"] or a["fetched_at"]), a["id"]), reverse=True)
        return [
            {k: a[k] for k in ("id", "title", "dek", "content_text", "content_html")}
            for a in rows[:limit]
        ]

    async def save_rewrite(self, outcome, rewritten_at: datetime) -> bool:
        article = self.articles.get(outcome.article_id)
        if article is None or article["rewritten_title"] is not None:
            return False
        if outcome.accepted:
            article["rewritten_title"] = outcome.headline
            article["rewritten_at"] = rewritten_at
        article["rewrite_model"] = outcome.model
        article["rewrite_notes"] = outcome.notes
        return True

    # Sources and ingestion

    async def upsert_source(self, slug, name, homepage_url=None, feed_url=None, weight=None) -> int:
        self.calls.append(f"upsert_source:{slug}")
        for source_id, source in self.sources.items():
            if source["slug"] == slug:
                source["name"] = name
                return source_id
        source_id = next(self._source_ids)
        self.sources[source_id] = {
            "id": source_id,
            "slug": slug,
            "name": name,
            "homepage_url": homepage_url,
            "feed_url": feed_url,
            "weight": 1.0 if weight is None else weight,
        }
        return source_id

    async def insert_article(self, article: dict[str, Any]) -> Optional[int]:
        for existing in self.articles.values():
            if existing["canonical_url"] == article["canonical_url"]:
                return None
        return self.add_article(**article)


class InMemoryIndex:
    """Brute-force cosine similarity over the store's embeddings."""

    def __init__(self, store: InMemoryStore):
        self.store = store

    async def nearest_neighbors(
        self,
        vector: Sequence[float],
        window: timedelta,
        floor: float,
        limit: int,
        exclude_article_id: Optional[int],
        now: datetime,
    ) -> list[Neighbor]:
        hits = []
        for article in self.store.articles.values():
            if article["embedding"] is None or article["id"] == exclude_article_id:
                continue
            if article["fetched_at"] < now - window:
                continue
            similarity = cosine_similarity(vector, article["embedding"])
            if similarity >= floor:
                hits.append(
                    Neighbor(
                        article_id=article["id"],
                        cluster_id=self.store.memberships.get(article["id"]),
                        similarity=similarity,
                    )
                )
        hits.sort(key=lambda n: (-n.similarity, n.article_id))
        return hits[:limit]


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def index(store: InMemoryStore) -> InMemoryIndex:
    return InMemoryIndex(store)
