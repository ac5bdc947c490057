"""Data models for cluster_articles pipeline stage."""

from dataclasses import dataclass, field
from typing import Optional

ALREADY_CLUSTERED = "already_clustered"
JOINED_EXISTING = "joined_existing"
CREATED = "created"
UNCLUSTERED = "unclustered"


@dataclass
class ArticleToCluster:
    """Unclustered article with the fields both clustering paths need."""

    id: int
    title: str
    dek: Optional[str] = None
    content_text: Optional[str] = None
    embedding: Optional[list[float]] = None


@dataclass(frozen=True)
class Neighbor:
    """One Similarity Index hit."""

    article_id: int
    cluster_id: Optional[int]
    similarity: float


@dataclass(frozen=True)
class FuzzyMatch:
    cluster_id: int
    key: str
    score: float


@dataclass
class ClusterAssignment:
    """Outcome of assigning one article.

    `joined_article_ids` lists every article this call added to the cluster:
    the article itself plus any previously unclustered neighbors.
    """

    article_id: int
    cluster_id: Optional[int]
    outcome: str
    strategy: str
    similarity: Optional[float] = None
    joined_article_ids: list[int] = field(default_factory=list)
    reason: Optional[str] = None

    @property
    def clustered(self) -> bool:
        return self.cluster_id is not None
