"""Data models for score_clusters pipeline stage."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class MemberRow:
    """One cluster member as seen by the scorer."""

    cluster_id: int
    article_id: int
    published_at: Optional[datetime]
    source_key: str
    weight: Optional[float] = None
    author: Optional[str] = None
    dek: Optional[str] = None
    url: Optional[str] = None


@dataclass(frozen=True)
class ClusterComponents:
    coverage: float
    velocity: float
    freshness: float
    average_weight: float
    pooled: float
    distinct_sources: int


@dataclass(frozen=True)
class ClusterScoreRecord:
    """Replacement row for cluster_scores."""

    cluster_id: int
    lead_article_id: int
    size: int
    score: float
    why: str


@dataclass
class ScoringReport:
    records: list[ClusterScoreRecord] = field(default_factory=list)
    failed_cluster_ids: list[int] = field(default_factory=list)
    written: int = 0
    computed_at: Optional[datetime] = None

    def as_dict(self) -> dict:
        return {
            "clusters": len(self.records),
            "failed": len(self.failed_cluster_ids),
            "written": self.written,
            "computed_at": self.computed_at.isoformat() if self.computed_at else None,
        }
