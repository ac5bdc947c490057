"""Recompute the cluster_scores projection."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from common.datetime import ensure_utc
from common.settings import ScoringSettings
from common.urls import host_of
from score_clusters.models import MemberRow, ScoringReport
from score_clusters.scoring import build_cluster_scores

logger = logging.getLogger(__name__)


def to_member_row(row: dict[str, Any]) -> MemberRow:
    """Build a MemberRow from a store row; articles without a source count by host."""
    source_id = row.get("source_id")
    url = row.get("canonical_url") or row.get("url")
    source_key = f"source:{source_id}" if source_id is not None else f"host:{host_of(url)}"
    published_at = row.get("published_at")
    weight = row.get("weight")
    return MemberRow(
        cluster_id=row["cluster_id"],
        article_id=row["article_id"],
        published_at=ensure_utc(published_at) if published_at else None,
        source_key=source_key,
        weight=float(weight) if weight is not None else None,
        author=row.get("author"),
        dek=row.get("dek"),
        url=url,
    )


async def recompute(
    store: Any,
    settings: Optional[ScoringSettings] = None,
    window_hours: Optional[float] = None,
    now: Optional[datetime] = None,
    dry_run: bool = False,
) -> ScoringReport:
    """
    Replace every ClusterScore row from the current articles and memberships.

    Args:
        store: Store with load_scoring_members and replace_cluster_scores
        settings: Scoring settings (defaults when None)
        window_hours: Only members published within this window count
        now: Reference time; fixing it makes runs reproducible
        dry_run: Compute without writing

    Returns:
        ScoringReport with the records, failed cluster ids and rows written
    """
    settings = settings or ScoringSettings()
    window_hours = window_hours or settings.window_hours
    now = now or datetime.now(timezone.utc)
    since = now - timedelta(hours=window_hours)

    rows = await store.load_scoring_members(since)
    members = [to_member_row(row) for row in rows]
    logger.info("Scoring %d members since %s", len(members), since.isoformat())

    records, failed = build_cluster_scores(members, now, settings, window_hours)
    report = ScoringReport(records=records, failed_cluster_ids=failed, computed_at=now)

    if failed:
        logger.warning("Skipped %d clusters that failed to score: %s", len(failed), failed)
    if dry_run:
        logger.info("Dry run: computed %d cluster scores, nothing written", len(records))
        return report

    report.written = await store.replace_cluster_scores(records, updated_at=now)
    logger.info("Wrote %d cluster scores", report.written)
    return report
