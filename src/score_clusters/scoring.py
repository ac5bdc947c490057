"""Ranking formulas for articles and clusters.

Pure functions of their inputs and `now`: the same members scored at the
same instant always give the same numbers. Missing author, dek, weight or
timestamp contribute zero instead of failing.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime
from itertools import groupby
from typing import Iterable, Sequence

from common.datetime import age_seconds, ensure_utc
from common.errors import InvariantViolation
from common.settings import ScoringSettings
from common.urls import host_of
from score_clusters.models import ClusterComponents, ClusterScoreRecord, MemberRow

logger = logging.getLogger(__name__)

_LN_HALF = math.log(0.5)


def decay(age: float | None, half_life_hours: float, max_exponent: float = 60.0) -> float:
    """Half-life decay in (0, 1]; 0.0 for a missing age.

    The exponent is clamped to [-max_exponent, 0], so very old items bottom
    out at exp(-max_exponent) and future-dated ones count as brand new.
    """
    if age is None or half_life_hours <= 0:
        return 0.0
    exponent = _LN_HALF * age / (half_life_hours * 3600.0)
    exponent = min(0.0, max(-max_exponent, exponent))
    return math.exp(exponent)


def _host_matches(host: str, domains: Iterable[str]) -> bool:
    return any(host == domain or host.endswith("." + domain) for domain in domains)


def editorial_quality(member: MemberRow, settings: ScoringSettings) -> float:
    quality = member.weight or 0.0
    if member.author and member.author.strip():
        quality += settings.author_bonus
    if member.dek and len(member.dek.strip()) >= settings.dek_min_chars:
        quality += settings.dek_bonus

    host = host_of(member.url)
    if host and _host_matches(host, settings.aggregator_hosts):
        quality -= settings.aggregator_penalty
    if host and _host_matches(host, settings.press_release_hosts):
        quality -= settings.press_release_penalty
    return quality


def freshness_blend(window_hours: float, settings: ScoringSettings) -> float:
    """Share of freshness in the article score; grows as the window tightens."""
    low, high = settings.freshness_blend_min, settings.freshness_blend_max
    if window_hours <= 0:
        return high
    tightness = min(1.0, settings.freshness_reference_hours / window_hours)
    return low + (high - low) * tightness


def article_score(
    member: MemberRow,
    now: datetime,
    settings: ScoringSettings,
    blend: float,
) -> float:
    freshness = decay(
        age_seconds(member.published_at, now),
        settings.article_half_life_hours,
        settings.max_decay_exponent,
    )
    return (1.0 - blend) * editorial_quality(member, settings) + blend * freshness


def cluster_components(
    members: Sequence[MemberRow],
    article_scores: Sequence[float],
    now: datetime,
    settings: ScoringSettings,
) -> ClusterComponents:
    weights = [max(0.0, m.weight or 0.0) for m in members]
    distinct_sources = len({m.source_key for m in members})

    coverage = (
        math.log1p(sum(weights))
        + math.log1p(distinct_sources)
        + settings.size_coverage_factor * math.log1p(len(members))
    )

    velocity_seconds = settings.velocity_window_hours * 3600.0
    ages = [age_seconds(m.published_at, now) for m in members]
    recent = sum(1 for age in ages if age is not None and age <= velocity_seconds)
    velocity = math.log1p(recent)

    known_ages = [age for age in ages if age is not None]
    freshness = (
        decay(min(known_ages), settings.cluster_half_life_hours, settings.max_decay_exponent)
        if known_ages
        else 0.0
    )

    average_weight = sum(weights) / len(weights) if weights else 0.0
    pooled = math.log1p(max(0.0, sum(article_scores)))

    return ClusterComponents(
        coverage=coverage,
        velocity=velocity,
        freshness=freshness,
        average_weight=average_weight,
        pooled=pooled,
        distinct_sources=distinct_sources,
    )


def combine(components: ClusterComponents, settings: ScoringSettings) -> float:
    return (
        settings.coverage_weight * components.coverage
        + settings.velocity_weight * components.velocity
        + settings.freshness_weight * components.freshness
        + settings.source_weight_weight * components.average_weight
        + settings.pooled_weight * components.pooled
    )


def pick_lead(members: Sequence[MemberRow], article_scores: Sequence[float]) -> MemberRow:
    """Highest article score; ties go to the newer, then the higher id."""
    if not members:
        raise InvariantViolation("cannot pick a lead for an empty cluster")

    def rank(pair: tuple[MemberRow, float]) -> tuple:
        member, score = pair
        published = ensure_utc(member.published_at).timestamp() if member.published_at else float("-inf")
        return (score, published, member.article_id)

    return max(zip(members, article_scores), key=rank)[0]


def _why(components: ClusterComponents, size: int) -> str:
    return (
        f"coverage={components.coverage:.3f} velocity={components.velocity:.3f} "
        f"freshness={components.freshness:.3f} avg_weight={components.average_weight:.3f} "
        f"pooled={components.pooled:.3f} sources={components.distinct_sources} size={size}"
    )


def score_cluster(
    cluster_id: int,
    members: Sequence[MemberRow],
    now: datetime,
    settings: ScoringSettings,
    blend: float,
) -> ClusterScoreRecord:
    if any(m.cluster_id != cluster_id for m in members):
        raise InvariantViolation(f"cluster {cluster_id} received members of another cluster")

    scores = [article_score(m, now, settings, blend) for m in members]
    lead = pick_lead(members, scores)
    if lead.article_id not in {m.article_id for m in members}:
        raise InvariantViolation(f"lead {lead.article_id} is not a member of cluster {cluster_id}")

    components = cluster_components(members, scores, now, settings)
    score = combine(components, settings)
    if not math.isfinite(score):
        raise InvariantViolation(f"non-finite score for cluster {cluster_id}")

    return ClusterScoreRecord(
        cluster_id=cluster_id,
        lead_article_id=lead.article_id,
        size=len(members),
        score=score,
        why=_why(components, len(members)),
    )


def build_cluster_scores(
    members: Iterable[MemberRow],
    now: datetime,
    settings: ScoringSettings,
    window_hours: float,
) -> tuple[list[ClusterScoreRecord], list[int]]:
    """Score every cluster; a cluster that fails is dropped, the rest proceed.

    Returns:
        (records sorted by score descending then cluster id, failed cluster ids)
    """
    blend = freshness_blend(window_hours, settings)
    ordered = sorted(members, key=lambda m: (m.cluster_id, m.article_id))

    records: list[ClusterScoreRecord] = []
    failed: list[int] = []
    for cluster_id, group in groupby(ordered, key=lambda m: m.cluster_id):
        cluster_members = list(group)
        try:
            records.append(score_cluster(cluster_id, cluster_members, now, settings, blend))
        except Exception:
            logger.exception("Failed to score cluster %s", cluster_id)
            failed.append(cluster_id)

    records.sort(key=lambda r: (-r.score, r.cluster_id))
    return records, failed
