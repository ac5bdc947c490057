"""Tests for score_clusters.score_clusters module."""

import asyncio
from datetime import timedelta

from score_clusters.score_clusters import recompute, to_member_row


def _cluster(store, key, article_ids) -> int:
    cluster_id = asyncio.run(store.ensure_cluster(key))
    asyncio.run(store.add_members(cluster_id, article_ids))
    return cluster_id


class TestToMemberRow:
    def test_source_key_from_source_id(self) -> None:
        row = {"cluster_id": 1, "article_id": 2, "source_id": 9, "canonical_url": "https://a.com/x"}
        assert to_member_row(row).source_key == "source:9"

    def test_source_key_falls_back_to_host(self) -> None:
        row = {"cluster_id": 1, "article_id": 2, "source_id": None, "canonical_url": "https://www.a.com/x"}
        member = to_member_row(row)
        assert member.source_key == "host:a.com"
        assert member.weight is None


class TestRecompute:
    def test_writes_scores_and_leads(self, store, now) -> None:
        reuters = store.add_source("reuters", weight=1.5)
        bbc = store.add_source("bbc")
        a = store.add_article(source_id=reuters, published_at=now - timedelta(hours=1))
        b = store.add_article(source_id=bbc, published_at=now - timedelta(hours=2))
        c = store.add_article(source_id=bbc, published_at=now - timedelta(hours=40))
        big = _cluster(store, "storm hits coast", [a, b])
        small = _cluster(store, "profit jumps", [c])

        report = asyncio.run(recompute(store, now=now))

        assert report.written == 2
        assert [r.cluster_id for r in report.records] == [big, small]
        assert store.cluster_scores[big]["lead_article_id"] == a
        assert store.cluster_scores[big]["size"] == 2
        assert store.cluster_scores[small]["lead_article_id"] == c
        assert store.cluster_scores[big]["updated_at"] == now

    def test_rescoring_with_same_now_is_idempotent(self, store, now) -> None:
        a = store.add_article(published_at=now - timedelta(hours=1))
        b = store.add_article(published_at=now - timedelta(hours=3))
        _cluster(store, "storm hits coast", [a, b])

        asyncio.run(recompute(store, now=now))
        first = dict(store.cluster_scores)
        asyncio.run(recompute(store, now=now))

        assert store.cluster_scores == first

    def test_window_drops_old_clusters(self, store, now) -> None:
        old = store.add_article(published_at=now - timedelta(hours=500))
        _cluster(store, "old story", [old])

        report = asyncio.run(recompute(store, now=now))

        assert report.records == []
        assert store.cluster_scores == {}

    def test_dry_run_writes_nothing(self, store, now) -> None:
        a = store.add_article(published_at=now - timedelta(hours=1))
        _cluster(store, "storm hits coast", [a])

        report = asyncio.run(recompute(store, now=now, dry_run=True))

        assert len(report.records) == 1
        assert report.written == 0
        assert store.cluster_scores == {}
