"""CLI for clustering articles."""

from __future__ import annotations

import asyncio
import logging

from dotenv import load_dotenv

from cluster_articles.cluster_articles import ClusteringEngine, run_clustering_pass, summarize_assignments
from cluster_articles.helpers import parse_cluster_articles_args
from cluster_articles.similarity import PgVectorSimilarityIndex
from common.cli_helpers import emit_summary, setup_logging
from common.settings import Settings, get_settings
from compute_embeddings.providers import build_embedding_provider
from story_store.connection import dispose_engine
from story_store.repository import PostgresStore

load_dotenv()

logger = logging.getLogger(__name__)


async def _run(args, settings: Settings) -> dict[str, object]:
    store = PostgresStore()
    engine = ClusteringEngine(store, PgVectorSimilarityIndex(), settings.clustering)
    embedder = build_embedding_provider(settings.embedding) if args.embed_missing else None

    lookback_hours = args.lookback_hours
    if lookback_hours is None and args.maintenance:
        lookback_hours = settings.clustering.maintenance_lookback_hours

    try:
        result = await run_clustering_pass(
            store,
            engine,
            embedder=embedder,
            embedding_settings=settings.embedding,
            lookback_hours=lookback_hours,
            limit=args.limit,
            concurrency=args.concurrency or settings.batch.concurrency,
        )
    finally:
        await dispose_engine()
    return {**result.as_dict(), "outcomes": summarize_assignments(result.results)}


def main() -> None:
    args = parse_cluster_articles_args()
    setup_logging(args.verbose)
    emit_summary("cluster_articles", asyncio.run(_run(args, get_settings())))


if __name__ == "__main__":
    main()
