"""CLI for registering parsed feed items."""

from __future__ import annotations

import asyncio
import logging

from dotenv import load_dotenv

from cluster_articles.cluster_articles import ClusteringEngine, run_clustering_pass, summarize_assignments
from cluster_articles.similarity import PgVectorSimilarityIndex
from common.cache import AdvisoryCache
from common.cli_helpers import emit_summary, setup_logging
from common.settings import Settings, get_settings
from compute_embeddings.providers import build_embedding_provider
from ingest_articles.clean import clean
from ingest_articles.helpers import parse_ingest_articles_args
from ingest_articles.ingest_articles import load_feed_items, register_articles
from story_store.connection import dispose_engine
from story_store.repository import PostgresStore

load_dotenv()

logger = logging.getLogger(__name__)


async def _run(args, settings: Settings) -> dict[str, object]:
    items = clean(load_feed_items(args.input))
    if not items:
        logger.warning("No feed items to register")
        return {"registered": 0}

    store = PostgresStore()
    concurrency = args.concurrency or settings.batch.concurrency
    try:
        result = await register_articles(
            items, store, AdvisoryCache("sources"), concurrency=concurrency
        )
        summary: dict[str, object] = {
            **result.as_dict(),
            "created": sum(1 for registered in result.results if registered.created),
        }
        if args.cluster:
            engine = ClusteringEngine(store, PgVectorSimilarityIndex(), settings.clustering)
            clustered = await run_clustering_pass(
                store,
                engine,
                embedder=build_embedding_provider(settings.embedding),
                embedding_settings=settings.embedding,
                concurrency=concurrency,
            )
            summary["clustering"] = summarize_assignments(clustered.results)
    finally:
        await dispose_engine()
    return summary


def main() -> None:
    args = parse_ingest_articles_args()
    setup_logging(args.verbose)
    emit_summary("ingest_articles", asyncio.run(_run(args, get_settings())))


if __name__ == "__main__":
    main()
