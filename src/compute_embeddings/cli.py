"""CLI for computing embeddings."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace

from dotenv import load_dotenv

from common.cli_helpers import emit_summary, setup_logging
from common.settings import Settings, get_settings
from compute_embeddings.compute_embeddings import compute_embeddings
from compute_embeddings.helpers import parse_compute_embeddings_args
from compute_embeddings.providers import build_embedding_provider
from story_store.connection import dispose_engine
from story_store.repository import PostgresStore

load_dotenv()

logger = logging.getLogger(__name__)


async def _run(args, settings: Settings) -> dict[str, object]:
    embedding_settings = settings.embedding
    if args.provider:
        embedding_settings = replace(embedding_settings, provider=args.provider)
    if args.word_limit:
        embedding_settings = replace(embedding_settings, word_limit=args.word_limit)

    provider = build_embedding_provider(embedding_settings)
    if provider is None:
        logger.warning("No embedding provider available")
        return {"skipped": "no_provider"}

    try:
        result = await compute_embeddings(
            PostgresStore(),
            provider,
            settings=embedding_settings,
            concurrency=args.concurrency or settings.batch.concurrency,
            lookback_hours=args.lookback_hours,
            limit=args.limit,
        )
    finally:
        await dispose_engine()
    return {"model": provider.model, **result.as_dict()}


def main() -> None:
    args = parse_compute_embeddings_args()
    setup_logging(args.verbose)
    emit_summary("compute_embeddings", asyncio.run(_run(args, get_settings())))


if __name__ == "__main__":
    main()
