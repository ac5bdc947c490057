"""CLI for rewriting headlines."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace

from dotenv import load_dotenv

from common.cli_helpers import emit_summary, setup_logging
from common.settings import Settings, get_settings
from rewrite_headlines.generate import HeadlineGenerator
from rewrite_headlines.helpers import parse_rewrite_headlines_args
from rewrite_headlines.rewrite_headlines import rewrite_headlines, summarize_outcomes
from story_store.connection import dispose_engine
from story_store.repository import PostgresStore

load_dotenv()

logger = logging.getLogger(__name__)


async def _run(args, settings: Settings) -> dict[str, object]:
    rewrite_settings = settings.rewrite
    if args.model:
        rewrite_settings = replace(rewrite_settings, model=args.model)

    generator = HeadlineGenerator(rewrite_settings)
    try:
        result = await rewrite_headlines(
            PostgresStore(),
            generator,
            settings=rewrite_settings,
            concurrency=args.concurrency or settings.batch.concurrency,
            lookback_hours=args.lookback_hours,
            limit=args.limit,
        )
    finally:
        await dispose_engine()
    return {
        "model": generator.model,
        "outcomes": summarize_outcomes(result.results),
        **result.as_dict(),
    }


def main() -> None:
    args = parse_rewrite_headlines_args()
    setup_logging(args.verbose)
    emit_summary("rewrite_headlines", asyncio.run(_run(args, get_settings())))


if __name__ == "__main__":
    main()
