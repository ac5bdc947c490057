"""CLI for scoring clusters."""

from __future__ import annotations

import asyncio
import logging

from dotenv import load_dotenv

from common.cli_helpers import emit_summary, save_jsonl_local, setup_logging
from common.serialization import serialize_dataclass
from common.settings import Settings, get_settings
from score_clusters.helpers import parse_score_clusters_args
from score_clusters.score_clusters import recompute
from story_store.connection import dispose_engine
from story_store.repository import PostgresStore

load_dotenv()

logger = logging.getLogger(__name__)


async def _run(args, settings: Settings) -> dict[str, object]:
    try:
        report = await recompute(
            PostgresStore(),
            settings.scoring,
            window_hours=args.window_hours,
            dry_run=args.dry_run,
        )
    finally:
        await dispose_engine()

    for rank, record in enumerate(report.records[: args.top], 1):
        logger.info(
            "#%d cluster=%s score=%.3f size=%d lead=%s (%s)",
            rank,
            record.cluster_id,
            record.score,
            record.size,
            record.lead_article_id,
            record.why,
        )

    if args.load_local and report.computed_at:
        records = [serialize_dataclass(record) for record in report.records]
        filepath = save_jsonl_local(records, "cluster_scores", report.computed_at)
        logger.info("Saved %d cluster scores to %s", len(records), filepath)

    return report.as_dict()


def main() -> None:
    args = parse_score_clusters_args()
    setup_logging(args.verbose)
    emit_summary("score_clusters", asyncio.run(_run(args, get_settings())))


if __name__ == "__main__":
    main()
