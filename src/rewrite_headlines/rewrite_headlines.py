"""Core logic for generating and gating rewritten headlines."""

import logging
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from common.batch import BatchResult, run_bounded
from common.errors import GenerationError
from common.settings import RewriteSettings
from rewrite_headlines.content import extract_content_snippet
from rewrite_headlines.generate import HeadlineGenerator
from rewrite_headlines.models import RewriteCandidate, RewriteContext, RewriteOutcome
from rewrite_headlines.numbers import build_source_quant_context
from rewrite_headlines.validate import validate_rewrite

logger = logging.getLogger(__name__)


def to_rewrite_candidate(row: dict[str, Any]) -> RewriteCandidate:
    return RewriteCandidate(
        id=row["id"],
        title=row.get("title") or "",
        dek=row.get("dek"),
        content_text=row.get("content_text"),
        content_html=row.get("content_html"),
    )


def build_context(candidate: RewriteCandidate, snippet: Optional[str]) -> RewriteContext:
    return RewriteContext(
        has_content=snippet is not None,
        source_numbers=build_source_quant_context([candidate.title, candidate.dek, snippet]),
    )


async def rewrite_one(
    candidate: RewriteCandidate,
    generator: HeadlineGenerator,
    store: Any,
    settings: RewriteSettings,
    now: datetime,
) -> RewriteOutcome:
    """Generate, validate and persist a rewrite for one article.

    Generator failures are recorded as notes rather than raised, so the
    article stays eligible for the next run.
    """
    snippet = extract_content_snippet(
        candidate.content_text, candidate.content_html, settings.snippet_max_chars
    )
    context = build_context(candidate, snippet)

    try:
        raw = await generator.generate(candidate.title, candidate.dek, snippet)
    except GenerationError as exc:
        logger.warning("Rewrite generation failed for article %s: %s", candidate.id, exc.note)
        outcome = RewriteOutcome(candidate.id, False, None, generator.model, exc.note)
    else:
        verdict = validate_rewrite(candidate.title, raw, context, settings)
        if verdict.accepted:
            outcome = RewriteOutcome(candidate.id, True, verdict.headline, generator.model, "ok")
        else:
            logger.info(
                "Rejected rewrite for article %s (%s): %r", candidate.id, verdict.reason, raw
            )
            outcome = RewriteOutcome(
                candidate.id, False, None, generator.model, f"rejected:{verdict.reason}"
            )

    await store.save_rewrite(outcome, now)
    return outcome


def summarize_outcomes(outcomes: list[RewriteOutcome]) -> dict[str, int]:
    counts: Counter = Counter()
    for outcome in outcomes:
        if outcome.accepted:
            counts["accepted"] += 1
        elif outcome.notes.startswith("rejected:"):
            counts["rejected"] += 1
        else:
            counts["generation_failed"] += 1
    return dict(counts)


async def rewrite_headlines(
    store: Any,
    generator: HeadlineGenerator,
    settings: Optional[RewriteSettings] = None,
    concurrency: int = 4,
    lookback_hours: Optional[float] = None,
    limit: Optional[int] = None,
    now: Optional[datetime] = None,
) -> BatchResult[RewriteOutcome]:
    """
    Rewrite headlines for recent articles that have none yet.

    Args:
        store: Store with list_rewrite_candidates and save_rewrite
        generator: Headline generator
        settings: Rewrite settings (defaults when None)
        concurrency: Maximum simultaneous generator calls
        lookback_hours: Only consider articles published this recently
        limit: Maximum number of articles per run
        now: Reference time (default: current UTC time)

    Returns:
        BatchResult of RewriteOutcome records
    """
    settings = settings or RewriteSettings()
    now = now or datetime.now(timezone.utc)
    since = now - timedelta(hours=lookback_hours or settings.lookback_hours)

    rows = await store.list_rewrite_candidates(since, limit or settings.batch_limit)
    if not rows:
        logger.warning("No articles awaiting a rewrite")
        return BatchResult()

    candidates = [to_rewrite_candidate(row) for row in rows]
    logger.info("Rewriting %d headlines with %s", len(candidates), generator.model)
    result = await run_bounded(
        candidates,
        lambda candidate: rewrite_one(candidate, generator, store, settings, now),
        concurrency=concurrency,
        key=lambda candidate: candidate.id,
    )
    logger.info("Rewrite outcomes: %s", summarize_outcomes(result.results))
    return result
