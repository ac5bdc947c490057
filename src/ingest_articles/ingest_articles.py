"""Register parsed feed items as sources and articles."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError

from common.batch import BatchResult, run_bounded
from common.cache import AdvisoryCache
from common.urls import canonical_url, slugify
from ingest_articles.models import FeedItem, RegisteredArticle

logger = logging.getLogger(__name__)


def load_feed_items(path: Path) -> list[dict[str, Any]]:
    """Read raw feed items from a JSONL file, skipping blank and malformed lines."""
    records = []
    with path.open() as f:
        for line_number, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                records.append(json.loads(line))
            except json.JSONDecodeError as exc:
                logger.warning("Skipping malformed line %d in %s: %s", line_number, path, exc)
    return records


async def resolve_source_id(item: FeedItem, store: Any, source_cache: AdvisoryCache) -> int:
    slug = slugify(item.source)
    return await source_cache.get_or_load(
        slug,
        lambda: store.upsert_source(
            slug,
            item.source,
            homepage_url=item.source_homepage_url,
            feed_url=item.source_feed_url,
            weight=item.source_weight,
        ),
    )


def _article_record(item: FeedItem, source_id: int, canonical: str, now: datetime) -> dict[str, Any]:
    return {
        "source_id": source_id,
        "url": item.url,
        "canonical_url": canonical,
        "title": item.title,
        "dek": item.dek,
        "author": item.author,
        "published_at": item.published_at,
        "fetched_at": now,
        "content_text": item.content_text,
    }


async def register_article(
    item: FeedItem,
    store: Any,
    source_cache: AdvisoryCache,
    now: datetime,
) -> RegisteredArticle:
    """Upsert the item's source and insert the article once per canonical URL.

    A cached source id the store rejects is invalidated and resolved again
    before a single retry.
    """
    canonical = canonical_url(item.url)
    source_id = await resolve_source_id(item, store, source_cache)
    try:
        article_id = await store.insert_article(_article_record(item, source_id, canonical, now))
    except IntegrityError:
        slug = slugify(item.source)
        logger.warning("Store rejected cached source id %s for %s; reloading", source_id, slug)
        source_cache.invalidate(slug)
        source_id = await resolve_source_id(item, store, source_cache)
        article_id = await store.insert_article(_article_record(item, source_id, canonical, now))

    if article_id is None:
        logger.debug("Duplicate article skipped: %s", canonical)
    return RegisteredArticle(
        article_id=article_id,
        source_id=source_id,
        canonical_url=canonical,
        created=article_id is not None,
    )


async def register_articles(
    items: list[FeedItem],
    store: Any,
    source_cache: Optional[AdvisoryCache] = None,
    now: Optional[datetime] = None,
    concurrency: int = 4,
) -> BatchResult[RegisteredArticle]:
    """
    Register feed items with the store.

    Args:
        items: Cleaned feed items
        store: Store with upsert_source and insert_article
        source_cache: Source slug to id cache owned by this run (cleared first)
        now: Fetch time recorded on new articles (default: current UTC time)
        concurrency: Maximum simultaneous store calls

    Returns:
        BatchResult of RegisteredArticle records; duplicates count as successes
    """
    if not items:
        logger.warning("No feed items to register")
        return BatchResult()

    now = now or datetime.now(timezone.utc)
    source_cache = source_cache if source_cache is not None else AdvisoryCache("sources")
    source_cache.clear()

    result = await run_bounded(
        items,
        lambda item: register_article(item, store, source_cache, now),
        concurrency=concurrency,
        key=lambda item: item.url,
    )
    created = sum(1 for registered in result.results if registered.created)
    logger.info(
        "Registered %d new articles (%d duplicates); source cache %s",
        created,
        result.succeeded - created,
        source_cache.stats(),
    )
    return result
