"""Normalize raw feed items before registration."""

import logging
import re
from typing import Any, Optional

from common.datetime import parse_optional_datetime
from common.utils import get_value
from ingest_articles.models import FeedItem

logger = logging.getLogger(__name__)


def clean_text(text: Optional[str]) -> Optional[str]:
    """Clean text by stripping HTML, fixing escapes, and collapsing whitespace."""
    if not text:
        return None
    # Strip HTML tags (keep text content)
    text = re.sub(r"<[^>]+>", " ", text)
    text = text.replace('\\"', '"')
    text = re.sub(r"\s+", " ", text).strip()
    return text if text else None


def _parse_weight(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring invalid source weight: %r", value)
        return None


def to_feed_item(raw: Any) -> Optional[FeedItem]:
    """Build a FeedItem from a raw dict, or None when required fields are missing.

    Accepts the fetcher's field names ("link", "summary", "text") as well as
    the model's own.
    """
    source = clean_text(get_value(raw, "source"))
    title = clean_text(get_value(raw, "title"))
    url = (get_value(raw, "url") or get_value(raw, "link") or "").strip()

    if not source or not title or not url:
        logger.warning(
            "Skipping feed item with missing source, title or url: source=%s, url=%s",
            source,
            url,
        )
        return None

    return FeedItem(
        source=source,
        title=title,
        url=url,
        published_at=parse_optional_datetime(get_value(raw, "published_at")),
        dek=clean_text(get_value(raw, "dek") or get_value(raw, "summary")),
        author=clean_text(get_value(raw, "author")),
        content_text=clean_text(get_value(raw, "content_text") or get_value(raw, "text")),
        source_homepage_url=get_value(raw, "source_homepage_url"),
        source_feed_url=get_value(raw, "source_feed_url"),
        source_weight=_parse_weight(get_value(raw, "source_weight")),
    )


def clean(raw_items: list[Any]) -> list[FeedItem]:
    """Clean raw feed items, dropping the ones that cannot be registered."""
    if not raw_items:
        logger.warning("No feed items to clean")
        return []

    items = [item for item in (to_feed_item(raw) for raw in raw_items) if item]
    logger.info("Cleaned %d of %d feed items", len(items), len(raw_items))
    return items
