"""Data models for ingest_articles pipeline stage."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class FeedItem:
    """Parsed feed entry handed over by the external fetcher."""
    source: str
    title: str
    url: str
    published_at: Optional[datetime] = None
    dek: Optional[str] = None
    author: Optional[str] = None
    content_text: Optional[str] = None
    source_homepage_url: Optional[str] = None
    source_feed_url: Optional[str] = None
    source_weight: Optional[float] = None


@dataclass
class RegisteredArticle:
    """Result of registering one feed item."""
    article_id: Optional[int]
    source_id: int
    canonical_url: str
    created: bool
