"""Core embedding computation logic."""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from common.batch import BatchResult, run_bounded
from common.settings import EmbeddingSettings
from common.utils import collapse_whitespace, get_value
from compute_embeddings.models import ArticleToEmbed, EmbeddedArticle
from compute_embeddings.providers import EmbeddingProvider

logger = logging.getLogger(__name__)

DEFAULT_MAX_CHARS = 1200


def _split_sentences(text: str) -> list[str]:
    """Split text into sentences with a simple punctuation heuristic."""
    if not text:
        return []
    matches = re.findall(r"[^.!?]+[.!?]+|[^.!?]+$", text)
    return [m.strip() for m in matches if m.strip()]


def build_text_to_embed(
    article: Any,
    word_limit: Optional[int] = None,
    max_chars: int = DEFAULT_MAX_CHARS,
) -> str:
    """Build the text string to embed from title, dek and body text.

    Args:
        article: Article object or dict with title, dek, content_text fields
        word_limit: Keep whole sentences up to this many words (None for no limit)
        max_chars: Hard cap on the returned text length

    Returns:
        Whitespace-collapsed text, possibly empty
    """
    parts = []
    for field_name in ("title", "dek", "content_text"):
        value = collapse_whitespace(get_value(article, field_name))
        if value:
            parts.append(value)

    combined = " ".join(parts)

    if word_limit:
        selected = []
        word_count = 0
        for sentence in _split_sentences(combined):
            words = sentence.split()
            if word_count + len(words) > word_limit:
                break
            selected.append(sentence)
            word_count += len(words)
        combined = " ".join(selected)

    return combined[:max_chars].strip()


def to_article_to_embed(row: dict[str, Any]) -> ArticleToEmbed:
    return ArticleToEmbed(
        id=row["id"],
        title=row.get("title") or "",
        dek=row.get("dek"),
        content_text=row.get("content_text"),
    )


async def embed_article(
    article: ArticleToEmbed,
    provider: EmbeddingProvider,
    store: Any,
    settings: EmbeddingSettings,
) -> EmbeddedArticle:
    """Embed one article and store the vector if the article still has none."""
    text = build_text_to_embed(article, settings.word_limit, settings.max_chars)
    vector = await provider.embed(text)
    stored = await store.save_embedding(article.id, vector)
    if not stored:
        logger.info("Article %s already had an embedding; kept the stored one", article.id)
    return EmbeddedArticle(
        id=article.id,
        embedded_text=text,
        embedding_model=provider.model,
        dimensions=len(vector),
        stored=stored,
    )


async def compute_embeddings(
    store: Any,
    provider: EmbeddingProvider,
    settings: Optional[EmbeddingSettings] = None,
    concurrency: int = 4,
    lookback_hours: Optional[float] = None,
    limit: Optional[int] = None,
    now: Optional[datetime] = None,
) -> BatchResult[EmbeddedArticle]:
    """
    Backfill embeddings for recent articles that have none.

    Args:
        store: Store with list_missing_embeddings and save_embedding
        provider: Embedding provider to call
        settings: Embedding settings (defaults when None)
        concurrency: Maximum simultaneous provider calls
        lookback_hours: Only consider articles fetched this recently
        limit: Maximum number of articles to embed in this run
        now: Reference time (default: current UTC time)

    Returns:
        BatchResult of EmbeddedArticle records
    """
    settings = settings or EmbeddingSettings()
    now = now or datetime.now(timezone.utc)
    since = now - timedelta(hours=lookback_hours or settings.lookback_hours)

    rows = await store.list_missing_embeddings(since, limit or settings.batch_limit)
    if not rows:
        logger.warning("No articles to embed")
        return BatchResult()

    articles = [to_article_to_embed(row) for row in rows]
    logger.info(
        "Embedding %d articles with %s (concurrency=%d)", len(articles), provider.model, concurrency
    )
    result = await run_bounded(
        articles,
        lambda article: embed_article(article, provider, store, settings),
        concurrency=concurrency,
        key=lambda article: article.id,
    )
    logger.info("Computed embeddings for %d articles", result.succeeded)
    return result
