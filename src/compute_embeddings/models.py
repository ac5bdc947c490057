"""Data models for compute_embeddings pipeline stage."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class ArticleToEmbed:
    """Article fields that feed the embedding text."""
    id: int
    title: str
    dek: Optional[str] = None
    content_text: Optional[str] = None


@dataclass
class EmbeddedArticle:
    """Result of embedding one article."""
    id: int
    embedded_text: str
    embedding_model: str
    dimensions: int
    stored: bool
