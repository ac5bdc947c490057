"""Data models for rewrite_headlines pipeline stage."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class RewriteContext:
    """What the validator knows about the source material.

    `has_content` is True only when real body text was available;
    `source_numbers` holds the normalized numeric tokens found anywhere in
    the title, dek and body excerpt.
    """

    has_content: bool
    source_numbers: frozenset[str] = frozenset()


@dataclass(frozen=True)
class ValidationResult:
    accepted: bool
    reason: str
    headline: str
    trail: tuple[str, ...] = ()


@dataclass
class RewriteCandidate:
    """Article awaiting a rewritten headline."""

    id: int
    title: str
    dek: Optional[str] = None
    content_text: Optional[str] = None
    content_html: Optional[str] = None


@dataclass
class RewriteOutcome:
    article_id: int
    accepted: bool
    headline: Optional[str]
    model: Optional[str]
    notes: str
