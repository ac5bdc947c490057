"""Acceptance checks for generated headlines.

Checks run in a fixed order and the first failure decides the reason:
empty, same_as_original, length, compression, numbers, then the banned
phrase families. `trail` on the result lists every check that passed.
"""

from __future__ import annotations

import logging
import math
import re

from common.settings import RewriteSettings
from common.utils import collapse_whitespace, word_count
from rewrite_headlines.models import RewriteContext, ValidationResult
from rewrite_headlines.numbers import unsourced_numbers
from rewrite_headlines.patterns import find_banned_phrase

logger = logging.getLogger(__name__)

_QUOTES_RE = re.compile(r"^[“\"'‘\s]+|[”\"'’\s]+$")
_TRAILING_PUNCT_RE = re.compile(r"[\s|•–—\-.:;,]+$")
_NON_WORD_RE = re.compile(r"[\W_]+")


def sanitize_headline(raw: str | None) -> str:
    """Strip wrapping quotes, collapse whitespace, drop trailing punctuation."""
    if not raw:
        return ""
    text = collapse_whitespace(_QUOTES_RE.sub("", raw.strip()))
    return _TRAILING_PUNCT_RE.sub("", text)


def _comparable(text: str) -> str:
    return _NON_WORD_RE.sub(" ", text.lower()).strip()


def required_words(original: str, has_content: bool, settings: RewriteSettings) -> int:
    """Minimum word count a rewrite of `original` must keep."""
    original_words = word_count(original)
    if original_words >= settings.social_post_words:
        return settings.social_post_min_words
    if has_content:
        return max(
            settings.min_words_with_content,
            math.ceil(settings.ratio_with_content * original_words),
        )
    return max(
        settings.min_words_without_content,
        math.ceil(settings.ratio_without_content * original_words),
    )


def _enabled_families(settings: RewriteSettings) -> tuple[str, ...]:
    families = []
    if settings.check_hype:
        families.append("hype")
    if settings.check_hedge:
        families.append("hedge")
    if settings.check_vague:
        families.append("vague")
    return tuple(families)


def validate_rewrite(
    original: str,
    candidate: str | None,
    context: RewriteContext,
    settings: RewriteSettings | None = None,
) -> ValidationResult:
    settings = settings or RewriteSettings()
    headline = sanitize_headline(candidate)
    trail: list[str] = []

    def reject(reason: str) -> ValidationResult:
        logger.debug("Rejected rewrite %r: %s", headline, reason)
        return ValidationResult(False, reason, headline, tuple(trail))

    if not headline:
        return reject("empty")
    trail.append("empty")

    if _comparable(headline) == _comparable(original or ""):
        return reject("same_as_original")
    trail.append("same_as_original")

    min_chars = (
        settings.min_chars_with_content
        if context.has_content
        else settings.min_chars_without_content
    )
    if len(headline) < min_chars:
        return reject(f"too_short:{len(headline)}")
    if len(headline) > settings.max_chars:
        return reject(f"too_long:{len(headline)}")
    trail.append("length")

    words = word_count(headline)
    needed = required_words(original or "", context.has_content, settings)
    if words < needed:
        return reject(f"compression:{words}/{needed}")
    trail.append("compression")

    missing = unsourced_numbers(headline, context.source_numbers)
    if missing:
        return reject(f"unsourced_number:{missing[0]}")
    trail.append("numbers")

    banned = find_banned_phrase(headline, _enabled_families(settings))
    if banned:
        family, match = banned
        return reject(f"{family}:{match}")
    trail.append("patterns")

    return ValidationResult(True, "ok", headline, tuple(trail))
