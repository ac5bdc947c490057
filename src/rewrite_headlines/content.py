"""Body-text excerpts used to ground rewrites."""

from __future__ import annotations

import html
import logging
import re

from common.utils import collapse_whitespace, truncate

logger = logging.getLogger(__name__)

MIN_CONTENT_CHARS = 100
MIN_CONTENT_WORDS = 30
MAX_PAYWALL_SIGNALS = 1

_TAG_RE = re.compile(r"<[^>]+>")
_SCRIPT_RE = re.compile(r"<(script|style)\b[^>]*>.*?</\1>", re.IGNORECASE | re.DOTALL)
_SENTENCE_RE = re.compile(r"[^.!?]+[.!?]+[\"')\]]*|[^.!?]+$")

PAYWALL_SIGNALS = (
    re.compile(r"\bsubscribe\b", re.IGNORECASE),
    re.compile(r"\bsubscribers?\b", re.IGNORECASE),
    re.compile(r"\bsign in\b", re.IGNORECASE),
    re.compile(r"\blog ?in to\b", re.IGNORECASE),
    re.compile(r"\bpremium\b", re.IGNORECASE),
    re.compile(r"\bmembers?[- ]only\b", re.IGNORECASE),
    re.compile(r"\bpaywall\b", re.IGNORECASE),
    re.compile(r"\bto continue reading\b", re.IGNORECASE),
    re.compile(r"\bcreate a free account\b", re.IGNORECASE),
)


def html_to_text(markup: str | None) -> str:
    if not markup:
        return ""
    without_scripts = _SCRIPT_RE.sub(" ", markup)
    return collapse_whitespace(html.unescape(_TAG_RE.sub(" ", without_scripts)))


def count_paywall_signals(text: str) -> int:
    return sum(1 for pattern in PAYWALL_SIGNALS if pattern.search(text))


def extract_content_snippet(
    content_text: str | None,
    content_html: str | None = None,
    max_chars: int = 400,
) -> str | None:
    """Leading whole sentences of the body, up to max_chars.

    Returns None when the body is too short, too few words, or looks like a
    paywall or login page (two or more distinct signals).
    """
    text = collapse_whitespace(content_text) or html_to_text(content_html)
    if len(text) < MIN_CONTENT_CHARS:
        return None
    if len(text.split()) < MIN_CONTENT_WORDS:
        return None
    signals = count_paywall_signals(text)
    if signals > MAX_PAYWALL_SIGNALS:
        logger.debug("Rejecting body with %d paywall signals", signals)
        return None

    snippet = ""
    for match in _SENTENCE_RE.finditer(text):
        sentence = match.group(0).strip()
        if not sentence:
            continue
        candidate = f"{snippet} {sentence}".strip()
        if len(candidate) > max_chars:
            break
        snippet = candidate

    return snippet or truncate(text, max_chars)
