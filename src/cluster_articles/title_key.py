"""Normalized title keys and fuzzy key matching for the textual fallback."""

from __future__ import annotations

import re
import unicodedata
from typing import Iterable

from fuzzywuzzy import fuzz
from spacy.lang.en.stop_words import STOP_WORDS

from cluster_articles.models import FuzzyMatch

DEFAULT_MAX_CHARS = 160

_NON_WORD_RE = re.compile(r"[^a-z0-9\s]")


def normalize_title_key(title: str | None, max_chars: int = DEFAULT_MAX_CHARS) -> str:
    """Lowercase, fold accents, drop punctuation and English stop words.

    Returns an empty string when nothing meaningful is left.
    """
    if not title:
        return ""
    folded = unicodedata.normalize("NFKD", title).encode("ascii", "ignore").decode("ascii")
    cleaned = _NON_WORD_RE.sub(" ", folded.lower())
    words = [word for word in cleaned.split() if word not in STOP_WORDS]
    return " ".join(words)[:max_chars].strip()


def key_similarity(left: str, right: str) -> float:
    """String similarity of two keys in [0, 1]."""
    return fuzz.ratio(left, right) / 100


def best_fuzzy_match(
    key: str,
    candidates: Iterable[tuple[int, str]],
    threshold: float,
) -> FuzzyMatch | None:
    """Best-scoring (cluster_id, key) candidate at or above threshold.

    Ties keep the first candidate seen.
    """
    best: FuzzyMatch | None = None
    for cluster_id, candidate_key in candidates:
        if not candidate_key:
            continue
        score = key_similarity(key, candidate_key)
        if best is None or score > best.score:
            best = FuzzyMatch(cluster_id=cluster_id, key=candidate_key, score=score)
    if best is None or best.score < threshold:
        return None
    return best
