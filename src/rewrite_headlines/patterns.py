"""Banned phrasing for rewritten headlines.

Three families: hype (tabloid or promotional words), hedge (words that
weaken a stated fact) and vague (phrasing that describes coverage instead
of stating the news). All patterns are case-insensitive and word-bounded.
"""

from __future__ import annotations

import re

HYPE_PATTERNS = (
    r"revolutionary",
    r"game[- ]?changer",
    r"game[- ]changing",
    r"unprecedented",
    r"slams?",
    r"blasts?",
    r"groundbreaking",
    r"stunning",
    r"shocking",
    r"bombshell",
    r"jaw[- ]dropping",
    r"mind[- ]blowing",
    r"historic",
    r"must[- ]see",
)

HEDGE_PATTERNS = (
    r"likely",
    r"unlikely",
    r"set to",
    r"poised to",
    r"expected to",
    r"could",
    r"might",
    r"appears? to",
    r"seems? to",
    r"reportedly",
    r"possibly",
    r"potentially",
)

VAGUE_PATTERNS = (
    r"reports? on",
    r"rais(?:e|es|ing) concerns?",
    r"amid concerns?",
    r"citing challenges",
    r"fac(?:e|es|ing) challenges",
    r"(?:builds?|building|gains?|gaining) momentum",
    r"aim(?:s|ing)? to",
    r"impacting",
    r"reflecting",
    r"detailing",
    r"outlines?",
    r"highlights",
    r"underscores?",
    r"emphasi[sz]es",
    r"addressing",
    r"key strategies",
    r"urgent need",
    r"rais(?:e|es|ing) doubts",
    r"sheds? light",
    r"shifts? across",
    r"fac(?:e|es|ing) (?:major )?setbacks",
    r"comprehensive",
    r"significantly",
)


def _compile(patterns: tuple[str, ...]) -> re.Pattern:
    return re.compile(r"\b(?:" + "|".join(patterns) + r")\b", re.IGNORECASE)


HYPE_RE = _compile(HYPE_PATTERNS)
HEDGE_RE = _compile(HEDGE_PATTERNS)
VAGUE_RE = _compile(VAGUE_PATTERNS)

PATTERN_FAMILIES = (
    ("hype", HYPE_RE),
    ("hedge", HEDGE_RE),
    ("vague", VAGUE_RE),
)


def find_banned_phrase(
    headline: str,
    families: tuple[str, ...] = ("hype", "hedge", "vague"),
) -> tuple[str, str] | None:
    """First (family, matched text) found in headline, or None."""
    for family, pattern in PATTERN_FAMILIES:
        if family not in families:
            continue
        match = pattern.search(headline)
        if match:
            return family, match.group(0).lower()
    return None
