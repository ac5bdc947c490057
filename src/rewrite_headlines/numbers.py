"""Numeric token extraction for the provenance check.

Tokens are matched verbatim after normalization: "1,200" and "1200" agree,
"80 percent" and "80%" agree, but "5 gigawatts" and "5GW" do not.
"""

from __future__ import annotations

import re
from typing import Iterable

# Digits not glued to a preceding letter (so "CO2" is not a number), with
# optional thousands commas, decimals, a percent form or attached unit letters.
_NUMBER_RE = re.compile(
    r"(?<![A-Za-z0-9.])(\d[\d,]*(?:\.\d+)?)(?:\s?(%|percent\b|per\s+cent\b)|([A-Za-z]+))?",
    re.IGNORECASE,
)

NUMBER_WORDS = frozenset(
    {
        "zero", "one", "two", "three", "four", "five", "six", "seven", "eight",
        "nine", "ten", "eleven", "twelve", "thirteen", "fourteen", "fifteen",
        "sixteen", "seventeen", "eighteen", "nineteen", "twenty", "thirty",
        "forty", "fifty", "sixty", "seventy", "eighty", "ninety",
        "hundred", "hundreds", "thousand", "thousands", "million", "millions",
        "billion", "billions", "trillion", "trillions", "dozen", "dozens",
    }
)

_WORD_RE = re.compile(r"[a-z]+")


def _normalize_number(digits: str, percent: str | None, unit: str | None) -> str:
    value = digits.replace(",", "")
    if "." in value:
        value = value.rstrip("0").rstrip(".")
    if percent:
        return f"{value}%"
    if unit:
        return f"{value}{unit.lower()}"
    return value


def extract_numeric_tokens(text: str | None) -> set[str]:
    """Normalized numeric tokens and spelled-out number words in text."""
    if not text:
        return set()

    tokens = set()
    for match in _NUMBER_RE.finditer(text):
        digits, percent, unit = match.groups()
        digits = digits.rstrip(",")
        if not digits:
            continue
        tokens.add(_normalize_number(digits, percent, unit))

    for word in _WORD_RE.findall(text.lower().replace("-", " ")):
        if word in NUMBER_WORDS:
            tokens.add(word)
    return tokens


def build_source_quant_context(parts: Iterable[str | None]) -> frozenset[str]:
    """Union of numeric tokens across all source fragments."""
    tokens: set[str] = set()
    for part in parts:
        tokens |= extract_numeric_tokens(part)
    return frozenset(tokens)


def unsourced_numbers(candidate: str, source_numbers: frozenset[str]) -> list[str]:
    """Tokens in candidate that do not appear in the source, in sorted order."""
    return sorted(extract_numeric_tokens(candidate) - source_numbers)
