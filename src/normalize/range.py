# src/normalize/range.py — v1
"""Fuel-index range normalization and deterministic bracket ids.

The bracket id is a pure function of the range text, so the same row text
joins across snapshots captured at different times. Bounded patterns are
tried before open-ended ones: "1.00 - 1.49" must not be read as "1.00+".
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

from fscpulse.core.models import NormalizationWarning

RANGE_PARSE_FAILED = "RANGE_PARSE_FAILED"
UNKNOWN_RANGE_ID = "unknown_range"

_UNICODE_DASH = re.compile("[\u2012\u2013\u2014\u2212]")
_CURRENCY_AND_THOUSANDS = re.compile(r"[$,]")
_WHITESPACE = re.compile(r"\s+")

_NUMBER = r"(\d+(?:\.\d+)?)"
_BOUNDED = re.compile(rf"{_NUMBER}\s*(?:-|to)\s*{_NUMBER}")
_OPEN_HIGH = re.compile(rf"{_NUMBER}(?:\s*\+|\s*and\s+above)")
_OPEN_HIGH_GTE = re.compile(rf">=\s*{_NUMBER}")
_OPEN_LOW = re.compile(rf"(?:<|under|less\s+than)\s*{_NUMBER}")


@dataclass(frozen=True)
class RangeParseResult:
    """Parsed bounds (None = unbounded or unknown) plus bracket id."""

    index_low: float | None
    index_high: float | None
    bracket_id: str
    warning: NormalizationWarning | None = None


def _finite(*values: float) -> bool:
    return all(math.isfinite(v) for v in values)


def format_index(value: float) -> str:
    return f"{value:.2f}"


def clean_range_text(range_text: str) -> str:
    """Fold dashes, drop '$' and ',', lowercase and collapse whitespace."""
    cleaned = _UNICODE_DASH.sub("-", range_text)
    cleaned = _CURRENCY_AND_THOUSANDS.sub("", cleaned)
    return _WHITESPACE.sub(" ", cleaned.lower()).strip()


def fallback_bracket_id(range_text: str) -> str:
    """Slug of the cleaned text, used when no range pattern matches."""
    cleaned = _UNICODE_DASH.sub("-", range_text)
    cleaned = _CURRENCY_AND_THOUSANDS.sub("", cleaned).strip().lower()
    return _WHITESPACE.sub("_", cleaned) or UNKNOWN_RANGE_ID


def parse_range_text(range_text: str) -> RangeParseResult:
    """Parse a bracket range such as '$1.50 - $1.99', '4.00+' or '< 1.00'.

    Never raises; unmatched text, or bounds too large to be finite floats,
    yields null bounds, a slug id and a RANGE_PARSE_FAILED warning.
    """
    cleaned = clean_range_text(range_text)

    match = _BOUNDED.search(cleaned)
    if match and _finite(float(match.group(1)), float(match.group(2))):
        low, high = float(match.group(1)), float(match.group(2))
        return RangeParseResult(
            index_low=low,
            index_high=high,
            bracket_id=f"{format_index(low)}_{format_index(high)}",
        )

    match = _OPEN_HIGH.search(cleaned) or _OPEN_HIGH_GTE.search(cleaned)
    if match and _finite(float(match.group(1))):
        low = float(match.group(1))
        return RangeParseResult(
            index_low=low,
            index_high=None,
            bracket_id=f"{format_index(low)}_plus",
        )

    match = _OPEN_LOW.search(cleaned)
    if match and _finite(float(match.group(1))):
        high = float(match.group(1))
        return RangeParseResult(
            index_low=None,
            index_high=high,
            bracket_id=f"lt_{format_index(high)}",
        )

    return RangeParseResult(
        index_low=None,
        index_high=None,
        bracket_id=fallback_bracket_id(range_text),
        warning=NormalizationWarning(
            code=RANGE_PARSE_FAILED,
            message=f"Could not parse range: {range_text}",
            severity="warning",
        ),
    )
