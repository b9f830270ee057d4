# src/normalize/percent.py — v1
"""Surcharge percentage normalization ('12.50%' -> 12.5)."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

from fscpulse.core.models import NormalizationWarning

PERCENT_PARSE_FAILED = "PERCENT_PARSE_FAILED"

_STRIP = re.compile(r"[%\s,]")
# Leading float prefix: trailing junk such as footnote markers is ignored.
_LEADING_FLOAT = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


@dataclass(frozen=True)
class PercentParseResult:
    value: float | None
    warning: NormalizationWarning | None = None


def parse_percent_text(percent_text: str) -> PercentParseResult:
    """Parse a percent cell. Never raises; failure yields None + warning."""
    cleaned = _STRIP.sub("", percent_text)
    match = _LEADING_FLOAT.match(cleaned)
    value = float(match.group(0)) if match else None
    # Overflowing exponents such as "1e999" parse to inf.
    if value is None or not math.isfinite(value):
        return PercentParseResult(
            value=None,
            warning=NormalizationWarning(
                code=PERCENT_PARSE_FAILED,
                message=f"Could not parse percent: {percent_text}",
                severity="warning",
            ),
        )
    return PercentParseResult(value=value)
