# src/normalize/date.py — v1
"""Effective-date normalization: free text to ISO YYYY-MM-DD.

Patterns are tried in order: month name ("Jan. 5th, 2026"), then numeric
M/D/YYYY or M-D-YYYY. No timezone or locale inference is performed.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from fscpulse.core.models import NormalizationWarning

MISSING_EFFECTIVE_DATE = "MISSING_EFFECTIVE_DATE"

MONTHS: dict[str, str] = {
    "january": "01",
    "february": "02",
    "march": "03",
    "april": "04",
    "may": "05",
    "june": "06",
    "july": "07",
    "august": "08",
    "september": "09",
    "october": "10",
    "november": "11",
    "december": "12",
    "jan": "01",
    "feb": "02",
    "mar": "03",
    "apr": "04",
    "jun": "06",
    "jul": "07",
    "aug": "08",
    "sep": "09",
    "sept": "09",
    "oct": "10",
    "nov": "11",
    "dec": "12",
}

# Longer alternatives first so "Sept" is not cut to "Sep".
_MONTH_NAMES = "|".join(sorted(MONTHS, key=len, reverse=True))
_MONTH_PATTERN = re.compile(
    rf"({_MONTH_NAMES})\.?\s+\d{{1,2}}(?:st|nd|rd|th)?,?\s+\d{{4}}",
    re.IGNORECASE,
)
_NUMERIC_PATTERN = re.compile(r"\b(\d{1,2})[/\-](\d{1,2})[/\-](\d{4})\b")
_ORDINAL_SUFFIX = re.compile(r"(st|nd|rd|th)$", re.IGNORECASE)


@dataclass(frozen=True)
class DateParseResult:
    """ISO date or None, with a warning whenever value is None."""

    value: str | None
    warning: NormalizationWarning | None = None


def normalize_date_text(date_text: str | None) -> DateParseResult:
    """Normalize an effective-date string to YYYY-MM-DD.

    Never raises. Missing input and unrecognized text both yield
    value=None and a MISSING_EFFECTIVE_DATE warning.
    """
    if not date_text:
        return DateParseResult(
            value=None,
            warning=NormalizationWarning(
                code=MISSING_EFFECTIVE_DATE,
                message="Effective date was missing.",
                severity="warning",
            ),
        )

    month_match = _MONTH_PATTERN.search(date_text)
    if month_match:
        cleaned = month_match.group(0).replace(",", "").replace(".", "")
        parts = cleaned.split()
        if len(parts) >= 3:
            month = MONTHS.get(parts[0].lower())
            day = _ORDINAL_SUFFIX.sub("", parts[1]).zfill(2)
            year = parts[2]
            if month and re.fullmatch(r"\d{4}", year):
                return DateParseResult(value=f"{year}-{month}-{day}")

    numeric_match = _NUMERIC_PATTERN.search(date_text)
    if numeric_match:
        month = numeric_match.group(1).zfill(2)
        day = numeric_match.group(2).zfill(2)
        year = numeric_match.group(3)
        return DateParseResult(value=f"{year}-{month}-{day}")

    return DateParseResult(
        value=None,
        warning=NormalizationWarning(
            code=MISSING_EFFECTIVE_DATE,
            message=f"Could not normalize effective date: {date_text}",
            severity="warning",
        ),
    )
