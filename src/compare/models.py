# src/compare/models.py — v1
"""Comparison report models: MismatchCategory, CompareItem, CompareReport."""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field


class MismatchCategory(str, Enum):
    MISSING_IN_LLM = "MISSING_IN_LLM"
    EXTRA_IN_LLM = "EXTRA_IN_LLM"
    BRACKET_VALUE_MISMATCH = "BRACKET_VALUE_MISMATCH"
    SCOPE_OR_DATE_MISMATCH = "SCOPE_OR_DATE_MISMATCH"


class CompareItem(BaseModel):
    """One disagreement between the baseline and the LLM run."""

    scope: Literal["snapshot", "delta"]
    key: str
    message: str
    baseline_path: str | None = None
    llm_path: str | None = None
    details: dict[str, Any] | None = None


def _empty_mismatches() -> dict[MismatchCategory, list[CompareItem]]:
    return {category: [] for category in MismatchCategory}


class CompareReport(BaseModel):
    """Single document per (baseline, llm) run pair."""

    schema_version: Literal["1.0"] = "1.0"
    baseline_dir: str
    llm_dir: str
    generated_at: str
    mismatches: dict[MismatchCategory, list[CompareItem]] = Field(
        default_factory=_empty_mismatches
    )

    def add(self, category: MismatchCategory, item: CompareItem) -> None:
        self.mismatches.setdefault(category, []).append(item)

    def count(self, category: MismatchCategory) -> int:
        return len(self.mismatches.get(category, []))

    @property
    def total_mismatches(self) -> int:
        return sum(len(items) for items in self.mismatches.values())
