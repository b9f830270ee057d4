# src/core/models.py — v1
"""Shared Pydantic domain models used across modules.

Canonical side of the pipeline: warnings, parsed snapshots, delta records
and the validation report. The untrusted candidate shape lives in
extraction.candidate; the comparison report lives in compare.models.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

SCHEMA_VERSION = "1.0"

WarningSeverity = Literal["info", "warning", "error"]

IsoDate = Annotated[str, Field(pattern=r"^\d{4}-\d{2}-\d{2}$")]


# === WARNINGS ===


class NormalizationWarning(BaseModel):
    """One recorded ambiguity or failure while normalizing free text."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    severity: WarningSeverity = "warning"

    def as_message(self) -> str:
        """Render as a diagnostics line: 'CODE: message'."""
        return f"{self.code}: {self.message}".strip()


# === CAPTURE CONTEXT ===


class NormalizationContext(BaseModel):
    """Identity of a capture event, supplied by the capture collaborator."""

    model_config = ConfigDict(frozen=True)

    carrier: str = Field(min_length=1)
    source_id: str = Field(min_length=1)
    captured_at: str = Field(min_length=1)
    source_url: str
    content_type: str


# === CANONICAL SNAPSHOT ===


class ParserDiagnostics(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", allow_inf_nan=False)

    structural_error: bool
    messages: list[str] = Field(default_factory=list)


class ParsedBracket(BaseModel):
    """One surcharge tier. bracket_id is derived from index_range only."""

    model_config = ConfigDict(frozen=True, extra="forbid", allow_inf_nan=False)

    bracket_id: str = Field(min_length=1)
    index_range: str
    min_index: float | None
    max_index: float | None
    surcharge_percent: float | None
    surcharge_text: str


class ParsedTable(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", allow_inf_nan=False)

    program: str | None
    effective_date: IsoDate | None
    brackets: list[ParsedBracket] = Field(default_factory=list)


class FscSnapshotParsed(BaseModel):
    """Canonical snapshot of one capture event, identified by key()."""

    model_config = ConfigDict(frozen=True, extra="forbid", allow_inf_nan=False)

    schema_version: Literal["1.0"] = SCHEMA_VERSION
    carrier: str = Field(min_length=1)
    source_id: str = Field(min_length=1)
    captured_at: str = Field(min_length=1)
    source_url: str
    content_type: str
    effective_date: IsoDate | None
    tables: list[ParsedTable] = Field(default_factory=list)
    parser_diagnostics: ParserDiagnostics

    def key(self) -> str:
        return f"{self.carrier}::{self.source_id}::{self.captured_at}"


# === DELTA RECORDS ===


class Publishability(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", allow_inf_nan=False)

    is_publishable: bool
    reasons: list[str] = Field(default_factory=list)


class FscDeltaRecord(BaseModel):
    """A single bracket whose surcharge value changed between two snapshots."""

    model_config = ConfigDict(frozen=True, extra="forbid", allow_inf_nan=False)

    schema_version: Literal["1.0"] = SCHEMA_VERSION
    carrier: str
    source_id: str
    captured_at: str
    prior_captured_at: str | None
    program: str | None
    effective_date: str | None
    bracket_id: str = Field(min_length=1)
    index_range: str | None
    old_value: float | None
    new_value: float | None
    group_key: str = Field(min_length=1)
    publishability: Publishability
    parser_structural_error: bool


# === VALIDATION REPORT ===


class ValidationErrorItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    message: str


class ValidationReport(BaseModel):
    """Per-candidate report persisted next to the extraction response."""

    schema_version: Literal["1.0"] = SCHEMA_VERSION
    candidate_valid: bool
    errors: list[ValidationErrorItem] = Field(default_factory=list)
    candidate_warnings: list[NormalizationWarning] = Field(default_factory=list)
    normalization_warnings: list[NormalizationWarning] = Field(default_factory=list)
    structural_error: bool
    table_count: int
    effective_date: str | None
