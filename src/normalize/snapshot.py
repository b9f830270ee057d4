# src/normalize/snapshot.py — v1
"""Snapshot builder: validated candidate -> canonical snapshot + report.

Steps:
  1. Validate the candidate shape. Failure is terminal and yields an
     empty-tables snapshot flagged as a structural error.
  2. Cross-check carrier/source_id against the capture context. The
     context is authoritative; mismatches are SCOPE_AMBIGUOUS warnings.
  3. Normalize the top-level effective date once, for every table.
  4. Normalize each bracket's range and percent text independently.
  5. Escalate to a structural error on zero programs or when the
     candidate already reported PARSER_STRUCTURAL_ERROR.

Never raises for candidate content.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from fscpulse.core.models import (
    FscSnapshotParsed,
    NormalizationContext,
    NormalizationWarning,
    ParsedBracket,
    ParsedTable,
    ParserDiagnostics,
    ValidationReport,
)
from fscpulse.extraction.candidate import (
    CandidateBracket,
    CandidateFscExtraction,
    validate_candidate,
)
from fscpulse.normalize.date import normalize_date_text
from fscpulse.normalize.percent import parse_percent_text
from fscpulse.normalize.range import parse_range_text

logger = logging.getLogger(__name__)

PARSER_STRUCTURAL_ERROR = "PARSER_STRUCTURAL_ERROR"
SCOPE_AMBIGUOUS = "SCOPE_AMBIGUOUS"
TABLE_NOT_FOUND = "TABLE_NOT_FOUND"


@dataclass(frozen=True)
class NormalizationResult:
    snapshot: FscSnapshotParsed
    report: ValidationReport


def normalize_candidate(
    raw_candidate: Any,
    context: NormalizationContext,
) -> NormalizationResult:
    """Validate and normalize one raw candidate for the given capture event.

    Args:
        raw_candidate: JSON-shaped payload from the extraction provider.
        context: Capture identity; its carrier/source_id win over the candidate's.

    Returns:
        NormalizationResult with the canonical snapshot and its report.
    """
    validation = validate_candidate(raw_candidate)
    if validation.candidate is None:
        messages = [f"SCHEMA_ERROR: {e.path} {e.message}" for e in validation.errors]
        messages.append(
            f"{PARSER_STRUCTURAL_ERROR}: Candidate schema validation failed."
        )
        logger.warning(
            "Candidate for %s/%s at %s is invalid (%d schema error(s))",
            context.carrier, context.source_id, context.captured_at,
            len(validation.errors),
        )
        snapshot = _build_snapshot(
            context,
            effective_date=None,
            tables=[],
            structural_error=True,
            messages=messages,
        )
        report = ValidationReport(
            candidate_valid=False,
            errors=validation.errors,
            structural_error=True,
            table_count=0,
            effective_date=None,
        )
        return NormalizationResult(snapshot=snapshot, report=report)

    candidate = validation.candidate
    warnings: list[NormalizationWarning] = _scope_warnings(candidate, context)

    normalized_date = normalize_date_text(candidate.effective_date)
    if normalized_date.warning:
        warnings.append(normalized_date.warning)
    effective_date = normalized_date.value

    # One table per distinct program value, in first-seen order.
    brackets_by_program: dict[str, list[ParsedBracket]] = {}
    for program in candidate.programs:
        parsed = brackets_by_program.setdefault(program.program, [])
        for bracket in program.brackets:
            parsed.append(_normalize_bracket(bracket, warnings))

    tables = [
        ParsedTable(program=program, effective_date=effective_date, brackets=brackets)
        for program, brackets in brackets_by_program.items()
    ]

    carried_structural_error = candidate.has_warning(PARSER_STRUCTURAL_ERROR)
    structural_error = carried_structural_error or not candidate.programs
    if not candidate.programs:
        warnings.append(NormalizationWarning(
            code=TABLE_NOT_FOUND,
            message="No programs were extracted from the candidate.",
            severity="error",
        ))

    candidate_warnings = [
        NormalizationWarning(code=w.code, message=w.message, severity=w.severity)
        for w in candidate.parse_warnings
    ]
    messages = [w.as_message() for w in candidate_warnings]
    messages.extend(w.as_message() for w in warnings)
    if structural_error and not carried_structural_error:
        messages.append(f"{PARSER_STRUCTURAL_ERROR}: Structural parse failure.")

    snapshot = _build_snapshot(
        context,
        effective_date=effective_date,
        tables=tables,
        structural_error=structural_error,
        messages=messages,
    )
    report = ValidationReport(
        candidate_valid=True,
        candidate_warnings=candidate_warnings,
        normalization_warnings=warnings,
        structural_error=structural_error,
        table_count=len(tables),
        effective_date=effective_date,
    )

    logger.info(
        "Normalized %s/%s at %s: %d table(s), %d warning(s), structural_error=%s",
        context.carrier, context.source_id, context.captured_at,
        len(tables), len(warnings), structural_error,
    )
    return NormalizationResult(snapshot=snapshot, report=report)


def _scope_warnings(
    candidate: CandidateFscExtraction,
    context: NormalizationContext,
) -> list[NormalizationWarning]:
    warnings: list[NormalizationWarning] = []
    if candidate.carrier.lower() != context.carrier.lower():
        warnings.append(NormalizationWarning(
            code=SCOPE_AMBIGUOUS,
            message=f"Candidate carrier {candidate.carrier} did not match {context.carrier}",
            severity="warning",
        ))
    if candidate.source_id != context.source_id:
        warnings.append(NormalizationWarning(
            code=SCOPE_AMBIGUOUS,
            message=(
                f"Candidate source_id {candidate.source_id} "
                f"did not match {context.source_id}"
            ),
            severity="warning",
        ))
    return warnings


def _normalize_bracket(
    bracket: CandidateBracket,
    warnings: list[NormalizationWarning],
) -> ParsedBracket:
    range_result = parse_range_text(bracket.range_text)
    if range_result.warning:
        warnings.append(range_result.warning)

    percent_result = parse_percent_text(bracket.percent_text)
    if percent_result.warning:
        warnings.append(percent_result.warning)

    return ParsedBracket(
        bracket_id=range_result.bracket_id,
        index_range=bracket.range_text,
        min_index=range_result.index_low,
        max_index=range_result.index_high,
        surcharge_percent=percent_result.value,
        surcharge_text=bracket.percent_text,
    )


def _build_snapshot(
    context: NormalizationContext,
    effective_date: str | None,
    tables: list[ParsedTable],
    structural_error: bool,
    messages: list[str],
) -> FscSnapshotParsed:
    return FscSnapshotParsed(
        carrier=context.carrier,
        source_id=context.source_id,
        captured_at=context.captured_at,
        source_url=context.source_url,
        content_type=context.content_type,
        effective_date=effective_date,
        tables=tables,
        parser_diagnostics=ParserDiagnostics(
            structural_error=structural_error,
            messages=messages,
        ),
    )
