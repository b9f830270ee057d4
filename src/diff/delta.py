# src/diff/delta.py — v1
"""Diff engine: per-bracket surcharge changes between two snapshots.

Pure function, no I/O. Brackets join on bracket_id, which is derived from
the range text, so a reworded range reads as one removal plus one addition.
Programs that disappear from the current snapshot are not reported.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from fscpulse.core.models import (
    FscDeltaRecord,
    FscSnapshotParsed,
    ParsedBracket,
    Publishability,
)

logger = logging.getLogger(__name__)

EFFECTIVE_DATE_UNKNOWN = "EFFECTIVE_DATE_UNKNOWN"
PROGRAM_UNKNOWN = "PROGRAM_UNKNOWN"
PARSER_STRUCTURAL_ERROR = "PARSER_STRUCTURAL_ERROR"


@dataclass
class _TableRecord:
    effective_date: str | None
    brackets: dict[str, ParsedBracket] = field(default_factory=dict)


def build_table_map(snapshot: FscSnapshotParsed) -> dict[str | None, _TableRecord]:
    """Group brackets by program; repeated programs merge, first date wins."""
    table_map: dict[str | None, _TableRecord] = {}
    for table in snapshot.tables:
        entry = table_map.get(table.program)
        if entry is None:
            entry = _TableRecord(effective_date=table.effective_date)
            table_map[table.program] = entry
        elif entry.effective_date is None:
            entry.effective_date = table.effective_date
        for bracket in table.brackets:
            entry.brackets[bracket.bracket_id] = bracket
    return table_map


def group_key_for(carrier: str, program: str | None, effective_date: str | None) -> str:
    """Batch key shared by every bracket of one pricing-change event."""
    year = effective_date[:4] if effective_date else "unknown"
    date_key = effective_date or "unknown"
    program_key = program or "unknown"
    return f"{year}-fuel_surcharge-{date_key}-{carrier}-{program_key}"


def publishability_reasons(
    program: str | None,
    effective_date: str | None,
    structural_error: bool,
) -> list[str]:
    reasons: list[str] = []
    if not effective_date:
        reasons.append(EFFECTIVE_DATE_UNKNOWN)
    if program is None or program == "unknown":
        reasons.append(PROGRAM_UNKNOWN)
    if structural_error:
        reasons.append(PARSER_STRUCTURAL_ERROR)
    return reasons


def diff_snapshots(
    current: FscSnapshotParsed,
    prior: FscSnapshotParsed | None,
) -> list[FscDeltaRecord]:
    """Compare current against prior (or nothing) and emit changed brackets.

    Args:
        current: Freshly normalized snapshot.
        prior: Most recent earlier snapshot of the same source, or None.

    Returns:
        One FscDeltaRecord per (program, bracket_id) whose value changed.
        A value appearing or disappearing (one side None) counts as a change.
    """
    prior_map = build_table_map(prior) if prior is not None else {}
    current_map = build_table_map(current)
    structural_error = current.parser_diagnostics.structural_error
    prior_captured_at = prior.captured_at if prior is not None else None

    records: list[FscDeltaRecord] = []
    programs = list(dict.fromkeys([*current_map, *prior_map]))

    for program in programs:
        current_table = current_map.get(program)
        if current_table is None:
            continue
        prior_table = prior_map.get(program)

        effective_date = current_table.effective_date
        if effective_date is None and prior_table is not None:
            effective_date = prior_table.effective_date

        reasons = publishability_reasons(program, effective_date, structural_error)
        group_key = group_key_for(current.carrier, program, effective_date)

        prior_brackets = prior_table.brackets if prior_table is not None else {}
        bracket_ids = list(dict.fromkeys([*current_table.brackets, *prior_brackets]))

        for bracket_id in bracket_ids:
            current_bracket = current_table.brackets.get(bracket_id)
            prior_bracket = prior_brackets.get(bracket_id)
            old_value = prior_bracket.surcharge_percent if prior_bracket else None
            new_value = current_bracket.surcharge_percent if current_bracket else None
            if old_value == new_value:
                continue

            index_range = (current_bracket or prior_bracket).index_range

            records.append(FscDeltaRecord(
                carrier=current.carrier,
                source_id=current.source_id,
                captured_at=current.captured_at,
                prior_captured_at=prior_captured_at,
                program=program,
                effective_date=effective_date,
                bracket_id=bracket_id,
                index_range=index_range,
                old_value=old_value,
                new_value=new_value,
                group_key=group_key,
                publishability=Publishability(
                    is_publishable=not reasons,
                    reasons=list(reasons),
                ),
                parser_structural_error=structural_error,
            ))

    logger.info(
        "Diff %s against %s: %d changed bracket(s)",
        current.key(), prior.key() if prior is not None else "<none>", len(records),
    )
    return records
