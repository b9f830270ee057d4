# tests/conftest.py — v1
"""Shared test fixtures for all unit tests.

Provides a capture context, raw candidate payloads, snapshot builders and
an on-disk run directory factory. All file I/O goes to tmp_path.
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Callable

import pytest

from fscpulse.core.models import (
    FscSnapshotParsed,
    NormalizationContext,
    ParsedBracket,
    ParsedTable,
    ParserDiagnostics,
)
from fscpulse.normalize.range import parse_range_text
from fscpulse.storage import layout
from fscpulse.storage.writer import write_json, write_jsonl


CAPTURED_AT = "2026-01-05T10-00-00Z"
PRIOR_CAPTURED_AT = "2025-12-29T10-00-00Z"


# === FIXTURES: Capture context and candidates ===


@pytest.fixture
def sample_context() -> NormalizationContext:
    """Capture context for a UPS ground/air page."""
    return NormalizationContext(
        carrier="UPS",
        source_id="ups_fsc_main",
        captured_at=CAPTURED_AT,
        source_url="https://www.ups.com/us/en/support/shipping-support/shipping-costs-rates/fuel-surcharges.page",
        content_type="text/html",
    )


@pytest.fixture
def sample_candidate() -> dict[str, Any]:
    """Valid raw candidate with a ground and an air table."""
    return {
        "artifact_type": "html",
        "carrier": "UPS",
        "source_id": "ups_fsc_main",
        "effective_date": "January 5, 2026",
        "effective_date_evidence": "Effective January 5, 2026",
        "programs": [
            {
                "program": "ground",
                "table_title": "Ground Domestic",
                "table_title_evidence": "Ground Domestic",
                "basis_hint": "diesel",
                "table_evidence": "At Least / But Less Than / Surcharge",
                "brackets": [
                    {
                        "range_text": "$1.50 - $1.99",
                        "percent_text": "12.00%",
                        "row_evidence": "$1.50 $1.99 12.00%",
                    },
                    {
                        "range_text": "$2.00 - $2.49",
                        "percent_text": "12.50%",
                        "row_evidence": "$2.00 $2.49 12.50%",
                    },
                ],
            },
            {
                "program": "air",
                "table_title": "Domestic Air",
                "table_title_evidence": "Domestic Air",
                "basis_hint": "jet",
                "table_evidence": "At Least / But Less Than / Surcharge",
                "brackets": [
                    {
                        "range_text": "4.00+",
                        "percent_text": "18.25%",
                        "row_evidence": "$4.00 and above 18.25%",
                    },
                ],
            },
        ],
        "links": [],
        "history_90d": None,
        "parse_warnings": [],
    }


@pytest.fixture
def make_candidate(sample_candidate: dict[str, Any]) -> Callable[..., dict[str, Any]]:
    """Factory: deep copy of sample_candidate with top-level overrides."""

    def _make(**overrides: Any) -> dict[str, Any]:
        candidate = copy.deepcopy(sample_candidate)
        candidate.update(overrides)
        return candidate

    return _make


# === FIXTURES: Snapshots ===


def build_snapshot(
    tables: dict[str | None, dict[str, float | None]] | None = None,
    *,
    carrier: str = "UPS",
    source_id: str = "ups_fsc_main",
    captured_at: str = CAPTURED_AT,
    effective_date: str | None = "2026-01-05",
    structural_error: bool = False,
) -> FscSnapshotParsed:
    """Build a snapshot from {program: {range_text: percent}}."""
    parsed_tables = []
    for program, brackets in (tables or {}).items():
        parsed_brackets = []
        for range_text, percent in brackets.items():
            parsed = parse_range_text(range_text)
            parsed_brackets.append(ParsedBracket(
                bracket_id=parsed.bracket_id,
                index_range=range_text,
                min_index=parsed.index_low,
                max_index=parsed.index_high,
                surcharge_percent=percent,
                surcharge_text=f"{percent}%" if percent is not None else "n/a",
            ))
        parsed_tables.append(ParsedTable(
            program=program, effective_date=effective_date, brackets=parsed_brackets,
        ))
    return FscSnapshotParsed(
        carrier=carrier,
        source_id=source_id,
        captured_at=captured_at,
        source_url="https://example.com/fsc",
        content_type="text/html",
        effective_date=effective_date,
        tables=parsed_tables,
        parser_diagnostics=ParserDiagnostics(structural_error=structural_error),
    )


@pytest.fixture
def snapshot_factory() -> Callable[..., FscSnapshotParsed]:
    return build_snapshot


@pytest.fixture
def sample_snapshot() -> FscSnapshotParsed:
    return build_snapshot({
        "ground": {"$1.50 - $1.99": 12.0, "$2.00 - $2.49": 12.5},
        "air": {"4.00+": 18.25},
    })


# === FIXTURES: Run directories ===


@pytest.fixture
def write_run(tmp_path: Path) -> Callable[..., Path]:
    """Factory: write snapshots (and optional delta records) as a run dir."""

    def _write(
        run_id: str,
        snapshots: list[FscSnapshotParsed],
        deltas: list[tuple[FscSnapshotParsed, list[Any]]] | None = None,
    ) -> Path:
        run_path = layout.run_dir(tmp_path, run_id)
        for snapshot in snapshots:
            write_json(
                layout.parsed_snapshot_path(
                    run_path, snapshot.carrier, snapshot.source_id, snapshot.captured_at
                ),
                snapshot,
            )
        for snapshot, records in deltas or []:
            write_jsonl(
                layout.delta_records_path(
                    run_path, snapshot.carrier, snapshot.source_id, snapshot.captured_at
                ),
                records,
            )
        run_path.mkdir(parents=True, exist_ok=True)
        return run_path

    return _write
