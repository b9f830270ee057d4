# src/compare/engine.py — v1
"""Comparison engine: trusted baseline run vs. LLM-generated run.

Read-only. Loads every canonical snapshot and delta batch from both run
directories, then classifies disagreements:

  - MISSING_IN_LLM / EXTRA_IN_LLM: snapshot keys or delta groups present
    on one side only.
  - SCOPE_OR_DATE_MISMATCH: effective date, program set, bracket set or
    delta record count differs.
  - BRACKET_VALUE_MISMATCH: numeric values differ beyond the tolerance.

Loading is strict: both sides are expected to be canonical already, so an
invalid file aborts the comparison with SnapshotValidationError.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from fscpulse.compare.models import CompareItem, CompareReport, MismatchCategory
from fscpulse.core.models import FscDeltaRecord, FscSnapshotParsed, ParsedBracket
from fscpulse.extraction.candidate import format_error_path
from fscpulse.storage import layout
from fscpulse.storage.reader import list_files_named, read_json, read_jsonl

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 0.01

ModelT = TypeVar("ModelT", bound=BaseModel)


class SnapshotValidationError(ValueError):
    """A persisted snapshot or delta record is not canonical."""


class ValidatorCache:
    """TypeAdapters keyed by model class, owned by one comparison run."""

    def __init__(self) -> None:
        self._adapters: dict[type[BaseModel], TypeAdapter[Any]] = {}

    def __len__(self) -> int:
        return len(self._adapters)

    def adapter_for(self, model: type[ModelT]) -> TypeAdapter[ModelT]:
        adapter = self._adapters.get(model)
        if adapter is None:
            adapter = TypeAdapter(model)
            self._adapters[model] = adapter
        return adapter

    def validate(self, model: type[ModelT], data: Any, label: str) -> ModelT:
        """Validate data against model or raise SnapshotValidationError."""
        try:
            return self.adapter_for(model).validate_python(data, strict=True)
        except ValidationError as exc:
            details = "; ".join(
                f"{format_error_path(err['loc'])} {err['msg']}" for err in exc.errors()
            )
            raise SnapshotValidationError(
                f"{label} failed schema validation: {details}"
            ) from exc


@dataclass(frozen=True)
class SnapshotEntry:
    path: str
    data: FscSnapshotParsed


@dataclass(frozen=True)
class DeltaEntry:
    path: str
    data: FscDeltaRecord


def values_match(a: float | None, b: float | None, tolerance: float = DEFAULT_TOLERANCE) -> bool:
    """(None, None) match; one None never matches; else abs(a - b) <= tolerance."""
    if a is None and b is None:
        return True
    if a is None or b is None:
        return False
    return abs(a - b) <= tolerance


def _program_label(program: str | None) -> str:
    return "null" if program is None else program


def _program_bracket_map(
    snapshot: FscSnapshotParsed,
) -> dict[str, dict[str, ParsedBracket]]:
    programs: dict[str, dict[str, ParsedBracket]] = {}
    for table in snapshot.tables:
        brackets = programs.setdefault(_program_label(table.program), {})
        for bracket in table.brackets:
            brackets[bracket.bracket_id] = bracket
    return programs


class ComparisonEngine:
    """Reconcile two runs' snapshots and delta records into a CompareReport."""

    def __init__(
        self,
        validators: ValidatorCache | None = None,
        tolerance: float = DEFAULT_TOLERANCE,
    ) -> None:
        self._validators = validators if validators is not None else ValidatorCache()
        self._tolerance = tolerance

    # --- Loading ---

    def load_snapshots(self, run_dir: Path) -> dict[str, SnapshotEntry]:
        """Load and key every parsed snapshot under run_dir/snapshots."""
        snapshots: dict[str, SnapshotEntry] = {}
        root = Path(run_dir) / layout.SNAPSHOTS_DIR
        for path in list_files_named(root, layout.PARSED_SNAPSHOT_FILE):
            snapshot = self._validators.validate(
                FscSnapshotParsed, read_json(path), f"Snapshot {path}"
            )
            key = snapshot.key()
            if key in snapshots:
                logger.debug("Duplicate snapshot key %s, keeping %s", key, path)
            snapshots[key] = SnapshotEntry(path=str(path), data=snapshot)
        return snapshots

    def load_delta_groups(self, run_dir: Path) -> dict[str, list[DeltaEntry]]:
        """Load every delta record under run_dir/changes, grouped by group_key."""
        groups: dict[str, list[DeltaEntry]] = {}
        root = Path(run_dir) / layout.CHANGES_DIR
        for path in list_files_named(root, layout.DELTA_RECORDS_FILE):
            for raw in read_jsonl(path):
                record = self._validators.validate(FscDeltaRecord, raw, f"Delta {path}")
                groups.setdefault(record.group_key, []).append(
                    DeltaEntry(path=str(path), data=record)
                )
        return groups

    # --- Comparison ---

    def compare(self, baseline_dir: Path, llm_dir: Path) -> CompareReport:
        """Compare a baseline run directory against an LLM run directory.

        Raises:
            SnapshotValidationError: If any persisted file is not canonical.
            JsonLinesError: If a delta batch contains an undecodable line.
        """
        report = CompareReport(
            baseline_dir=str(baseline_dir),
            llm_dir=str(llm_dir),
            generated_at=datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        )

        baseline_snapshots = self.load_snapshots(baseline_dir)
        llm_snapshots = self.load_snapshots(llm_dir)
        self._compare_snapshot_sets(baseline_snapshots, llm_snapshots, report)

        baseline_groups = self.load_delta_groups(baseline_dir)
        llm_groups = self.load_delta_groups(llm_dir)
        self._compare_delta_groups(baseline_groups, llm_groups, report)

        logger.info(
            "Compared %d/%d snapshot(s), %d/%d delta group(s)",
            len(baseline_snapshots), len(llm_snapshots),
            len(baseline_groups), len(llm_groups),
        )
        if report.total_mismatches:
            logger.warning(
                "Found %d mismatch(es): %s",
                report.total_mismatches,
                ", ".join(f"{c.value}={report.count(c)}" for c in MismatchCategory),
            )
        return report

    def _compare_snapshot_sets(
        self,
        baseline: dict[str, SnapshotEntry],
        llm: dict[str, SnapshotEntry],
        report: CompareReport,
    ) -> None:
        for key, entry in baseline.items():
            if key not in llm:
                report.add(MismatchCategory.MISSING_IN_LLM, CompareItem(
                    scope="snapshot", key=key,
                    message="snapshot missing in llm",
                    baseline_path=entry.path,
                ))

        for key, entry in llm.items():
            if key not in baseline:
                report.add(MismatchCategory.EXTRA_IN_LLM, CompareItem(
                    scope="snapshot", key=key,
                    message="extra snapshot in llm",
                    llm_path=entry.path,
                ))

        for key, entry in baseline.items():
            if key in llm:
                self._compare_snapshot_pair(key, entry, llm[key], report)

    def _compare_snapshot_pair(
        self,
        key: str,
        baseline: SnapshotEntry,
        llm: SnapshotEntry,
        report: CompareReport,
    ) -> None:
        def item(message: str, details: dict[str, Any] | None = None) -> CompareItem:
            return CompareItem(
                scope="snapshot", key=key, message=message,
                baseline_path=baseline.path, llm_path=llm.path, details=details,
            )

        scope = MismatchCategory.SCOPE_OR_DATE_MISMATCH

        if baseline.data.effective_date != llm.data.effective_date:
            report.add(scope, item(
                "effective_date mismatch",
                {"baseline": baseline.data.effective_date, "llm": llm.data.effective_date},
            ))

        baseline_programs = _program_bracket_map(baseline.data)
        llm_programs = _program_bracket_map(llm.data)

        for program in baseline_programs:
            if program not in llm_programs:
                report.add(scope, item(f"program missing in llm: {program}"))
        for program in llm_programs:
            if program not in baseline_programs:
                report.add(scope, item(f"extra program in llm: {program}"))

        for program, baseline_brackets in baseline_programs.items():
            llm_brackets = llm_programs.get(program)
            if llm_brackets is None:
                continue

            for bracket_id in baseline_brackets:
                if bracket_id not in llm_brackets:
                    report.add(scope, item(f"bracket missing in llm: {program} {bracket_id}"))
            for bracket_id in llm_brackets:
                if bracket_id not in baseline_brackets:
                    report.add(scope, item(f"extra bracket in llm: {program} {bracket_id}"))

            for bracket_id, baseline_bracket in baseline_brackets.items():
                llm_bracket = llm_brackets.get(bracket_id)
                if llm_bracket is None:
                    continue
                if not values_match(
                    baseline_bracket.surcharge_percent,
                    llm_bracket.surcharge_percent,
                    self._tolerance,
                ):
                    report.add(MismatchCategory.BRACKET_VALUE_MISMATCH, item(
                        f"surcharge_percent mismatch for {program} {bracket_id}",
                        {
                            "baseline": baseline_bracket.surcharge_percent,
                            "llm": llm_bracket.surcharge_percent,
                        },
                    ))

    def _compare_delta_groups(
        self,
        baseline: dict[str, list[DeltaEntry]],
        llm: dict[str, list[DeltaEntry]],
        report: CompareReport,
    ) -> None:
        for key in baseline:
            if key not in llm:
                report.add(MismatchCategory.MISSING_IN_LLM, CompareItem(
                    scope="delta", key=key, message="delta group missing in llm",
                ))
        for key in llm:
            if key not in baseline:
                report.add(MismatchCategory.EXTRA_IN_LLM, CompareItem(
                    scope="delta", key=key, message="extra delta group in llm",
                ))

        scope = MismatchCategory.SCOPE_OR_DATE_MISMATCH
        values = MismatchCategory.BRACKET_VALUE_MISMATCH

        for key, baseline_group in baseline.items():
            llm_group = llm.get(key)
            if llm_group is None:
                continue

            if len(baseline_group) != len(llm_group):
                report.add(scope, CompareItem(
                    scope="delta", key=key, message="delta record count mismatch",
                    details={"baseline": len(baseline_group), "llm": len(llm_group)},
                ))

            baseline_records = {e.data.bracket_id: e.data for e in baseline_group}
            llm_records = {e.data.bracket_id: e.data for e in llm_group}

            for bracket_id in baseline_records:
                if bracket_id not in llm_records:
                    report.add(scope, CompareItem(
                        scope="delta", key=key,
                        message=f"delta bracket missing in llm: {bracket_id}",
                    ))
            for bracket_id in llm_records:
                if bracket_id not in baseline_records:
                    report.add(scope, CompareItem(
                        scope="delta", key=key,
                        message=f"extra delta bracket in llm: {bracket_id}",
                    ))

            for bracket_id, baseline_record in baseline_records.items():
                llm_record = llm_records.get(bracket_id)
                if llm_record is None:
                    continue
                for field_name in ("old_value", "new_value"):
                    baseline_value = getattr(baseline_record, field_name)
                    llm_value = getattr(llm_record, field_name)
                    if not values_match(baseline_value, llm_value, self._tolerance):
                        report.add(values, CompareItem(
                            scope="delta", key=key,
                            message=f"{field_name} mismatch for {bracket_id}",
                            details={"baseline": baseline_value, "llm": llm_value},
                        ))


def compare_runs(
    baseline_dir: Path,
    llm_dir: Path,
    tolerance: float = DEFAULT_TOLERANCE,
) -> CompareReport:
    """Compare two run directories with a fresh, run-scoped validator cache."""
    engine = ComparisonEngine(validators=ValidatorCache(), tolerance=tolerance)
    return engine.compare(baseline_dir, llm_dir)
