# src/pipeline/validate_run.py — v1
"""Re-validate a captured run: candidate -> parsed snapshot -> delta records.

For every llm/{carrier}/{source_id}/{captured_at}/extraction_response.json
in the run, the candidate is normalized against its capture context, the
snapshot and validation report are written next to it, and diff-enabled
sources get a delta JSONL against the latest earlier snapshot found in
sibling runs. Candidates are processed one at a time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from fscpulse.config.registry import (
    SourceConfig,
    SourceNotFoundError,
    SourceRegistry,
    content_type_for,
    get_source_by_id,
    load_registry,
)
from fscpulse.core.models import NormalizationContext
from fscpulse.diff.delta import diff_snapshots
from fscpulse.logging.context import event_context, set_run_context
from fscpulse.normalize.snapshot import normalize_candidate
from fscpulse.storage import layout
from fscpulse.storage.models import CaptureMeta
from fscpulse.storage.reader import (
    find_prior_snapshot,
    list_files_named,
    load_capture_meta,
    load_manifest,
    read_json,
)
from fscpulse.storage.writer import write_json, write_jsonl

logger = logging.getLogger(__name__)


class RunLayoutError(FileNotFoundError):
    """The run directory is missing a stage directory or capture metadata."""


@dataclass
class ValidateRunSummary:
    """Counters for one validate_run() pass."""

    run_id: str
    candidates: int = 0
    structural_errors: int = 0
    delta_records: int = 0
    skipped: int = 0


def validate_run(
    run_dir: Path,
    registry: SourceRegistry | None = None,
    out_dir: Path | None = None,
) -> ValidateRunSummary:
    """Normalize and diff every extraction response of a run.

    Args:
        run_dir: Run directory ({out_dir}/{run_id}).
        registry: Source registry; loaded from the manifest's registry_path
            when not given.
        out_dir: Root scanned for prior snapshots; defaults to the parent
            of run_dir.

    Raises:
        RunLayoutError: If llm/ or a capture meta.json is missing.
        SourceNotFoundError: If a response belongs to an unknown source.
        ValueError: If no source URL can be determined for an event.
    """
    run_path = Path(run_dir)
    manifest = load_manifest(run_path)
    set_run_context(manifest.run_id)
    if registry is None:
        registry = load_registry(Path(manifest.registry_path))

    llm_root = run_path / layout.LLM_DIR
    if not llm_root.is_dir():
        raise RunLayoutError(f"LLM directory not found in {run_path}")

    summary = ValidateRunSummary(run_id=manifest.run_id)
    prior_root = Path(out_dir) if out_dir is not None else run_path.parent

    for response_path in list_files_named(llm_root, layout.EXTRACTION_RESPONSE_FILE):
        event = layout.event_from_llm_path(run_path, response_path)
        if event is None:
            logger.debug("Skipping %s: not an event path", response_path)
            summary.skipped += 1
            continue
        carrier, source_id, captured_at = event

        source = get_source_by_id(registry, source_id)
        if source is None:
            raise SourceNotFoundError(f"Source {source_id} not found in registry")

        with event_context(carrier, source_id, captured_at):
            meta = _load_meta(run_path, carrier, source_id, captured_at)
            context = NormalizationContext(
                carrier=carrier,
                source_id=source_id,
                captured_at=captured_at,
                source_url=_source_url(meta, source, captured_at),
                content_type=content_type_for(source.artifact_type),
            )
            result = normalize_candidate(read_json(response_path), context)
            summary.candidates += 1
            if result.snapshot.parser_diagnostics.structural_error:
                summary.structural_errors += 1

            write_json(
                layout.parsed_snapshot_path(run_path, carrier, source_id, captured_at),
                result.snapshot,
            )
            write_json(
                layout.validation_report_path(run_path, carrier, source_id, captured_at),
                result.report,
            )

            if source.diff_enabled:
                prior = find_prior_snapshot(
                    prior_root, manifest.run_id, carrier, source_id, captured_at
                )
                records = diff_snapshots(
                    result.snapshot, prior.snapshot if prior else None
                )
                summary.delta_records += write_jsonl(
                    layout.delta_records_path(run_path, carrier, source_id, captured_at),
                    records,
                )

    logger.info(
        "Validated run %s: %d candidate(s), %d structural error(s), "
        "%d delta record(s), %d skipped",
        summary.run_id,
        summary.candidates,
        summary.structural_errors,
        summary.delta_records,
        summary.skipped,
    )
    return summary


def _load_meta(
    run_path: Path, carrier: str, source_id: str, captured_at: str
) -> CaptureMeta:
    meta_path = layout.capture_meta_path(run_path, carrier, source_id, captured_at)
    if not meta_path.is_file():
        raise RunLayoutError(f"Capture metadata not found: {meta_path}")
    return load_capture_meta(run_path, carrier, source_id, captured_at)


def _source_url(meta: CaptureMeta, source: SourceConfig, captured_at: str) -> str:
    url = meta.final_url or source.url
    if not url:
        raise ValueError(f"Missing source URL for {source.id} at {captured_at}")
    return url
