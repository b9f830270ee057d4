# src/storage/layout.py — v1
"""Run directory structure definition.

Every capture event is addressed by (carrier, source_id, captured_at)
under one of the per-run stage directories:

    {out_dir}/{run_id}/
        run_manifest.json
        llm/{carrier}/{source_id}/{captured_at}/extraction_response.json, validation_report.json
        snapshots/{carrier}/{source_id}/{captured_at}/meta.json, parsed.json
        changes/{carrier}/{source_id}/{captured_at}/fsc_delta_records.jsonl
"""

from __future__ import annotations

from pathlib import Path

# Run-level directories under {run_id}/
LLM_DIR = "llm"
SNAPSHOTS_DIR = "snapshots"
CHANGES_DIR = "changes"

# File names
RUN_MANIFEST_FILE = "run_manifest.json"
EXTRACTION_RESPONSE_FILE = "extraction_response.json"
VALIDATION_REPORT_FILE = "validation_report.json"
CAPTURE_META_FILE = "meta.json"
PARSED_SNAPSHOT_FILE = "parsed.json"
DELTA_RECORDS_FILE = "fsc_delta_records.jsonl"


def run_dir(out_dir: Path, run_id: str) -> Path:
    return Path(out_dir) / run_id


def run_manifest_path(run_path: Path) -> Path:
    return Path(run_path) / RUN_MANIFEST_FILE


def _event_dir(
    run_path: Path, stage: str, carrier: str, source_id: str, captured_at: str
) -> Path:
    return Path(run_path) / stage / carrier / source_id / captured_at


# --- Per-event directories ---

def llm_dir(run_path: Path, carrier: str, source_id: str, captured_at: str) -> Path:
    return _event_dir(run_path, LLM_DIR, carrier, source_id, captured_at)


def snapshot_dir(run_path: Path, carrier: str, source_id: str, captured_at: str) -> Path:
    return _event_dir(run_path, SNAPSHOTS_DIR, carrier, source_id, captured_at)


def changes_dir(run_path: Path, carrier: str, source_id: str, captured_at: str) -> Path:
    return _event_dir(run_path, CHANGES_DIR, carrier, source_id, captured_at)


# --- Specific file paths ---

def extraction_response_path(
    run_path: Path, carrier: str, source_id: str, captured_at: str
) -> Path:
    return llm_dir(run_path, carrier, source_id, captured_at) / EXTRACTION_RESPONSE_FILE


def validation_report_path(
    run_path: Path, carrier: str, source_id: str, captured_at: str
) -> Path:
    return llm_dir(run_path, carrier, source_id, captured_at) / VALIDATION_REPORT_FILE


def capture_meta_path(
    run_path: Path, carrier: str, source_id: str, captured_at: str
) -> Path:
    return snapshot_dir(run_path, carrier, source_id, captured_at) / CAPTURE_META_FILE


def parsed_snapshot_path(
    run_path: Path, carrier: str, source_id: str, captured_at: str
) -> Path:
    return snapshot_dir(run_path, carrier, source_id, captured_at) / PARSED_SNAPSHOT_FILE


def delta_records_path(
    run_path: Path, carrier: str, source_id: str, captured_at: str
) -> Path:
    return changes_dir(run_path, carrier, source_id, captured_at) / DELTA_RECORDS_FILE


def event_from_llm_path(run_path: Path, response_path: Path) -> tuple[str, str, str] | None:
    """Recover (carrier, source_id, captured_at) from an extraction response path.

    Returns None when the path is not llm/{carrier}/{source_id}/{captured_at}/<file>.
    """
    try:
        parts = Path(response_path).relative_to(run_path).parts
    except ValueError:
        return None
    if len(parts) < 5 or parts[0] != LLM_DIR:
        return None
    return parts[1], parts[2], parts[3]
