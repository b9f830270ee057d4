# src/storage/reader.py — v1
"""Read run outputs: manifests, capture metadata, snapshots, JSONL batches.

Also resolves the prior snapshot for a source, i.e. the latest parsed
snapshot of another run captured strictly before the current event.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from fscpulse.core.models import FscSnapshotParsed
from fscpulse.storage import layout
from fscpulse.storage.models import CaptureMeta, RunManifest

logger = logging.getLogger(__name__)


class JsonLinesError(ValueError):
    """A JSONL file contains a line that is not valid JSON."""


@dataclass(frozen=True)
class PriorSnapshot:
    snapshot: FscSnapshotParsed
    path: Path


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-finite number {name} is not valid JSON")


def read_json(path: Path) -> Any:
    """Load one JSON document. NaN and Infinity literals raise ValueError."""
    text = Path(path).read_text(encoding="utf-8")
    return json.loads(text, parse_constant=_reject_constant)


def read_jsonl(path: Path) -> list[Any]:
    """Read one JSON value per non-blank line.

    Raises:
        JsonLinesError: If a line cannot be decoded or holds NaN/Infinity
            (message names path:line).
    """
    records: list[Any] = []
    text = Path(path).read_text(encoding="utf-8")
    for lineno, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            records.append(json.loads(line, parse_constant=_reject_constant))
        except ValueError as exc:
            raise JsonLinesError(f"Invalid JSONL at {path}:{lineno}") from exc
    return records


def list_files_named(root: Path, filename: str) -> list[Path]:
    """All files called `filename` under root, sorted; [] if root is missing."""
    root = Path(root)
    if not root.is_dir():
        return []
    return sorted(p for p in root.rglob(filename) if p.is_file())


def load_manifest(run_path: Path) -> RunManifest:
    """Load a RunManifest from a run directory."""
    return RunManifest.model_validate(read_json(layout.run_manifest_path(run_path)))


def load_capture_meta(
    run_path: Path, carrier: str, source_id: str, captured_at: str
) -> CaptureMeta:
    path = layout.capture_meta_path(run_path, carrier, source_id, captured_at)
    return CaptureMeta.model_validate(read_json(path))


def load_snapshot(path: Path) -> FscSnapshotParsed:
    return FscSnapshotParsed.model_validate(read_json(path))


def parse_instant(value: str) -> datetime | None:
    """Parse an ISO instant; file-safe forms like 2026-01-05T10-00-00Z are accepted.

    Returns None for anything unparseable. Naive values are compared as-is.
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    date_part, sep, time_part = text.partition("T")
    if sep and time_part[:8].count("-") == 2 and ":" not in time_part[:8]:
        time_part = time_part[:8].replace("-", ":") + time_part[8:]
        text = f"{date_part}T{time_part}"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def find_prior_snapshot(
    out_dir: Path,
    current_run_id: str,
    carrier: str,
    source_id: str,
    current_captured_at: str,
) -> PriorSnapshot | None:
    """Find the most recent snapshot of (carrier, source_id) before the current one.

    Every run under out_dir except current_run_id is scanned. Snapshots whose
    captured_at cannot be parsed, or is not strictly earlier, are skipped.
    Ties keep the first one found in sorted run order.
    """
    out_dir = Path(out_dir)
    current_time = parse_instant(current_captured_at)
    if current_time is None or not out_dir.is_dir():
        return None

    best: PriorSnapshot | None = None
    best_time: datetime | None = None

    for run_path in sorted(p for p in out_dir.iterdir() if p.is_dir()):
        if run_path.name == current_run_id:
            continue
        source_root = run_path / layout.SNAPSHOTS_DIR / carrier / source_id
        if not source_root.is_dir():
            continue
        for captured_dir in sorted(source_root.iterdir()):
            parsed_path = captured_dir / layout.PARSED_SNAPSHOT_FILE
            if not parsed_path.is_file():
                continue
            snapshot = load_snapshot(parsed_path)
            parsed_time = parse_instant(snapshot.captured_at)
            if parsed_time is None:
                continue
            try:
                if parsed_time >= current_time:
                    continue
                if best_time is not None and parsed_time <= best_time:
                    continue
            except TypeError:
                # naive vs aware timestamps cannot be ordered
                logger.debug("Skipping %s: incomparable captured_at", parsed_path)
                continue
            best, best_time = PriorSnapshot(snapshot=snapshot, path=parsed_path), parsed_time

    if best is not None:
        logger.debug("Prior snapshot for %s/%s: %s", carrier, source_id, best.path)
    return best
