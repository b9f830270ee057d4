# src/storage/models.py — v1
"""Storage domain models: RunManifest, CaptureMeta.

Both are written by the capture collaborator; this package only reads them.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class RunManifestError(BaseModel):
    message: str
    stack: str | None = None


class RunManifestChildArtifact(BaseModel):
    """Artifact discovered from a DISCOVERY source and captured in the same run."""

    source_id: str
    url: str
    captured_at: str
    snapshot_dir: str
    parsed_path: str | None = None
    changes_path: str | None = None
    status: Literal["success", "error"]
    error: RunManifestError | None = None
    effective_date_hint: str | None = None


class RunManifestSource(BaseModel):
    source_id: str
    carrier: str
    mode: Literal["DIRECT", "DISCOVERY"]
    status: Literal["success", "error"]
    captured_at: str | None = None
    snapshot_dir: str | None = None
    parsed_path: str | None = None
    discovery_path: str | None = None
    changes_path: str | None = None
    error: RunManifestError | None = None
    child_artifacts: list[RunManifestChildArtifact] = Field(default_factory=list)


class RunManifest(BaseModel):
    """Full manifest for a scrape run, written to run_manifest.json."""

    schema_version: Literal["1.0"] = "1.0"
    run_id: str
    out_dir: str
    run_dir: str
    registry_path: str
    started_at: str
    ended_at: str
    sources: list[RunManifestSource] = Field(default_factory=list)


class CaptureTimings(BaseModel):
    navigation_ms: float | None = None
    settle_ms: float | None = None
    total_ms: float


class CaptureMeta(BaseModel):
    """Per-capture metadata stored next to the parsed snapshot."""

    captured_at: str
    final_url: str
    status_code: int | None = None
    content_hash_sha256: str
    user_agent: str | None = None
    timings: CaptureTimings
    effective_date_hint: str | None = None
