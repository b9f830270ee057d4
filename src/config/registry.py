# src/config/registry.py — v1
"""Source registry: which carrier pages are captured and how.

A registry is a JSON document {"version": ..., "sources": [...]}. Loading
validates it; a malformed registry raises pydantic's ValidationError.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from fscpulse.extraction.candidate import UrlText
from fscpulse.storage.reader import read_json

CONTENT_TYPES: dict[str, str] = {
    "html": "text/html",
    "pdf": "application/pdf",
}


class SourceNotFoundError(KeyError):
    """Raised when a run references a source id missing from the registry."""


class SourceConfig(BaseModel):
    id: str
    carrier: str
    mode: Literal["DIRECT", "DISCOVERY"]
    url: UrlText | None
    parser_id: str
    artifact_type: Literal["html", "pdf"]
    diff_enabled: bool
    child_source_id: str | None = None
    discovered_only: bool | None = None


class SourceRegistry(BaseModel):
    version: str
    sources: list[SourceConfig] = Field(default_factory=list)


def load_registry(registry_path: Path) -> SourceRegistry:
    return SourceRegistry.model_validate(read_json(registry_path))


def get_source_by_id(registry: SourceRegistry, source_id: str) -> SourceConfig | None:
    return next((s for s in registry.sources if s.id == source_id), None)


def content_type_for(artifact_type: str) -> str:
    return CONTENT_TYPES[artifact_type]
