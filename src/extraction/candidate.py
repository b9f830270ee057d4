# src/extraction/candidate.py — v1
"""Shape of the untrusted extraction candidate and its validator.

The extraction provider returns arbitrary JSON. Only its shape is checked
here (presence, types, enums, URL-shaped hrefs, bounded evidence strings);
the substance of the extracted values is never verified.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Annotated, Any, Literal

from pydantic import (
    AfterValidator,
    AnyUrl,
    BaseModel,
    Field,
    TypeAdapter,
    ValidationError,
)

from fscpulse.core.models import ValidationErrorItem

logger = logging.getLogger(__name__)

_URL_ADAPTER: TypeAdapter[AnyUrl] = TypeAdapter(AnyUrl)


def check_url(value: str) -> str:
    try:
        _URL_ADAPTER.validate_python(value)
    except ValidationError as exc:
        raise ValueError("Invalid url") from exc
    return value


NonEmpty = Annotated[str, Field(min_length=1)]
Evidence = Annotated[str, Field(min_length=1, max_length=300)]
Title = Annotated[str, Field(min_length=1, max_length=200)]
DateText = Annotated[str, Field(min_length=4, max_length=32)]
ShortText = Annotated[str, Field(min_length=1, max_length=32)]
UrlText = Annotated[str, AfterValidator(check_url)]


# === CANDIDATE MODELS ===


class CandidateWarning(BaseModel):
    """Warning reported by the extraction provider itself."""

    code: NonEmpty
    message: NonEmpty
    severity: Literal["info", "warning", "error"]


class CandidateBracket(BaseModel):
    range_text: NonEmpty
    percent_text: NonEmpty
    row_evidence: Evidence


class CandidateProgram(BaseModel):
    program: Literal["ground", "air", "international", "unknown"]
    table_title: Title | None
    table_title_evidence: Evidence | None
    basis_hint: Literal["diesel", "jet", "gasoline", "unknown"] | None
    brackets: list[CandidateBracket] = Field(default_factory=list)
    table_evidence: Evidence | None


class CandidateLink(BaseModel):
    href: UrlText
    link_text: Title | None
    effective_date: DateText | None
    evidence_snippet: Evidence


class CandidateHistoryRow(BaseModel):
    week_of: DateText
    ground_percent_text: ShortText | None
    air_percent_text: ShortText | None
    row_evidence: Evidence


class CandidateHistory(BaseModel):
    rows: list[CandidateHistoryRow] = Field(default_factory=list)


class CandidateFscExtraction(BaseModel):
    """Full candidate payload for one captured artifact."""

    artifact_type: Literal["html", "pdf"]
    carrier: Literal["UPS", "FedEx"]
    source_id: NonEmpty

    effective_date: DateText | None
    effective_date_evidence: Evidence | None

    programs: list[CandidateProgram] = Field(default_factory=list)
    links: list[CandidateLink] = Field(default_factory=list)
    history_90d: CandidateHistory | None = None
    parse_warnings: list[CandidateWarning] = Field(default_factory=list)

    def has_warning(self, code: str) -> bool:
        return any(w.code == code for w in self.parse_warnings)


# === VALIDATION ===


@dataclass
class CandidateValidation:
    """Outcome of validate_candidate(): a candidate or a list of errors."""

    candidate: CandidateFscExtraction | None = None
    errors: list[ValidationErrorItem] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return self.candidate is not None


def format_error_path(loc: tuple[int | str, ...]) -> str:
    """Dotted path for a pydantic error location, e.g. 'programs.0.program'."""
    return ".".join(str(part) for part in loc) or "<root>"


def errors_from_exception(exc: ValidationError) -> list[ValidationErrorItem]:
    return [
        ValidationErrorItem(path=format_error_path(err["loc"]), message=err["msg"])
        for err in exc.errors()
    ]


def validate_candidate(raw: Any) -> CandidateValidation:
    """Validate a raw candidate payload.

    Never raises for bad input: every schema violation is returned as a
    (path, message) error and no partial candidate is produced.
    """
    try:
        candidate = CandidateFscExtraction.model_validate(raw)
    except ValidationError as exc:
        errors = errors_from_exception(exc)
        logger.debug("Candidate failed validation with %d error(s)", len(errors))
        return CandidateValidation(errors=errors)
    return CandidateValidation(candidate=candidate)
