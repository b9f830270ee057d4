# tests/unit/extraction/test_candidate.py — v1
"""Tests for extraction/candidate.py: shape validation of raw candidates."""

from __future__ import annotations

import pytest

from fscpulse.extraction.candidate import (
    CandidateFscExtraction,
    format_error_path,
    validate_candidate,
)


class TestValidCandidate:
    def test_sample_is_valid(self, sample_candidate):
        result = validate_candidate(sample_candidate)
        assert result.valid
        assert result.errors == []
        assert isinstance(result.candidate, CandidateFscExtraction)
        assert [p.program for p in result.candidate.programs] == ["ground", "air"]

    def test_optional_lists_default_empty(self, make_candidate):
        raw = make_candidate()
        for key in ("links", "parse_warnings", "history_90d"):
            raw.pop(key)
        result = validate_candidate(raw)
        assert result.valid
        assert result.candidate.links == []
        assert result.candidate.parse_warnings == []
        assert result.candidate.history_90d is None

    def test_has_warning(self, make_candidate):
        raw = make_candidate(parse_warnings=[
            {"code": "PARSER_STRUCTURAL_ERROR", "message": "table split", "severity": "error"},
        ])
        candidate = validate_candidate(raw).candidate
        assert candidate.has_warning("PARSER_STRUCTURAL_ERROR")
        assert not candidate.has_warning("SCOPE_AMBIGUOUS")

    def test_links_and_history(self, make_candidate):
        raw = make_candidate(
            links=[{
                "href": "https://www.ups.com/assets/fsc.pdf",
                "link_text": "Fuel surcharge PDF",
                "effective_date": "Jan 5, 2026",
                "evidence_snippet": "Download the fuel surcharge table",
            }],
            history_90d={"rows": [{
                "week_of": "12/29/2025",
                "ground_percent_text": "12.00%",
                "air_percent_text": None,
                "row_evidence": "12/29/2025 12.00%",
            }]},
        )
        result = validate_candidate(raw)
        assert result.valid
        assert result.candidate.history_90d.rows[0].week_of == "12/29/2025"


class TestInvalidCandidate:
    def test_non_object(self):
        result = validate_candidate(["not", "an", "object"])
        assert not result.valid
        assert result.candidate is None
        assert result.errors

    def test_bad_enum_reports_path(self, make_candidate):
        raw = make_candidate()
        raw["programs"][0]["program"] = "freight"
        result = validate_candidate(raw)
        assert not result.valid
        assert [e.path for e in result.errors] == ["programs.0.program"]

    def test_unknown_carrier(self, make_candidate):
        result = validate_candidate(make_candidate(carrier="DHL"))
        assert [e.path for e in result.errors] == ["carrier"]

    def test_missing_required_field(self, make_candidate):
        raw = make_candidate()
        del raw["effective_date"]
        result = validate_candidate(raw)
        assert [e.path for e in result.errors] == ["effective_date"]

    def test_evidence_too_long(self, make_candidate):
        raw = make_candidate()
        raw["programs"][0]["brackets"][0]["row_evidence"] = "x" * 301
        result = validate_candidate(raw)
        assert [e.path for e in result.errors] == ["programs.0.brackets.0.row_evidence"]

    def test_invalid_href(self, make_candidate):
        raw = make_candidate(links=[{
            "href": "not a url",
            "link_text": None,
            "effective_date": None,
            "evidence_snippet": "link",
        }])
        result = validate_candidate(raw)
        assert [e.path for e in result.errors] == ["links.0.href"]

    def test_collects_every_error(self, make_candidate):
        raw = make_candidate(carrier="DHL", artifact_type="docx")
        result = validate_candidate(raw)
        assert {e.path for e in result.errors} == {"carrier", "artifact_type"}


class TestFormatErrorPath:
    @pytest.mark.parametrize(
        ("loc", "expected"),
        [(("programs", 0, "program"), "programs.0.program"), ((), "<root>")],
    )
    def test_format(self, loc, expected):
        assert format_error_path(loc) == expected
