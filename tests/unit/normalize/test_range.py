# tests/unit/normalize/test_range.py — v1
"""Tests for normalize/range.py: bracket bounds and ids."""

from __future__ import annotations

import pytest

from fscpulse.normalize.range import (
    RANGE_PARSE_FAILED,
    clean_range_text,
    parse_range_text,
)


class TestBoundedRanges:
    def test_currency_range(self):
        result = parse_range_text("$1.50 - $1.99")
        assert result.bracket_id == "1.50_1.99"
        assert result.index_low == 1.50
        assert result.index_high == 1.99
        assert result.warning is None

    @pytest.mark.parametrize(
        "text", ["1.5-1.99", "$1.50 – $1.99", "1.50 to 1.99", "  $1.50  -  $1.99 "]
    )
    def test_variants_share_id(self, text):
        assert parse_range_text(text).bracket_id == "1.50_1.99"

    def test_bounded_checked_before_open_high(self):
        result = parse_range_text("1.00 - 1.49+")
        assert result.bracket_id == "1.00_1.49"

    def test_deterministic(self):
        assert parse_range_text("$2.00 - $2.49") == parse_range_text("$2.00 - $2.49")


class TestOpenRanges:
    @pytest.mark.parametrize("text", ["4.00+", "$4.00 +", "4.00 and above", ">= 4"])
    def test_open_high(self, text):
        result = parse_range_text(text)
        assert result.bracket_id == "4.00_plus"
        assert result.index_low == 4.0
        assert result.index_high is None

    @pytest.mark.parametrize("text", ["< 1.00", "Under $1.00", "less than 1"])
    def test_open_low(self, text):
        result = parse_range_text(text)
        assert result.bracket_id == "lt_1.00"
        assert result.index_low is None
        assert result.index_high == 1.0


class TestUnparseableRanges:
    def test_fallback_slug(self):
        result = parse_range_text("See Table Below")
        assert result.bracket_id == "see_table_below"
        assert result.index_low is None
        assert result.index_high is None
        assert result.warning.code == RANGE_PARSE_FAILED
        assert result.warning.message == "Could not parse range: See Table Below"

    def test_whitespace_only_falls_back_to_unknown(self):
        assert parse_range_text("   ").bracket_id == "unknown_range"

    @pytest.mark.parametrize("text", ["1" * 400 + "+", "1.00 - " + "9" * 400])
    def test_overflowing_bounds_fail(self, text):
        result = parse_range_text(text)
        assert result.index_low is None
        assert result.index_high is None
        assert result.warning.code == RANGE_PARSE_FAILED


class TestCleanRangeText:
    def test_cleans(self):
        assert clean_range_text("  $1,000.00 —  $1,999 ") == "1000.00 - 1999"
