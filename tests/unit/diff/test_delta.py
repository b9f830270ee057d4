# tests/unit/diff/test_delta.py — v1
"""Tests for diff/delta.py: per-bracket change records."""

from __future__ import annotations

from fscpulse.diff.delta import (
    EFFECTIVE_DATE_UNKNOWN,
    PARSER_STRUCTURAL_ERROR,
    PROGRAM_UNKNOWN,
    build_table_map,
    diff_snapshots,
    group_key_for,
    publishability_reasons,
)

PRIOR = "2025-12-29T10-00-00Z"


class TestDiffProperties:
    def test_self_diff_is_empty(self, sample_snapshot):
        assert diff_snapshots(sample_snapshot, sample_snapshot) == []

    def test_no_prior_emits_every_valued_bracket(self, snapshot_factory):
        current = snapshot_factory({
            "ground": {"$1.50 - $1.99": 12.0, "$2.00 - $2.49": None},
            "air": {"4.00+": 18.25},
        })
        records = diff_snapshots(current, None)
        assert [(r.program, r.bracket_id) for r in records] == [
            ("ground", "1.50_1.99"), ("air", "4.00_plus"),
        ]
        assert all(r.old_value is None for r in records)
        assert all(r.prior_captured_at is None for r in records)


class TestValueChanges:
    def test_single_change(self, snapshot_factory):
        prior = snapshot_factory(
            {"ground": {"$1.50 - $1.99": 12.0, "$2.00 - $2.49": 12.5}},
            captured_at=PRIOR,
        )
        current = snapshot_factory(
            {"ground": {"$1.50 - $1.99": 12.5, "$2.00 - $2.49": 12.5}},
        )
        records = diff_snapshots(current, prior)
        assert len(records) == 1
        record = records[0]
        assert record.bracket_id == "1.50_1.99"
        assert record.old_value == 12.0
        assert record.new_value == 12.5
        assert record.index_range == "$1.50 - $1.99"
        assert record.prior_captured_at == PRIOR
        assert record.captured_at == current.captured_at
        assert record.carrier == "UPS"
        assert record.source_id == "ups_fsc_main"
        assert record.effective_date == "2026-01-05"
        assert record.group_key == "2026-fuel_surcharge-2026-01-05-UPS-ground"
        assert record.publishability.is_publishable is True
        assert record.publishability.reasons == []
        assert record.parser_structural_error is False

    def test_removed_bracket_keeps_prior_range(self, snapshot_factory):
        prior = snapshot_factory(
            {"ground": {"$1.50 - $1.99": 12.0, "4.00+": 15.0}}, captured_at=PRIOR
        )
        current = snapshot_factory({"ground": {"$1.50 - $1.99": 12.0}})
        records = diff_snapshots(current, prior)
        assert [(r.bracket_id, r.old_value, r.new_value) for r in records] == [
            ("4.00_plus", 15.0, None),
        ]
        assert records[0].index_range == "4.00+"

    def test_reworded_range_is_removal_and_addition(self, snapshot_factory):
        prior = snapshot_factory({"ground": {"$1.50 - $1.99": 12.0}}, captured_at=PRIOR)
        current = snapshot_factory({"ground": {"$1.50 - $2.00": 12.0}})
        records = diff_snapshots(current, prior)
        assert {(r.bracket_id, r.old_value, r.new_value) for r in records} == {
            ("1.50_2.00", None, 12.0),
            ("1.50_1.99", 12.0, None),
        }

    def test_program_missing_from_current_is_silent(self, snapshot_factory):
        prior = snapshot_factory(
            {"ground": {"4.00+": 15.0}, "air": {"4.00+": 18.0}}, captured_at=PRIOR
        )
        current = snapshot_factory({"ground": {"4.00+": 15.0}})
        assert diff_snapshots(current, prior) == []


class TestPublishability:
    def test_unknown_date_blocks_publishing(self, snapshot_factory):
        current = snapshot_factory({"ground": {"4.00+": 15.0}}, effective_date=None)
        record = diff_snapshots(current, None)[0]
        assert record.effective_date is None
        assert record.publishability.is_publishable is False
        assert record.publishability.reasons == [EFFECTIVE_DATE_UNKNOWN]
        assert record.group_key == "unknown-fuel_surcharge-unknown-UPS-ground"

    def test_date_falls_back_to_prior_table(self, snapshot_factory):
        prior = snapshot_factory({"ground": {"4.00+": 15.0}}, captured_at=PRIOR)
        current = snapshot_factory({"ground": {"4.00+": 16.0}}, effective_date=None)
        record = diff_snapshots(current, prior)[0]
        assert record.effective_date == "2026-01-05"
        assert record.publishability.is_publishable is True

    def test_structural_error_and_unknown_program(self, snapshot_factory):
        current = snapshot_factory(
            {"unknown": {"4.00+": 15.0}}, structural_error=True
        )
        record = diff_snapshots(current, None)[0]
        assert record.parser_structural_error is True
        assert record.publishability.reasons == [PROGRAM_UNKNOWN, PARSER_STRUCTURAL_ERROR]


class TestHelpers:
    def test_group_key_for_null_program(self):
        assert group_key_for("FedEx", None, "2026-02-02") == (
            "2026-fuel_surcharge-2026-02-02-FedEx-unknown"
        )

    def test_reasons_order(self):
        assert publishability_reasons(None, None, True) == [
            EFFECTIVE_DATE_UNKNOWN, PROGRAM_UNKNOWN, PARSER_STRUCTURAL_ERROR,
        ]

    def test_table_map_merges_repeated_program(self, snapshot_factory):
        snapshot = snapshot_factory({"ground": {"4.00+": 15.0}})
        doubled = snapshot.model_copy(update={
            "tables": [
                snapshot.tables[0].model_copy(update={"effective_date": None}),
                snapshot_factory({"ground": {"< 1.00": 9.0}}).tables[0],
            ],
        })
        table_map = build_table_map(doubled)
        assert list(table_map) == ["ground"]
        assert table_map["ground"].effective_date == "2026-01-05"
        assert list(table_map["ground"].brackets) == ["4.00_plus", "lt_1.00"]
