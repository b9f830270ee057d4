"""Snapshot-to-snapshot change detection."""
