"""Run-level orchestration."""
