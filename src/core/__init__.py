"""Canonical domain models."""
