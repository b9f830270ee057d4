"""Baseline vs. LLM run comparison."""
