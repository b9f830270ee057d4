"""Untrusted extraction candidate schema."""
