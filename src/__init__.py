"""Fuel-surcharge table normalization, change detection and run comparison."""

from fscpulse.version import __version__

__all__ = ["__version__"]
