"""Settings and source registry."""
