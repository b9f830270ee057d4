"""Run directory layout, readers and writers."""
