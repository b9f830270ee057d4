"""Free-text normalizers and the snapshot builder."""
