"""Internal helpers for fpath."""
