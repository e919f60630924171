"""Top-level previewhost commands."""
