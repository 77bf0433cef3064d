"""Per-block metadata extraction for a single markdown file."""
