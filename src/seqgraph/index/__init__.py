"""Cross-page reference index."""
