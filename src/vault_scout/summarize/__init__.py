"""Bottom-up hierarchical summaries of a vault."""
