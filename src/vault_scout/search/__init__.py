"""LLM-guided relevance search over a vault hierarchy."""
