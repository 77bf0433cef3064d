"""Priority LLM job queue with vault summarization, search and analysis."""

__version__ = "0.1.0"
