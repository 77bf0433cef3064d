"""Runtime configuration for the job queue, inference backend and vault tools."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from urllib.parse import urlparse

DEFAULT_MODEL = "gpt-oss:20b"


@dataclass(slots=True)
class InferenceSettings:
    """Inference backend settings."""

    base_url: str = "http://localhost:4000"
    api_key: str | None = None
    default_model: str = DEFAULT_MODEL
    connect_timeout_seconds: float = 10.0


@dataclass(slots=True)
class QueueSettings:
    """Job queue and worker settings."""

    default_timeout_seconds: float = 20 * 60
    max_attempts: int = 1
    retain_finished: int = 1000
    retry_base_seconds: float = 2.0
    retry_max_seconds: float = 60.0


@dataclass(slots=True)
class SummarizeSettings:
    """Hierarchical summarization settings."""

    note_sentences: int = 2
    folder_sentences: int = 3
    root_sentences: int = 5
    note_priority: int = 3
    note_timeout_seconds: float = 120.0
    folder_priority: int = 4
    folder_timeout_seconds: float = 180.0


@dataclass(slots=True)
class SearchSettings:
    """Relevance search settings."""

    max_depth: int = 6
    max_results: int = 10
    priority: int = 2
    timeout_seconds: float = 60.0
    note_excerpt_chars: int = 1000


@dataclass(slots=True)
class AnalyzeSettings:
    """Markdown block analysis settings."""

    priority: int = 3
    timeout_seconds: float = 120.0


@dataclass(slots=True)
class Settings:
    """Application settings grouped by domain concerns."""

    inference: InferenceSettings = field(default_factory=InferenceSettings)
    queue: QueueSettings = field(default_factory=QueueSettings)
    summarize: SummarizeSettings = field(default_factory=SummarizeSettings)
    search: SearchSettings = field(default_factory=SearchSettings)
    analyze: AnalyzeSettings = field(default_factory=AnalyzeSettings)

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment with sane defaults for local development."""

        return cls(
            inference=InferenceSettings(
                base_url=os.getenv(
                    "VAULT_SCOUT_LLM_BASE_URL",
                    os.getenv("LITELLM_BASE_URL", "http://localhost:4000"),
                ).rstrip("/"),
                api_key=os.getenv("VAULT_SCOUT_LLM_API_KEY", os.getenv("LITELLM_API_KEY")) or None,
                default_model=os.getenv("VAULT_SCOUT_MODEL", DEFAULT_MODEL),
                connect_timeout_seconds=float(
                    os.getenv("VAULT_SCOUT_LLM_CONNECT_TIMEOUT_SECONDS", "10.0"),
                ),
            ),
            queue=QueueSettings(
                default_timeout_seconds=float(
                    os.getenv("VAULT_SCOUT_HARD_TIMEOUT_SECONDS", str(20 * 60)),
                ),
                max_attempts=int(os.getenv("VAULT_SCOUT_MAX_ATTEMPTS", "1")),
                retain_finished=int(os.getenv("VAULT_SCOUT_RETAIN_FINISHED", "1000")),
                retry_base_seconds=float(os.getenv("VAULT_SCOUT_RETRY_BASE_SECONDS", "2.0")),
                retry_max_seconds=float(os.getenv("VAULT_SCOUT_RETRY_MAX_SECONDS", "60.0")),
            ),
            summarize=SummarizeSettings(
                note_sentences=int(
                    os.getenv("VAULT_SCOUT_NOTE_SENTENCES", os.getenv("NOTE_SENTENCES", "2")),
                ),
                folder_sentences=int(
                    os.getenv("VAULT_SCOUT_FOLDER_SENTENCES", os.getenv("FOLDER_SENTENCES", "3")),
                ),
                root_sentences=int(
                    os.getenv("VAULT_SCOUT_ROOT_SENTENCES", os.getenv("ROOT_SENTENCES", "5")),
                ),
            ),
            search=SearchSettings(
                max_depth=int(os.getenv("VAULT_SCOUT_SEARCH_MAX_DEPTH", "6")),
                max_results=int(os.getenv("VAULT_SCOUT_SEARCH_MAX_RESULTS", "10")),
                timeout_seconds=float(os.getenv("VAULT_SCOUT_SEARCH_TIMEOUT_SECONDS", "60.0")),
            ),
            analyze=AnalyzeSettings(
                timeout_seconds=float(os.getenv("VAULT_SCOUT_ANALYZE_TIMEOUT_SECONDS", "120.0")),
            ),
        )

    def validate(self) -> None:
        """Raise configuration error if any value is out of range."""

        _validate_base_url(self.inference.base_url)
        if not self.inference.default_model.strip():
            raise ValueError("VAULT_SCOUT_MODEL must not be empty.")
        if self.queue.default_timeout_seconds <= 0:
            raise ValueError("VAULT_SCOUT_HARD_TIMEOUT_SECONDS must be > 0.")
        if self.queue.max_attempts < 1:
            raise ValueError("VAULT_SCOUT_MAX_ATTEMPTS must be >= 1.")
        if self.queue.retain_finished < 0:
            raise ValueError("VAULT_SCOUT_RETAIN_FINISHED must be >= 0.")
        for name, value in (
            ("note", self.summarize.note_sentences),
            ("folder", self.summarize.folder_sentences),
            ("root", self.summarize.root_sentences),
        ):
            if value <= 0:
                raise ValueError(f"Sentence count for {name} summaries must be positive: {value!r}")
        if self.search.max_depth < 0:
            raise ValueError("VAULT_SCOUT_SEARCH_MAX_DEPTH must be >= 0.")
        if self.search.max_results <= 0:
            raise ValueError("VAULT_SCOUT_SEARCH_MAX_RESULTS must be a positive integer.")
        if self.search.timeout_seconds <= 0:
            raise ValueError("VAULT_SCOUT_SEARCH_TIMEOUT_SECONDS must be > 0.")
        if self.analyze.timeout_seconds <= 0:
            raise ValueError("VAULT_SCOUT_ANALYZE_TIMEOUT_SECONDS must be > 0.")


def _validate_base_url(value: str) -> None:
    parsed = urlparse(value)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValueError(
            "Invalid inference base URL: "
            f"{value!r}. Expected an absolute URL with http:// or https:// scheme.",
        )
