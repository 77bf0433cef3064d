"""Domain models for the in-process LLM job queue."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class JobStatus(str, Enum):
    """Job lifecycle states."""

    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMEOUT = "timeout"


class FailureClass(str, Enum):
    """Normalized failure classes used by retry policy."""

    TIMEOUT = "timeout"
    TRANSIENT = "transient"
    FATAL = "fatal"


@dataclass(slots=True)
class JobCreate:
    """Input payload for submitting an LLM job."""

    prompt: str
    model: str
    priority: int = 100
    timeout_seconds: float | None = None
    max_attempts: int | None = None
    source: str = "unknown"
    name: str = "llm"


@dataclass(slots=True, frozen=True)
class JobView:
    """Readable job snapshot for callers and the worker."""

    job_id: str
    name: str
    source: str
    prompt: str
    model: str
    priority: int
    timeout_seconds: float
    status: JobStatus
    attempt: int
    max_attempts: int
    submitted_at: datetime
    started_at: datetime | None
    finished_at: datetime | None
    failure_class: FailureClass | None
    error_summary: str | None


@dataclass(slots=True, frozen=True)
class JobSuccess:
    """Inference returned text."""

    text: str

    @property
    def is_success(self) -> bool:
        return True


@dataclass(slots=True, frozen=True)
class JobFailure:
    """Inference did not produce text."""

    failure_class: FailureClass
    message: str

    @property
    def is_success(self) -> bool:
        return False


JobOutcome = JobSuccess | JobFailure


@dataclass(slots=True)
class JobEventView:
    """Job event entry for audit trail."""

    event_id: int
    job_id: str
    event_type: str
    status_from: JobStatus | None
    status_to: JobStatus | None
    created_at: datetime
    details: dict[str, Any] = field(default_factory=dict)
