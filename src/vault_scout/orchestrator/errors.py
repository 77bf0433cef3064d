"""Exceptions raised to callers waiting on job results."""

from __future__ import annotations

from vault_scout.orchestrator.models import FailureClass, JobFailure


class JobError(RuntimeError):
    """Job finished without a result."""

    failure_class: FailureClass = FailureClass.FATAL

    def __init__(self, job_id: str, message: str) -> None:
        super().__init__(f"Job {job_id} failed: {message}")
        self.job_id = job_id
        self.message = message


class JobTimeoutError(JobError):
    """Hard deadline hit; the job was aborted and is never retried."""

    failure_class = FailureClass.TIMEOUT


class JobTransientError(JobError):
    """Network or backend failure; the caller decides whether to try again."""

    failure_class = FailureClass.TRANSIENT


class JobFatalError(JobError):
    """Job could not be executed at all (for example the queue was closed)."""

    failure_class = FailureClass.FATAL


_ERRORS_BY_CLASS: dict[FailureClass, type[JobError]] = {
    FailureClass.TIMEOUT: JobTimeoutError,
    FailureClass.TRANSIENT: JobTransientError,
    FailureClass.FATAL: JobFatalError,
}


def error_for_failure(job_id: str, failure: JobFailure) -> JobError:
    """Build the exception matching a failed outcome."""

    return _ERRORS_BY_CLASS[failure.failure_class](job_id, failure.message)
