"""Priority-ordered in-process job store with per-job result handles."""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from collections import Counter, deque
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from vault_scout.orchestrator.errors import error_for_failure
from vault_scout.orchestrator.models import (
    FailureClass,
    JobCreate,
    JobEventView,
    JobFailure,
    JobOutcome,
    JobStatus,
    JobSuccess,
    JobView,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 20 * 60
DEFAULT_RETAIN_FINISHED = 1000


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


class JobHandle:
    """Caller-side view of one submitted job.

    Waiting on a handle suspends only the awaiting task; the worker and other
    submitters keep running.
    """

    def __init__(self, job_id: str, future: asyncio.Future[JobOutcome]) -> None:
        self.job_id = job_id
        self._future = future

    def done(self) -> bool:
        return self._future.done()

    async def outcome(self) -> JobOutcome:
        """Wait for the job and return its outcome without raising."""

        return await asyncio.shield(self._future)

    async def result(self) -> str:
        """Wait for the job and return its text, raising on failure."""

        outcome = await self.outcome()
        if isinstance(outcome, JobFailure):
            raise error_for_failure(self.job_id, outcome)
        return outcome.text


@dataclass(slots=True)
class _JobRecord:
    job_id: str
    name: str
    source: str
    prompt: str
    model: str
    priority: int
    timeout_seconds: float
    max_attempts: int
    submitted_at: datetime
    future: asyncio.Future[JobOutcome]
    status: JobStatus = JobStatus.QUEUED
    attempt: int = 0
    started_at: datetime | None = None
    finished_at: datetime | None = None
    failure_class: FailureClass | None = None
    error_summary: str | None = None
    events: list[JobEventView] = field(default_factory=list)


class JobQueue:
    """Ordered store of pending jobs drained by a single worker.

    The lowest numeric priority is claimed first; equal priorities are served
    in submission order. Submitting never waits for the worker.
    """

    def __init__(
        self,
        *,
        default_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        default_max_attempts: int = 1,
        retain_finished: int = DEFAULT_RETAIN_FINISHED,
    ) -> None:
        if default_timeout_seconds <= 0:
            raise ValueError("default_timeout_seconds must be > 0.")
        if default_max_attempts < 1:
            raise ValueError("default_max_attempts must be >= 1.")
        self.default_timeout_seconds = default_timeout_seconds
        self.default_max_attempts = default_max_attempts
        self.retain_finished = retain_finished
        self._jobs: dict[str, _JobRecord] = {}
        self._heap: list[tuple[int, int, str]] = []
        self._sequence = itertools.count()
        self._event_ids = itertools.count(1)
        self._finished: deque[str] = deque()
        self._ready = asyncio.Event()
        self._pending_retries: set[asyncio.TimerHandle] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def submit(self, payload: JobCreate) -> JobHandle:
        """Add a job and return its handle."""

        if self._closed:
            raise RuntimeError("Cannot submit to a closed job queue.")
        max_attempts = (
            self.default_max_attempts if payload.max_attempts is None else payload.max_attempts
        )
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1.")
        timeout_seconds = (
            self.default_timeout_seconds
            if payload.timeout_seconds is None
            else payload.timeout_seconds
        )
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0.")

        loop = asyncio.get_running_loop()
        record = _JobRecord(
            job_id=uuid4().hex,
            name=payload.name,
            source=payload.source,
            prompt=payload.prompt,
            model=payload.model,
            priority=payload.priority,
            timeout_seconds=timeout_seconds,
            max_attempts=max_attempts,
            submitted_at=utc_now(),
            future=loop.create_future(),
        )
        self._jobs[record.job_id] = record
        self._push(record)
        self._add_event(
            record,
            event_type="enqueued",
            status_from=None,
            status_to=JobStatus.QUEUED,
            details={"priority": record.priority, "source": record.source},
        )
        return JobHandle(record.job_id, record.future)

    async def claim_next_ready_job(self, *, wait: bool = True) -> JobView | None:
        """Claim the most urgent queued job, suspending while the queue is empty.

        Returns None when the queue is closed, or when it is empty and
        ``wait`` is False.
        """

        while not self._heap:
            if self._closed or not wait:
                return None
            self._ready.clear()
            await self._ready.wait()

        _, _, job_id = heapq.heappop(self._heap)
        record = self._jobs[job_id]
        record.status = JobStatus.RUNNING
        record.attempt += 1
        record.started_at = utc_now()
        record.finished_at = None
        record.failure_class = None
        record.error_summary = None
        self._add_event(
            record,
            event_type="claimed",
            status_from=JobStatus.QUEUED,
            status_to=JobStatus.RUNNING,
            details={"attempt": record.attempt},
        )
        return _to_job_view(record)

    def complete_job(self, *, job_id: str, text: str) -> bool:
        """Attach a successful outcome."""

        record = self._running_record(job_id)
        if record is None:
            return False
        record.status = JobStatus.SUCCEEDED
        record.finished_at = utc_now()
        self._add_event(
            record,
            event_type="succeeded",
            status_from=JobStatus.RUNNING,
            status_to=JobStatus.SUCCEEDED,
            details={"output_chars": len(text)},
        )
        self._resolve(record, JobSuccess(text))
        return True

    def fail_job(
        self,
        *,
        job_id: str,
        failure_class: FailureClass,
        error_summary: str,
        details: dict[str, Any] | None = None,
    ) -> bool:
        """Attach a terminal failure outcome."""

        record = self._running_record(job_id)
        if record is None:
            return False
        status = JobStatus.TIMEOUT if failure_class == FailureClass.TIMEOUT else JobStatus.FAILED
        record.status = status
        record.finished_at = utc_now()
        record.failure_class = failure_class
        record.error_summary = error_summary
        event_details: dict[str, Any] = {"failure_class": failure_class.value}
        if details:
            event_details.update(details)
        self._add_event(
            record,
            event_type=status.value,
            status_from=JobStatus.RUNNING,
            status_to=status,
            details=event_details,
        )
        self._resolve(record, JobFailure(failure_class, error_summary))
        return True

    def requeue_job(
        self,
        *,
        job_id: str,
        error_summary: str,
        delay_seconds: float = 0.0,
        details: dict[str, Any] | None = None,
    ) -> bool:
        """Put a running job back in the queue for another attempt."""

        record = self._running_record(job_id)
        if record is None:
            return False
        if record.attempt >= record.max_attempts:
            raise RuntimeError(f"Job {job_id} has no attempts left.")
        record.status = JobStatus.QUEUED
        record.error_summary = error_summary
        event_details: dict[str, Any] = {"delay_seconds": delay_seconds}
        if details:
            event_details.update(details)
        self._add_event(
            record,
            event_type="retry_scheduled",
            status_from=JobStatus.RUNNING,
            status_to=JobStatus.QUEUED,
            details=event_details,
        )
        if delay_seconds <= 0:
            self._push(record)
            return True

        loop = asyncio.get_running_loop()
        handle: asyncio.TimerHandle

        def _push_later() -> None:
            self._pending_retries.discard(handle)
            if not self._closed:
                self._push(record)

        handle = loop.call_later(delay_seconds, _push_later)
        self._pending_retries.add(handle)
        return True

    def close(self) -> None:
        """Stop accepting jobs and fail everything still waiting."""

        if self._closed:
            return
        self._closed = True
        for handle in self._pending_retries:
            handle.cancel()
        self._pending_retries.clear()
        self._heap.clear()
        abandoned = 0
        for record in list(self._jobs.values()):
            if record.status != JobStatus.QUEUED:
                continue
            record.status = JobStatus.FAILED
            record.finished_at = utc_now()
            record.failure_class = FailureClass.FATAL
            record.error_summary = "Job queue closed before the job ran."
            self._add_event(
                record,
                event_type="abandoned",
                status_from=JobStatus.QUEUED,
                status_to=JobStatus.FAILED,
            )
            self._resolve(record, JobFailure(FailureClass.FATAL, record.error_summary))
            abandoned += 1
        if abandoned:
            logger.warning("Job queue closed with %d queued job(s) abandoned", abandoned)
        self._ready.set()

    def get_job(self, job_id: str) -> JobView | None:
        record = self._jobs.get(job_id)
        return None if record is None else _to_job_view(record)

    def list_jobs(self, *, status: JobStatus | None = None) -> list[JobView]:
        records = sorted(self._jobs.values(), key=lambda item: item.submitted_at)
        return [
            _to_job_view(record)
            for record in records
            if status is None or record.status == status
        ]

    def list_events(self, job_id: str) -> list[JobEventView]:
        record = self._jobs.get(job_id)
        return [] if record is None else list(record.events)

    def stats(self) -> dict[str, int]:
        """Counts per job status for jobs still retained."""

        counts = Counter(record.status.value for record in self._jobs.values())
        return {status.value: counts.get(status.value, 0) for status in JobStatus}

    def _push(self, record: _JobRecord) -> None:
        heapq.heappush(self._heap, (record.priority, next(self._sequence), record.job_id))
        self._ready.set()

    def _running_record(self, job_id: str) -> _JobRecord | None:
        record = self._jobs.get(job_id)
        if record is None:
            logger.warning("Job %s is unknown or already evicted", job_id)
            return None
        if record.status != JobStatus.RUNNING:
            logger.warning(
                "Job %s is %s, expected running; transition ignored",
                job_id,
                record.status.value,
            )
            return None
        return record

    def _resolve(self, record: _JobRecord, outcome: JobOutcome) -> None:
        if record.future.done():
            logger.warning("Job %s already has an outcome; ignoring second one", record.job_id)
            return
        record.future.set_result(outcome)
        self._finished.append(record.job_id)
        self._evict_finished()

    def _evict_finished(self) -> None:
        while len(self._finished) > self.retain_finished:
            job_id = self._finished.popleft()
            evicted = self._jobs.pop(job_id, None)
            if evicted is not None:
                logger.debug("Evicted finished job %s", job_id)

    def _add_event(
        self,
        record: _JobRecord,
        *,
        event_type: str,
        status_from: JobStatus | None,
        status_to: JobStatus | None,
        details: dict[str, Any] | None = None,
    ) -> None:
        record.events.append(
            JobEventView(
                event_id=next(self._event_ids),
                job_id=record.job_id,
                event_type=event_type,
                status_from=status_from,
                status_to=status_to,
                created_at=utc_now(),
                details=details or {},
            ),
        )


def _to_job_view(record: _JobRecord) -> JobView:
    return JobView(
        job_id=record.job_id,
        name=record.name,
        source=record.source,
        prompt=record.prompt,
        model=record.model,
        priority=record.priority,
        timeout_seconds=record.timeout_seconds,
        status=record.status,
        attempt=record.attempt,
        max_attempts=record.max_attempts,
        submitted_at=record.submitted_at,
        started_at=record.started_at,
        finished_at=record.finished_at,
        failure_class=record.failure_class,
        error_summary=record.error_summary,
    )
