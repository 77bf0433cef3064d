"""Single-slot queue worker with a hard per-job deadline."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import random
from dataclasses import dataclass
from typing import NamedTuple

from vault_scout.orchestrator.backend import InferenceBackend, InferenceError, InferenceRequest
from vault_scout.orchestrator.failure_classifier import classify_inference_failure
from vault_scout.orchestrator.models import FailureClass, JobView
from vault_scout.orchestrator.queue import JobQueue

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class WorkerRunSummary:
    """Aggregate worker counters for CLI reporting."""

    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    retried: int = 0
    timeouts: int = 0
    idle_polls: int = 0

    def add(self, other: WorkerRunSummary) -> None:
        self.processed += other.processed
        self.succeeded += other.succeeded
        self.failed += other.failed
        self.retried += other.retried
        self.timeouts += other.timeouts
        self.idle_polls += other.idle_polls


class RetryOutcome(NamedTuple):
    retried: bool
    failed: bool


class DeadlineGuard:
    """One-shot timer that cancels an in-flight call when its deadline passes."""

    def __init__(self, *, timeout_seconds: float, target: asyncio.Future[str]) -> None:
        self.timeout_seconds = timeout_seconds
        self._target = target
        self._handle: asyncio.TimerHandle | None = None
        self.fire_count = 0

    @property
    def fired(self) -> bool:
        return self.fire_count > 0

    def start(self) -> None:
        if self._handle is not None:
            raise RuntimeError("Deadline guard already started.")
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.timeout_seconds, self._fire)

    def cancel(self) -> None:
        if self._handle is None:
            return
        self._handle.cancel()
        self._handle = None

    def _fire(self) -> None:
        self._handle = None
        if self.fired or self._target.done():
            return
        self.fire_count += 1
        self._target.cancel()


class QueueWorker:
    """Drains a job queue one job at a time through an inference backend.

    Concurrency is fixed at one: the backend models a single shared
    inference resource.
    """

    def __init__(
        self,
        *,
        queue: JobQueue,
        backend: InferenceBackend,
        worker_id: str,
        retry_base_seconds: float = 2.0,
        retry_max_seconds: float = 60.0,
    ) -> None:
        self.queue = queue
        self.backend = backend
        self.worker_id = worker_id
        self.retry_base_seconds = retry_base_seconds
        self.retry_max_seconds = retry_max_seconds
        self._random = random.Random()  # noqa: S311
        self._stop_requested = False
        self._current_job_id: str | None = None
        self._loop_task: asyncio.Task[WorkerRunSummary] | None = None
        self.last_guard: DeadlineGuard | None = None

    @property
    def busy(self) -> bool:
        return self._current_job_id is not None

    async def run_once(self, *, wait: bool = False) -> WorkerRunSummary:
        """Process at most one job from the queue."""

        summary = WorkerRunSummary()
        if self._stop_requested:
            summary.idle_polls = 1
            return summary

        job = await self.queue.claim_next_ready_job(wait=wait)
        if job is None:
            summary.idle_polls = 1
            return summary

        summary.processed = 1
        self._current_job_id = job.job_id
        try:
            await self._execute_job(job=job, summary=summary)
        except asyncio.CancelledError:
            self.queue.fail_job(
                job_id=job.job_id,
                failure_class=FailureClass.FATAL,
                error_summary="Worker stopped while the job was running.",
            )
            raise
        finally:
            self._current_job_id = None
        return summary

    async def run_loop(
        self,
        *,
        max_jobs: int | None = None,
        max_idle_polls: int | None = None,
    ) -> WorkerRunSummary:
        """Run until stopped, the queue closes, or a limit is reached.

        Args:
            max_jobs: Stop after processing this many jobs (None = unlimited).
            max_idle_polls: Stop after this many consecutive empty polls.
                None means suspend on an empty queue until work arrives.
        """

        aggregate = WorkerRunSummary()
        consecutive_idle = 0
        while not self._stop_requested:
            if max_jobs is not None and aggregate.processed >= max_jobs:
                break
            summary = await self.run_once(wait=max_idle_polls is None)
            aggregate.add(summary)
            if summary.processed:
                consecutive_idle = 0
                continue
            if self.queue.closed:
                break
            consecutive_idle += 1
            if max_idle_polls is not None and consecutive_idle >= max_idle_polls:
                break
        return aggregate

    def start(self) -> asyncio.Task[WorkerRunSummary]:
        """Run the loop as a background task on the current event loop."""

        if self._loop_task is not None and not self._loop_task.done():
            raise RuntimeError(f"Worker {self.worker_id} is already running.")
        self._stop_requested = False
        self._loop_task = asyncio.create_task(self.run_loop(), name=f"worker-{self.worker_id}")
        logger.info("Worker %s started, waiting for jobs...", self.worker_id)
        return self._loop_task

    async def stop(self) -> WorkerRunSummary | None:
        """Stop the background loop, aborting any job still in flight."""

        self._stop_requested = True
        task = self._loop_task
        self._loop_task = None
        if task is None:
            return None
        if not task.done():
            task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            summary = await task
            logger.info("Worker %s stopped", self.worker_id)
            return summary
        logger.info("Worker %s stopped", self.worker_id)
        return None

    async def _execute_job(self, *, job: JobView, summary: WorkerRunSummary) -> None:
        call = asyncio.ensure_future(
            self.backend.infer(InferenceRequest(prompt=job.prompt, model=job.model)),
        )
        guard = DeadlineGuard(timeout_seconds=job.timeout_seconds, target=call)
        self.last_guard = guard
        guard.start()
        try:
            text = await call
        except asyncio.CancelledError:
            if not guard.fired:
                raise
            self._handle_timeout(job=job, summary=summary)
            return
        except InferenceError as error:
            self._handle_inference_error(
                job=job,
                message=str(error),
                status_code=error.status_code,
                transient_hint=error.transient,
                summary=summary,
            )
            return
        except Exception as error:  # noqa: BLE001
            self._handle_inference_error(
                job=job,
                message=f"{type(error).__name__}: {error}",
                status_code=None,
                transient_hint=False,
                summary=summary,
            )
            return
        finally:
            guard.cancel()

        if self.queue.complete_job(job_id=job.job_id, text=text):
            summary.succeeded = 1
            logger.info("Job %s completed.", job.job_id)

    def _handle_timeout(self, *, job: JobView, summary: WorkerRunSummary) -> None:
        error_summary = (
            f"Hard timeout hit after {job.timeout_seconds:g}s; aborted inference request."
        )
        if self.queue.fail_job(
            job_id=job.job_id,
            failure_class=FailureClass.TIMEOUT,
            error_summary=error_summary,
            details={"timeout_seconds": job.timeout_seconds},
        ):
            summary.failed = 1
            summary.timeouts = 1
        logger.error("Job %s failed: %s", job.job_id, error_summary)

    def _handle_inference_error(
        self,
        *,
        job: JobView,
        message: str,
        status_code: int | None,
        transient_hint: bool,
        summary: WorkerRunSummary,
    ) -> None:
        classification = classify_inference_failure(
            message=message,
            status_code=status_code,
            transient_hint=transient_hint,
        )
        details = classification.to_event_details(model=job.model)
        outcome = self._handle_retry_or_fail(
            job=job,
            error_summary=f"{classification.reason_code}: {message}",
            retryable=classification.retryable,
            details=details,
        )
        if outcome.retried:
            summary.retried = 1
            logger.warning(
                "Job %s attempt %d failed, retrying: %s",
                job.job_id,
                job.attempt,
                message,
            )
        elif outcome.failed:
            summary.failed = 1
            logger.error("Job %s failed: %s", job.job_id, message)

    def _handle_retry_or_fail(
        self,
        *,
        job: JobView,
        error_summary: str,
        retryable: bool,
        details: dict[str, object],
    ) -> RetryOutcome:
        if retryable and job.attempt < job.max_attempts:
            retried = self.queue.requeue_job(
                job_id=job.job_id,
                error_summary=error_summary,
                delay_seconds=self._compute_retry_delay(retry_number=job.attempt),
                details=details,
            )
            return RetryOutcome(retried=retried, failed=False)

        failed = self.queue.fail_job(
            job_id=job.job_id,
            failure_class=FailureClass.TRANSIENT,
            error_summary=error_summary,
            details=details,
        )
        return RetryOutcome(retried=False, failed=failed)

    def _compute_retry_delay(self, *, retry_number: int) -> float:
        max_delay = min(
            self.retry_max_seconds,
            self.retry_base_seconds * (2 ** max(retry_number - 1, 0)),
        )
        return self._random.uniform(0, max_delay)
