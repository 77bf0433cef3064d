from __future__ import annotations

import asyncio

import allure
import pytest

from vault_scout.orchestrator.errors import JobFatalError
from vault_scout.orchestrator.models import (
    FailureClass,
    JobCreate,
    JobFailure,
    JobStatus,
    JobSuccess,
)
from vault_scout.orchestrator.queue import JobQueue

pytestmark = [
    allure.epic("LLM Runtime"),
    allure.feature("Job Queue"),
]


def _job(prompt: str, *, priority: int = 100, **kwargs) -> JobCreate:
    return JobCreate(prompt=prompt, model="test-model", priority=priority, **kwargs)


async def test_claims_lowest_priority_first_and_fifo_on_ties() -> None:
    queue = JobQueue()
    for prompt, priority in (("a", 5), ("b", 1), ("c", 5), ("d", 3), ("e", 1)):
        queue.submit(_job(prompt, priority=priority))

    claimed = []
    while (job := await queue.claim_next_ready_job(wait=False)) is not None:
        claimed.append(job.prompt)
        queue.complete_job(job_id=job.job_id, text="done")

    assert claimed == ["b", "e", "d", "a", "c"]


async def test_submit_never_waits_for_a_worker() -> None:
    queue = JobQueue()

    handles = [queue.submit(_job(f"prompt {i}")) for i in range(50)]

    assert len({handle.job_id for handle in handles}) == 50
    assert not any(handle.done() for handle in handles)
    assert queue.stats()[JobStatus.QUEUED.value] == 50


async def test_claim_suspends_until_a_job_arrives() -> None:
    queue = JobQueue()
    claim = asyncio.create_task(queue.claim_next_ready_job())
    await asyncio.sleep(0)
    assert not claim.done()

    handle = queue.submit(_job("late"))
    job = await asyncio.wait_for(claim, timeout=1)

    assert job is not None
    assert job.job_id == handle.job_id
    assert job.status == JobStatus.RUNNING
    assert job.attempt == 1


async def test_claim_without_wait_returns_none_on_empty_queue() -> None:
    queue = JobQueue()

    assert await queue.claim_next_ready_job(wait=False) is None


async def test_handle_resolves_with_success_outcome() -> None:
    queue = JobQueue()
    handle = queue.submit(_job("hello"))
    job = await queue.claim_next_ready_job(wait=False)

    assert queue.complete_job(job_id=job.job_id, text="world")

    assert handle.done()
    assert await handle.outcome() == JobSuccess("world")
    assert await handle.result() == "world"
    stored = queue.get_job(handle.job_id)
    assert stored.status == JobStatus.SUCCEEDED
    assert stored.finished_at is not None


async def test_timeout_failure_is_recorded_with_timeout_status() -> None:
    queue = JobQueue()
    handle = queue.submit(_job("slow"))
    job = await queue.claim_next_ready_job(wait=False)

    queue.fail_job(job_id=job.job_id, failure_class=FailureClass.TIMEOUT, error_summary="late")

    outcome = await handle.outcome()
    assert isinstance(outcome, JobFailure)
    assert outcome.failure_class == FailureClass.TIMEOUT
    assert queue.get_job(handle.job_id).status == JobStatus.TIMEOUT


async def test_second_resolution_is_ignored() -> None:
    queue = JobQueue()
    handle = queue.submit(_job("once"))
    job = await queue.claim_next_ready_job(wait=False)

    assert queue.complete_job(job_id=job.job_id, text="first")
    assert not queue.complete_job(job_id=job.job_id, text="second")
    assert not queue.fail_job(
        job_id=job.job_id,
        failure_class=FailureClass.TRANSIENT,
        error_summary="too late",
    )

    assert await handle.result() == "first"


async def test_requeue_puts_job_back_for_another_attempt() -> None:
    queue = JobQueue()
    handle = queue.submit(_job("retry me", max_attempts=2))
    first = await queue.claim_next_ready_job(wait=False)

    assert queue.requeue_job(job_id=first.job_id, error_summary="network: reset")
    second = await queue.claim_next_ready_job(wait=False)

    assert second.job_id == handle.job_id
    assert second.attempt == 2
    with pytest.raises(RuntimeError, match="no attempts left"):
        queue.requeue_job(job_id=second.job_id, error_summary="again")


async def test_queue_default_max_attempts_applies_when_job_leaves_it_unset() -> None:
    queue = JobQueue(default_max_attempts=3)

    default = queue.submit(_job("default"))
    explicit = queue.submit(_job("explicit", max_attempts=1))

    assert queue.get_job(default.job_id).max_attempts == 3
    assert queue.get_job(explicit.job_id).max_attempts == 1


async def test_finished_jobs_are_evicted_but_handles_keep_outcomes() -> None:
    queue = JobQueue(retain_finished=2)
    handles = [queue.submit(_job(f"job {i}")) for i in range(3)]
    for _ in handles:
        job = await queue.claim_next_ready_job(wait=False)
        queue.complete_job(job_id=job.job_id, text=job.prompt.upper())

    assert queue.get_job(handles[0].job_id) is None
    assert queue.get_job(handles[2].job_id) is not None
    assert [await handle.result() for handle in handles] == ["JOB 0", "JOB 1", "JOB 2"]


async def test_close_fails_queued_jobs_and_rejects_new_ones() -> None:
    queue = JobQueue()
    handle = queue.submit(_job("never runs"))

    queue.close()

    assert queue.closed
    with pytest.raises(JobFatalError, match="queue closed"):
        await handle.result()
    assert [event.event_type for event in queue.list_events(handle.job_id)] == [
        "enqueued",
        "abandoned",
    ]
    assert await queue.claim_next_ready_job() is None
    with pytest.raises(RuntimeError, match="closed"):
        queue.submit(_job("too late"))


async def test_events_trace_the_job_lifecycle() -> None:
    queue = JobQueue()
    handle = queue.submit(_job("traced", priority=2, source="vault-search"))
    job = await queue.claim_next_ready_job(wait=False)
    queue.complete_job(job_id=job.job_id, text="ok")

    events = queue.list_events(handle.job_id)

    assert [event.event_type for event in events] == ["enqueued", "claimed", "succeeded"]
    assert events[0].details == {"priority": 2, "source": "vault-search"}
    assert events[-1].status_to == JobStatus.SUCCEEDED


async def test_list_jobs_filters_by_status() -> None:
    queue = JobQueue()
    done = queue.submit(_job("done", priority=1))
    waiting = queue.submit(_job("waiting", priority=2))
    job = await queue.claim_next_ready_job(wait=False)
    queue.complete_job(job_id=job.job_id, text="ok")

    assert [view.job_id for view in queue.list_jobs(status=JobStatus.QUEUED)] == [waiting.job_id]
    assert [view.job_id for view in queue.list_jobs(status=JobStatus.SUCCEEDED)] == [done.job_id]
    assert len(queue.list_jobs()) == 2


def test_rejects_invalid_construction() -> None:
    with pytest.raises(ValueError, match="default_timeout_seconds"):
        JobQueue(default_timeout_seconds=0)
    with pytest.raises(ValueError, match="default_max_attempts"):
        JobQueue(default_max_attempts=0)


async def test_explicit_timeout_is_kept_and_non_positive_is_rejected() -> None:
    queue = JobQueue(default_timeout_seconds=1200)

    short = queue.submit(_job("short", timeout_seconds=0.5))
    default = queue.submit(_job("default"))

    assert queue.get_job(short.job_id).timeout_seconds == 0.5
    assert queue.get_job(default.job_id).timeout_seconds == 1200
    for timeout_seconds in (0, -5):
        with pytest.raises(ValueError, match="timeout_seconds must be > 0"):
            queue.submit(_job("bad", timeout_seconds=timeout_seconds))
    assert len(queue.list_jobs()) == 2
