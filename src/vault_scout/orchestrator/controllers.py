"""Controllers for job queue CLI commands."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from vault_scout.config import Settings
from vault_scout.orchestrator.backend import InferenceBackend
from vault_scout.orchestrator.models import JobCreate, JobFailure, JobView
from vault_scout.orchestrator.session import EmbeddedRuntime

DEMO_TIMEOUT_SECONDS = 60.0


@dataclass(slots=True, frozen=True)
class DemoJob:
    name: str
    prompt: str
    source: str
    priority: int


DEMO_JOBS = (
    DemoJob(
        name="openwebui-priority",
        prompt="Summarize daily news for dashboard",
        source="openwebui",
        priority=1,
    ),
    DemoJob(name="n8n-low", prompt="Generate product taglines", source="n8n", priority=5),
    DemoJob(name="n8n-low", prompt="Translate support snippets", source="n8n", priority=5),
)


@dataclass(slots=True)
class LlmSeedDemoCommand:
    """CLI input for the demo priority mix."""

    model: str | None = None
    timeout_seconds: float = DEMO_TIMEOUT_SECONDS
    dry_run: bool = False


class OrchestratorCliController:
    """Coordinates queue and worker CLI operations."""

    def __init__(self, *, backend: InferenceBackend | None = None) -> None:
        self._backend = backend

    def seed_demo(self, command: LlmSeedDemoCommand) -> list[str]:
        settings = Settings.from_env()
        settings.validate()
        return asyncio.run(self._seed_demo(command, settings))

    async def _seed_demo(self, command: LlmSeedDemoCommand, settings: Settings) -> list[str]:
        runtime = EmbeddedRuntime.from_settings(
            settings,
            dry_run=command.dry_run,
            backend=self._backend,
        )
        model = command.model or settings.inference.default_model
        lines = ["Seeded demo jobs (Open WebUI high priority, n8n lower)."]
        # All demo jobs are queued before the worker claims the first one.
        handles = [
            runtime.queue.submit(
                JobCreate(
                    prompt=job.prompt,
                    model=model,
                    priority=job.priority,
                    timeout_seconds=command.timeout_seconds,
                    source=job.source,
                    name=job.name,
                ),
            )
            for job in DEMO_JOBS
        ]
        runtime.start()
        try:
            for handle in handles:
                await handle.outcome()
            jobs = [runtime.queue.get_job(handle.job_id) for handle in handles]
            finished = sorted(
                (job for job in jobs if job is not None),
                key=lambda job: job.started_at or job.submitted_at,
            )
            lines.append("Processing order:")
            lines.extend(_format_job(job) for job in finished)
            for handle in handles:
                outcome = await handle.outcome()
                if isinstance(outcome, JobFailure):
                    lines.append(
                        f"{handle.job_id}: {outcome.failure_class.value}: {outcome.message}",
                    )
                else:
                    lines.append(f"{handle.job_id}: {outcome.text}")
            stats = runtime.queue.stats()
            lines.append(
                "Queue stats: " + " ".join(f"{status}={count}" for status, count in stats.items()),
            )
        finally:
            await runtime.aclose()
        return lines


def _format_job(job: JobView) -> str:
    return (
        f"- {job.job_id} name={job.name} source={job.source} priority={job.priority} "
        f"status={job.status.value} attempt={job.attempt}/{job.max_attempts}"
    )
