"""Caller-owned job sessions and the embedded queue runtime."""

from __future__ import annotations

import logging
from types import TracebackType
from uuid import uuid4

from vault_scout.config import Settings
from vault_scout.orchestrator.backend import EchoBackend, InferenceBackend, LiteLlmBackend
from vault_scout.orchestrator.models import JobCreate
from vault_scout.orchestrator.queue import JobHandle, JobQueue
from vault_scout.orchestrator.worker import QueueWorker

logger = logging.getLogger(__name__)


class JobSession:
    """Explicit subscription to job results, owned by one summarizer or search run.

    Independent sessions can share one queue; closing a session only stops
    it from submitting and forgets its handles, jobs already queued still run.
    """

    def __init__(
        self,
        queue: JobQueue,
        *,
        model: str,
        source: str,
        max_attempts: int | None = None,
    ) -> None:
        self.queue = queue
        self.model = model
        self.source = source
        self.max_attempts = max_attempts
        self._handles: list[JobHandle] = []
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    @property
    def submitted(self) -> int:
        return len(self._handles)

    def open(self) -> JobSession:
        if self._open:
            raise RuntimeError(f"Job session {self.source!r} is already open.")
        self._open = True
        return self

    async def close(self) -> None:
        if not self._open:
            return
        self._open = False
        pending = sum(1 for handle in self._handles if not handle.done())
        if pending:
            logger.warning(
                "Closing job session %r with %d unfinished job(s)",
                self.source,
                pending,
            )
        self._handles.clear()

    async def __aenter__(self) -> JobSession:
        return self.open()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.close()

    def submit(
        self,
        prompt: str,
        *,
        priority: int,
        timeout_seconds: float | None = None,
        name: str = "llm",
        model: str | None = None,
    ) -> JobHandle:
        """Submit one prompt; never waits for the worker."""

        if not self._open:
            raise RuntimeError(f"Job session {self.source!r} is not open.")
        handle = self.queue.submit(
            JobCreate(
                prompt=prompt,
                model=model or self.model,
                priority=priority,
                timeout_seconds=timeout_seconds,
                max_attempts=self.max_attempts,
                source=self.source,
                name=name,
            ),
        )
        self._handles.append(handle)
        return handle

    async def complete(
        self,
        prompt: str,
        *,
        priority: int,
        timeout_seconds: float | None = None,
        name: str = "llm",
    ) -> str:
        """Submit one prompt and wait for its text."""

        handle = self.submit(
            prompt,
            priority=priority,
            timeout_seconds=timeout_seconds,
            name=name,
        )
        return await handle.result()


class EmbeddedRuntime:
    """Job queue, single worker and inference backend living for one run."""

    def __init__(
        self,
        *,
        queue: JobQueue,
        worker: QueueWorker,
        backend: InferenceBackend,
    ) -> None:
        self.queue = queue
        self.worker = worker
        self.backend = backend

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        dry_run: bool = False,
        backend: InferenceBackend | None = None,
    ) -> EmbeddedRuntime:
        if backend is None:
            backend = (
                EchoBackend()
                if dry_run
                else LiteLlmBackend(
                    base_url=settings.inference.base_url,
                    api_key=settings.inference.api_key,
                    connect_timeout_seconds=settings.inference.connect_timeout_seconds,
                )
            )
        queue = JobQueue(
            default_timeout_seconds=settings.queue.default_timeout_seconds,
            default_max_attempts=settings.queue.max_attempts,
            retain_finished=settings.queue.retain_finished,
        )
        worker = QueueWorker(
            queue=queue,
            backend=backend,
            worker_id=f"embedded-{uuid4().hex[:8]}",
            retry_base_seconds=settings.queue.retry_base_seconds,
            retry_max_seconds=settings.queue.retry_max_seconds,
        )
        return cls(queue=queue, worker=worker, backend=backend)

    def session(self, *, source: str, model: str) -> JobSession:
        return JobSession(self.queue, model=model, source=source)

    def start(self) -> None:
        self.worker.start()

    async def aclose(self) -> None:
        await self.worker.stop()
        self.queue.close()
        await self.backend.aclose()

    async def __aenter__(self) -> EmbeddedRuntime:
        self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.aclose()
