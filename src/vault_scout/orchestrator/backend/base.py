"""Backend interface for inference calls made by the worker."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


class InferenceError(RuntimeError):
    """Inference call failed with a retryability hint."""

    def __init__(
        self,
        message: str,
        *,
        transient: bool,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.transient = transient
        self.status_code = status_code


@dataclass(slots=True, frozen=True)
class InferenceRequest:
    """Inputs required for one text-generation call."""

    prompt: str
    model: str


class InferenceBackend(Protocol):
    """Protocol implemented by inference backends.

    Deadlines are enforced by the caller cancelling the awaiting task, so
    implementations must not swallow ``asyncio.CancelledError``.
    """

    async def infer(self, request: InferenceRequest) -> str:
        """Run one prompt and return the generated text."""

    async def aclose(self) -> None:
        """Release network resources."""
