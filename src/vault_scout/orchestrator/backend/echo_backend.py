"""Deterministic offline backend for dry runs and tests."""

from __future__ import annotations

import asyncio

from vault_scout.orchestrator.backend.base import InferenceRequest

ECHO_PREFIX = "echo"


class EchoBackend:
    """Answer every prompt with a fixed-format echo of its first line."""

    def __init__(self, *, delay_seconds: float = 0.0) -> None:
        self.delay_seconds = delay_seconds
        self.calls: list[InferenceRequest] = []

    async def infer(self, request: InferenceRequest) -> str:
        self.calls.append(request)
        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)
        first_line = request.prompt.strip().splitlines()[0] if request.prompt.strip() else ""
        return f"{ECHO_PREFIX}[{request.model}]: {first_line}"

    async def aclose(self) -> None:
        return None
