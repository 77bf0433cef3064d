"""HTTP backend for an OpenAI-compatible chat completions endpoint."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from vault_scout.orchestrator.backend.base import InferenceError, InferenceRequest

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:4000"
DEFAULT_CONNECT_TIMEOUT_SECONDS = 10.0
_ERROR_BODY_PREVIEW_CHARS = 500


class LiteLlmBackend:
    """Send prompts to a LiteLLM proxy (or any OpenAI-compatible server).

    No read timeout is configured here: the worker's deadline guard is the
    single authority on how long a call may run.
    """

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        api_key: str | None = None,
        connect_timeout_seconds: float = DEFAULT_CONNECT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        headers = {"content-type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=httpx.Timeout(None, connect=connect_timeout_seconds),
            transport=transport,
        )

    async def infer(self, request: InferenceRequest) -> str:
        payload = {
            "model": request.model,
            "messages": [{"role": "user", "content": request.prompt}],
            "stream": False,
        }
        try:
            response = await self._client.post("/v1/chat/completions", json=payload)
        except httpx.HTTPError as exc:
            logger.warning("HTTP error calling %s: %s", self.base_url, exc)
            raise InferenceError(f"LiteLLM request failed: {exc}", transient=True) from exc

        if not response.is_success:
            body = response.text[:_ERROR_BODY_PREVIEW_CHARS]
            raise InferenceError(
                f"LiteLLM error: {response.status_code} {body}",
                transient=response.status_code >= 500,
                status_code=response.status_code,
            )
        return _extract_content(response)

    async def aclose(self) -> None:
        await self._client.aclose()


def _extract_content(response: httpx.Response) -> str:
    try:
        data: Any = response.json()
    except ValueError:
        return response.text
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return response.text
    if not isinstance(content, str):
        return response.text
    return content
