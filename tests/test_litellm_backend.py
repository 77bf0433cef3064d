from __future__ import annotations

import json

import allure
import httpx
import pytest

from vault_scout.orchestrator.backend import InferenceError, InferenceRequest, LiteLlmBackend

pytestmark = [
    allure.epic("LLM Runtime"),
    allure.feature("Inference Backend"),
]


def _backend(handler, **kwargs) -> LiteLlmBackend:
    return LiteLlmBackend(
        base_url="http://litellm.test/",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


async def test_posts_chat_completion_and_returns_message_content() -> None:
    seen: list[httpx.Request] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={"choices": [{"message": {"role": "assistant", "content": "Two sentences."}}]},
        )

    backend = _backend(_handler, api_key="sk-test")
    try:
        text = await backend.infer(InferenceRequest(prompt="Summarize", model="gpt-oss:20b"))
    finally:
        await backend.aclose()

    assert text == "Two sentences."
    request = seen[0]
    assert request.url == httpx.URL("http://litellm.test/v1/chat/completions")
    assert request.headers["Authorization"] == "Bearer sk-test"
    assert json.loads(request.content) == {
        "model": "gpt-oss:20b",
        "messages": [{"role": "user", "content": "Summarize"}],
        "stream": False,
    }


async def test_unexpected_body_falls_back_to_raw_text() -> None:
    backend = _backend(lambda _request: httpx.Response(200, text="plain answer"))
    try:
        text = await backend.infer(InferenceRequest(prompt="p", model="m"))
    finally:
        await backend.aclose()

    assert text == "plain answer"


@pytest.mark.parametrize(("status_code", "transient"), [(500, True), (503, True), (401, False)])
async def test_error_status_raises_inference_error(status_code: int, transient: bool) -> None:
    backend = _backend(lambda _request: httpx.Response(status_code, text="upstream says no"))
    try:
        with pytest.raises(InferenceError, match=f"LiteLLM error: {status_code}") as excinfo:
            await backend.infer(InferenceRequest(prompt="p", model="m"))
    finally:
        await backend.aclose()

    assert excinfo.value.status_code == status_code
    assert excinfo.value.transient is transient


async def test_transport_error_is_transient() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    backend = _backend(_handler)
    try:
        with pytest.raises(InferenceError, match="LiteLLM request failed") as excinfo:
            await backend.infer(InferenceRequest(prompt="p", model="m"))
    finally:
        await backend.aclose()

    assert excinfo.value.transient
    assert excinfo.value.status_code is None
