from __future__ import annotations

import allure
import pytest

from vault_scout.orchestrator.failure_classifier import (
    LLM_FAILURE_CLASSIFIER_VERSION,
    classify_inference_failure,
)

pytestmark = [
    allure.epic("LLM Runtime"),
    allure.feature("Routing, Failures, CLI Ops"),
]


def test_classifier_version_is_stable() -> None:
    assert LLM_FAILURE_CLASSIFIER_VERSION == 1


def test_classifier_prefers_auth_over_transient_hint() -> None:
    classified = classify_inference_failure(
        message="Invalid API key provided",
        status_code=None,
        transient_hint=True,
    )
    assert classified.reason_code == "access_or_auth"
    assert classified.matched_pattern == "invalid api key"
    assert not classified.retryable


def test_classifier_maps_auth_status_without_pattern() -> None:
    classified = classify_inference_failure(message="nope", status_code=403, transient_hint=False)
    assert classified.reason_code == "access_or_auth"
    assert classified.matched_rule == "status_code"


def test_classifier_maps_model_unavailable() -> None:
    classified = classify_inference_failure(
        message="LiteLLM error: 400 model not found: gpt-oss:20b",
        status_code=400,
        transient_hint=False,
    )
    assert classified.reason_code == "model_not_available"
    assert not classified.retryable


@pytest.mark.parametrize(
    ("message", "status_code"),
    [
        ("HTTP 429 too many requests", 429),
        ("request timed out at proxy", 408),
        ("Rate limit reached for model", None),
    ],
)
def test_classifier_maps_rate_limits_as_retryable(message: str, status_code: int | None) -> None:
    classified = classify_inference_failure(
        message=message,
        status_code=status_code,
        transient_hint=False,
    )
    assert classified.reason_code == "rate_limit"
    assert classified.retryable


def test_classifier_splits_server_and_client_errors() -> None:
    server = classify_inference_failure(message="bad gateway", status_code=502, transient_hint=True)
    client = classify_inference_failure(
        message="bad request",
        status_code=422,
        transient_hint=False,
    )

    assert server.reason_code == "backend_server_error"
    assert server.retryable
    assert client.reason_code == "backend_rejected_request"
    assert not client.retryable


def test_classifier_treats_network_errors_as_retryable() -> None:
    by_pattern = classify_inference_failure(
        message="LiteLLM request failed: [Errno 111] Connection refused",
        status_code=None,
        transient_hint=False,
    )
    by_hint = classify_inference_failure(
        message="ReadError",
        status_code=None,
        transient_hint=True,
    )

    assert by_pattern.reason_code == "network"
    assert by_pattern.matched_pattern == "connection refused"
    assert by_hint.matched_rule == "transient_hint"
    assert by_hint.retryable


def test_classifier_falls_back_to_non_retryable() -> None:
    classified = classify_inference_failure(
        message="KeyError: 'choices'",
        status_code=None,
        transient_hint=False,
    )
    assert classified.reason_code == "backend_error"
    assert classified.matched_rule == "fallback_non_retryable"
    assert not classified.retryable


def test_event_details_carry_classifier_diagnostics() -> None:
    classified = classify_inference_failure(
        message="connection reset",
        status_code=None,
        transient_hint=True,
    )

    details = classified.to_event_details(model="gpt-oss:20b")

    assert details == {
        "classifier_version": 1,
        "resolved_model": "gpt-oss:20b",
        "reason_code": "network",
        "matched_rule": "generic_transient",
        "matched_pattern": "connection reset",
        "retryable": True,
    }
