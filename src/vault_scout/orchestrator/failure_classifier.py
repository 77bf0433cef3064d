"""Deterministic inference failure classification for worker retry policy."""

from __future__ import annotations

from dataclasses import dataclass

LLM_FAILURE_CLASSIFIER_VERSION = 1

_ACCESS_OR_AUTH_PATTERNS: tuple[str, ...] = (
    "unauthorized",
    "forbidden",
    "permission denied",
    "invalid api key",
    "authentication",
)
_MODEL_NOT_AVAILABLE_PATTERNS: tuple[str, ...] = (
    "model not found",
    "unknown model",
    "unsupported model",
    "invalid model",
    "model is not available",
)
_RATE_LIMIT_PATTERNS: tuple[str, ...] = (
    "too many requests",
    "rate limit",
    "please retry",
    "try again later",
)
_NETWORK_PATTERNS: tuple[str, ...] = (
    "temporarily unavailable",
    "temporary failure",
    "connection reset",
    "connection refused",
    "network error",
    "name or service not known",
    "dns",
)
_AUTH_STATUS_CODES = frozenset({401, 403})
_RATE_LIMIT_STATUS_CODES = frozenset({408, 429})
_HTTP_CLIENT_ERROR_MIN = 400
_HTTP_SERVER_ERROR_MIN = 500


@dataclass(slots=True)
class InferenceFailureClassification:
    """Normalized failure classification result."""

    reason_code: str
    matched_rule: str
    matched_pattern: str | None
    retryable: bool

    def to_event_details(self, *, model: str) -> dict[str, object]:
        """Serialize classifier diagnostics for job events."""

        return {
            "classifier_version": LLM_FAILURE_CLASSIFIER_VERSION,
            "resolved_model": model,
            "reason_code": self.reason_code,
            "matched_rule": self.matched_rule,
            "matched_pattern": self.matched_pattern,
            "retryable": self.retryable,
        }


def classify_inference_failure(
    *,
    message: str,
    status_code: int | None,
    transient_hint: bool,
) -> InferenceFailureClassification:
    """Classify a non-timeout inference failure.

    Every such failure reaches the caller as a transient error; the
    classification only decides whether remaining attempts are worth spending.
    """

    haystack = message.lower()

    pattern = _first_match(haystack, _ACCESS_OR_AUTH_PATTERNS)
    if pattern is not None or status_code in _AUTH_STATUS_CODES:
        return InferenceFailureClassification(
            reason_code="access_or_auth",
            matched_rule="status_code" if pattern is None else "access_or_auth",
            matched_pattern=pattern,
            retryable=False,
        )

    pattern = _first_match(haystack, _MODEL_NOT_AVAILABLE_PATTERNS)
    if pattern is not None:
        return InferenceFailureClassification(
            reason_code="model_not_available",
            matched_rule="model_not_available",
            matched_pattern=pattern,
            retryable=False,
        )

    pattern = _first_match(haystack, _RATE_LIMIT_PATTERNS)
    if pattern is not None or status_code in _RATE_LIMIT_STATUS_CODES:
        return InferenceFailureClassification(
            reason_code="rate_limit",
            matched_rule="status_code" if pattern is None else "rate_limit",
            matched_pattern=pattern,
            retryable=True,
        )

    if status_code is not None and status_code >= _HTTP_SERVER_ERROR_MIN:
        return InferenceFailureClassification(
            reason_code="backend_server_error",
            matched_rule="status_code",
            matched_pattern=None,
            retryable=True,
        )

    if status_code is not None and status_code >= _HTTP_CLIENT_ERROR_MIN:
        return InferenceFailureClassification(
            reason_code="backend_rejected_request",
            matched_rule="status_code",
            matched_pattern=None,
            retryable=False,
        )

    pattern = _first_match(haystack, _NETWORK_PATTERNS)
    if pattern is not None or transient_hint:
        return InferenceFailureClassification(
            reason_code="network",
            matched_rule="generic_transient" if pattern is not None else "transient_hint",
            matched_pattern=pattern,
            retryable=True,
        )

    return InferenceFailureClassification(
        reason_code="backend_error",
        matched_rule="fallback_non_retryable",
        matched_pattern=None,
        retryable=False,
    )


def _first_match(haystack: str, patterns: tuple[str, ...]) -> str | None:
    for pattern in patterns:
        if pattern in haystack:
            return pattern
    return None
