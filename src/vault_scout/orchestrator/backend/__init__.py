"""Inference backend implementations."""

from vault_scout.orchestrator.backend.base import (
    InferenceBackend,
    InferenceError,
    InferenceRequest,
)
from vault_scout.orchestrator.backend.echo_backend import EchoBackend
from vault_scout.orchestrator.backend.litellm_backend import LiteLlmBackend

__all__ = [
    "EchoBackend",
    "InferenceBackend",
    "InferenceError",
    "InferenceRequest",
    "LiteLlmBackend",
]
