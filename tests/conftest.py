"""Shared test fixtures."""

from __future__ import annotations

import pytest


@pytest.fixture()
def clean_env(monkeypatch):
    """Drop every environment variable that feeds ``Settings.from_env``."""

    for name in (
        "VAULT_SCOUT_LLM_BASE_URL",
        "VAULT_SCOUT_LLM_API_KEY",
        "VAULT_SCOUT_MODEL",
        "VAULT_SCOUT_LLM_CONNECT_TIMEOUT_SECONDS",
        "VAULT_SCOUT_HARD_TIMEOUT_SECONDS",
        "VAULT_SCOUT_MAX_ATTEMPTS",
        "VAULT_SCOUT_RETAIN_FINISHED",
        "VAULT_SCOUT_RETRY_BASE_SECONDS",
        "VAULT_SCOUT_RETRY_MAX_SECONDS",
        "VAULT_SCOUT_NOTE_SENTENCES",
        "VAULT_SCOUT_FOLDER_SENTENCES",
        "VAULT_SCOUT_ROOT_SENTENCES",
        "VAULT_SCOUT_SEARCH_MAX_DEPTH",
        "VAULT_SCOUT_SEARCH_MAX_RESULTS",
        "VAULT_SCOUT_SEARCH_TIMEOUT_SECONDS",
        "VAULT_SCOUT_ANALYZE_TIMEOUT_SECONDS",
        "LITELLM_BASE_URL",
        "LITELLM_API_KEY",
        "NOTE_SENTENCES",
        "FOLDER_SENTENCES",
        "ROOT_SENTENCES",
    ):
        monkeypatch.delenv(name, raising=False)
