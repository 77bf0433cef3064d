"""CLI controller for vault search."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from vault_scout.config import Settings
from vault_scout.orchestrator.backend import InferenceBackend
from vault_scout.orchestrator.session import EmbeddedRuntime
from vault_scout.search.agent import SearchOutcome, VaultSearchAgent
from vault_scout.search.evaluator import RelevanceEvaluator
from vault_scout.vault.index import build_vault_index

SEARCH_SOURCE = "vault-search"
_RULE = "=" * 70


@dataclass(slots=True)
class SearchCommand:
    """CLI input for one vault search."""

    query: str
    vault_root: Path
    max_depth: int | None = None
    max_results: int | None = None
    model: str | None = None
    dry_run: bool = False


class SearchCliController:
    """Runs a search on an embedded queue and renders the ranked results."""

    def __init__(self, *, backend: InferenceBackend | None = None) -> None:
        self._backend = backend

    def search(
        self,
        command: SearchCommand,
        *,
        on_progress: Callable[[str], None] | None = None,
    ) -> list[str]:
        settings = Settings.from_env()
        if command.max_depth is not None:
            settings.search.max_depth = command.max_depth
        if command.max_results is not None:
            settings.search.max_results = command.max_results
        settings.validate()
        if not command.vault_root.is_dir():
            raise ValueError(f"Vault root is not a directory: {command.vault_root}")

        outcome = asyncio.run(self._run(command, settings, on_progress))
        return render_search_outcome(command, outcome)

    async def _run(
        self,
        command: SearchCommand,
        settings: Settings,
        on_progress: Callable[[str], None] | None,
    ) -> SearchOutcome:
        index = await asyncio.to_thread(build_vault_index, command.vault_root)
        runtime = EmbeddedRuntime.from_settings(
            settings,
            dry_run=command.dry_run,
            backend=self._backend,
        )
        runtime.start()
        session = runtime.session(
            source=SEARCH_SOURCE,
            model=command.model or settings.inference.default_model,
        ).open()
        try:
            agent = VaultSearchAgent(
                index,
                RelevanceEvaluator(session, settings=settings.search),
                on_progress=on_progress,
            )
            return await agent.search(
                command.query,
                max_depth=settings.search.max_depth,
                max_results=settings.search.max_results,
            )
        finally:
            await session.close()
            await runtime.aclose()


def render_search_outcome(command: SearchCommand, outcome: SearchOutcome) -> list[str]:
    lines = [
        _RULE,
        "FINAL RESULTS",
        _RULE,
        f"Explored {len(outcome.explored_paths)} folder(s); "
        f"total: {len(outcome.results)} result(s) found",
    ]
    if not outcome.results:
        lines.extend(
            [
                "",
                "No relevant results found. Try:",
                "  - Adjusting your search query",
                "  - Increasing max depth",
                f"  - Checking vault path: {command.vault_root}",
            ],
        )
        return lines

    for position, result in enumerate(outcome.results, start=1):
        lines.extend(
            [
                "",
                f"{position}. {result.title}",
                f"   Path: {result.path}",
                f"   Relevance: {result.relevance:.0%}",
                f'   Excerpt: "{result.excerpt}"',
            ],
        )
    return lines
