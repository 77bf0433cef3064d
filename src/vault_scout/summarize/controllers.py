"""CLI controller for hierarchical vault summarization."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from vault_scout.config import Settings
from vault_scout.orchestrator.backend import InferenceBackend
from vault_scout.orchestrator.session import EmbeddedRuntime
from vault_scout.summarize.summarizer import SummarizeReport, TreeSummarizer
from vault_scout.vault.tree import read_vault
from vault_scout.vault.writer import write_summarized_vault

SUMMARIZE_SOURCE = "hierarchy"


@dataclass(slots=True)
class SummarizeCommand:
    """CLI input for one summarization run."""

    vault_path: Path
    output_path: Path
    note_sentences: int | None = None
    folder_sentences: int | None = None
    root_sentences: int | None = None
    model: str | None = None
    dry_run: bool = False


class SummarizeCliController:
    """Reads a vault, summarizes it bottom-up and writes the mirrored copy."""

    def __init__(self, *, backend: InferenceBackend | None = None) -> None:
        self._backend = backend

    def summarize(
        self,
        command: SummarizeCommand,
        *,
        on_progress: Callable[[str], None] | None = None,
    ) -> list[str]:
        settings = Settings.from_env()
        if command.note_sentences is not None:
            settings.summarize.note_sentences = command.note_sentences
        if command.folder_sentences is not None:
            settings.summarize.folder_sentences = command.folder_sentences
        if command.root_sentences is not None:
            settings.summarize.root_sentences = command.root_sentences
        settings.validate()
        if not command.vault_path.is_dir():
            raise ValueError(f"Vault path is not a directory: {command.vault_path}")

        report, written = asyncio.run(self._run(command, settings, on_progress))
        return [
            f"Notes summarized: {report.notes_summarized}/{report.notes_total}"
            f" (failed: {report.notes_failed})",
            f"Folders summarized: {report.folders_summarized}/{report.folders_total}"
            f" (failed: {report.folders_failed}, skipped: {report.folders_skipped})",
            f"Wrote {written} file(s) to {command.output_path}",
        ]

    async def _run(
        self,
        command: SummarizeCommand,
        settings: Settings,
        on_progress: Callable[[str], None] | None,
    ) -> tuple[SummarizeReport, int]:
        tree = await asyncio.to_thread(read_vault, command.vault_path)
        runtime = EmbeddedRuntime.from_settings(
            settings,
            dry_run=command.dry_run,
            backend=self._backend,
        )
        runtime.start()
        session = runtime.session(
            source=SUMMARIZE_SOURCE,
            model=command.model or settings.inference.default_model,
        ).open()
        try:
            summarizer = TreeSummarizer(
                session,
                settings=settings.summarize,
                on_progress=on_progress,
            )
            report = await summarizer.summarize(tree)
        finally:
            await session.close()
            await runtime.aclose()
        written = await asyncio.to_thread(write_summarized_vault, tree, command.output_path)
        return report, written
