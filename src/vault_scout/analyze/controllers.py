"""CLI controller for markdown block analysis."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from vault_scout.analyze.analyzer import (
    AnalyzedBlock,
    MarkdownBlockAnalyzer,
    read_markdown_blocks,
    write_blocks_csv,
)
from vault_scout.config import Settings
from vault_scout.orchestrator.backend import InferenceBackend
from vault_scout.orchestrator.session import EmbeddedRuntime

ANALYZE_SOURCE = "obsidian-analyzer"


@dataclass(slots=True)
class AnalyzeCommand:
    """CLI input for one markdown analysis run."""

    markdown_file: Path
    output_csv: Path
    model: str | None = None
    dry_run: bool = False


class AnalyzeCliController:
    """Splits a markdown file into blocks and writes one analyzed CSV row per block."""

    def __init__(self, *, backend: InferenceBackend | None = None) -> None:
        self._backend = backend

    def analyze(
        self,
        command: AnalyzeCommand,
        *,
        on_progress: Callable[[str], None] | None = None,
    ) -> list[str]:
        settings = Settings.from_env()
        settings.validate()
        blocks = read_markdown_blocks(command.markdown_file)
        if not blocks:
            return [f"No text blocks found in {command.markdown_file}; nothing to analyze."]

        rows, analyzer = asyncio.run(self._run(command, settings, blocks, on_progress))
        write_blocks_csv(rows, command.output_csv)
        return [
            f"Split into {len(blocks)} text block(s)",
            f"Analyzed {len(rows)} block(s): {analyzer.failed_blocks} failed,"
            f" {analyzer.malformed_blocks} unparseable",
            f"Wrote {len(rows)} row(s) to {command.output_csv}",
        ]

    async def _run(
        self,
        command: AnalyzeCommand,
        settings: Settings,
        blocks: list[str],
        on_progress: Callable[[str], None] | None,
    ) -> tuple[list[AnalyzedBlock], MarkdownBlockAnalyzer]:
        runtime = EmbeddedRuntime.from_settings(
            settings,
            dry_run=command.dry_run,
            backend=self._backend,
        )
        runtime.start()
        session = runtime.session(
            source=ANALYZE_SOURCE,
            model=command.model or settings.inference.default_model,
        ).open()
        try:
            analyzer = MarkdownBlockAnalyzer(
                session,
                settings=settings.analyze,
                on_progress=on_progress,
            )
            rows = await analyzer.analyze(blocks)
            return rows, analyzer
        finally:
            await session.close()
            await runtime.aclose()
