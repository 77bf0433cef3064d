"""Split a markdown file into blocks, analyze each through the job queue, write CSV."""

from __future__ import annotations

import asyncio
import csv
import logging
import re
from collections.abc import Callable
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from vault_scout.analyze.prompts import make_analysis_prompt
from vault_scout.config import AnalyzeSettings
from vault_scout.orchestrator.errors import JobError
from vault_scout.orchestrator.output_parsing import Malformed, parse_json_response
from vault_scout.orchestrator.queue import JobHandle
from vault_scout.orchestrator.session import JobSession

logger = logging.getLogger(__name__)

CSV_HEADERS = (
    "block_number",
    "original_text",
    "summary",
    "category",
    "key_topics",
    "entities",
    "sentiment",
    "actionable",
    "tags",
)
_METADATA_KEYS = CSV_HEADERS[2:]
_BLANK_LINES = re.compile(r"\n\s*\n")


@dataclass(slots=True)
class AnalyzedBlock:
    """One CSV row."""

    block_number: int
    original_text: str
    summary: str = ""
    category: str = ""
    key_topics: str = ""
    entities: str = ""
    sentiment: str = ""
    actionable: str = ""
    tags: str = ""

    @classmethod
    def parse_error(cls, block_number: int, original_text: str) -> AnalyzedBlock:
        return cls(
            block_number=block_number,
            original_text=original_text,
            summary="Parse error",
            category="Unknown",
            sentiment="neutral",
            actionable="no",
        )

    @classmethod
    def failed(cls, block_number: int, original_text: str) -> AnalyzedBlock:
        return cls(
            block_number=block_number,
            original_text=original_text,
            summary="Analysis failed",
            category="Error",
            sentiment="neutral",
            actionable="no",
        )

    @classmethod
    def from_payload(
        cls,
        block_number: int,
        original_text: str,
        payload: dict[str, Any],
    ) -> AnalyzedBlock:
        values = {key: _as_cell(payload.get(key)) for key in _METADATA_KEYS}
        return cls(block_number=block_number, original_text=original_text, **values)


def split_markdown_blocks(content: str) -> list[str]:
    """Split on blank lines, dropping empty blocks."""

    normalized = content.replace("\r\n", "\n")
    return [block.strip() for block in _BLANK_LINES.split(normalized) if block.strip()]


def read_markdown_blocks(path: Path) -> list[str]:
    return split_markdown_blocks(path.read_text("utf-8"))


def write_blocks_csv(blocks: list[AnalyzedBlock], output_path: Path) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=list(CSV_HEADERS))
        writer.writeheader()
        for block in blocks:
            writer.writerow(asdict(block))


class MarkdownBlockAnalyzer:
    """Submit every block at once; rows come back in block order."""

    def __init__(
        self,
        session: JobSession,
        *,
        settings: AnalyzeSettings,
        on_progress: Callable[[str], None] | None = None,
    ) -> None:
        self._session = session
        self._settings = settings
        self._on_progress = on_progress or (lambda _msg: None)
        self.failed_blocks = 0
        self.malformed_blocks = 0

    async def analyze(self, blocks: list[str]) -> list[AnalyzedBlock]:
        self._emit(f"Enqueueing {len(blocks)} analysis jobs...")
        handles = [
            self._session.submit(
                make_analysis_prompt(block),
                priority=self._settings.priority,
                timeout_seconds=self._settings.timeout_seconds,
                name=f"analyze-block-{number}",
            )
            for number, block in enumerate(blocks, start=1)
        ]
        rows = await asyncio.gather(
            *(
                self._collect(number, block, handle)
                for number, (block, handle) in enumerate(zip(blocks, handles, strict=True), 1)
            ),
        )
        return list(rows)

    async def _collect(self, block_number: int, block: str, handle: JobHandle) -> AnalyzedBlock:
        try:
            text = await handle.result()
        except JobError as error:
            logger.warning("Block %d failed: %s", block_number, error.message)
            self.failed_blocks += 1
            return AnalyzedBlock.failed(block_number, block)

        parsed = parse_json_response(text)
        if isinstance(parsed, Malformed):
            logger.warning(
                "Block %d: failed to parse JSON (%s), using defaults",
                block_number,
                parsed.reason,
            )
            self.malformed_blocks += 1
            return AnalyzedBlock.parse_error(block_number, block)
        self._emit(f"Block {block_number} analyzed")
        return AnalyzedBlock.from_payload(block_number, block, parsed.payload)

    def _emit(self, msg: str) -> None:
        logger.info(msg)
        self._on_progress(msg)


def _as_cell(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, list):
        return ", ".join(str(item) for item in value)
    if isinstance(value, bool):
        return "yes" if value else "no"
    return str(value)
