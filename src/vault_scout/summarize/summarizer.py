"""Bottom-up summarization of a vault tree through the job queue."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from vault_scout.config import SummarizeSettings
from vault_scout.orchestrator.errors import JobError
from vault_scout.orchestrator.queue import JobHandle
from vault_scout.orchestrator.session import JobSession
from vault_scout.summarize.prompts import make_folder_prompt, make_note_prompt
from vault_scout.vault.tree import (
    FolderNode,
    NoteNode,
    iter_folders_post_order,
    iter_notes,
)

logger = logging.getLogger(__name__)

NOTE_JOB_NAME = "hierarchy-note-summary"
FOLDER_JOB_NAME = "hierarchy-folder-summary"


@dataclass(slots=True)
class SummarizeReport:
    """Counters for one summarization run."""

    notes_total: int = 0
    notes_summarized: int = 0
    notes_failed: int = 0
    folders_total: int = 0
    folders_summarized: int = 0
    folders_failed: int = 0
    folders_skipped: int = 0


def folder_children_summaries(folder: FolderNode) -> list[str]:
    """Summaries of direct children that already have one, in child order."""

    parts: list[str] = []
    for child in folder.children:
        if not child.summary:
            continue
        if isinstance(child, NoteNode):
            parts.append(f"{child.name}: {child.summary}")
        else:
            parts.append(f"{child.name} (folder): {child.summary}")
    return parts


class TreeSummarizer:
    """Summarize notes first, then folders from their children's summaries.

    A failed or timed-out job leaves that node without a summary; its parent
    is then summarized from whatever evidence remains, or skipped when none
    does. Nothing short of a setup error aborts the run.
    """

    def __init__(
        self,
        session: JobSession,
        *,
        settings: SummarizeSettings,
        on_progress: Callable[[str], None] | None = None,
    ) -> None:
        self._session = session
        self._settings = settings
        self._on_progress = on_progress or (lambda _msg: None)

    async def summarize(self, tree: FolderNode) -> SummarizeReport:
        report = SummarizeReport()
        await self.summarize_notes(tree, report)
        await self.summarize_folders_bottom_up(tree, report)
        return report

    async def summarize_notes(self, tree: FolderNode, report: SummarizeReport) -> None:
        notes = list(iter_notes(tree))
        report.notes_total = len(notes)
        self._emit(f"Enqueueing {len(notes)} note summaries...")
        sentences = self._settings.note_sentences
        submitted = [
            (
                note,
                self._session.submit(
                    make_note_prompt(note.body, sentences),
                    priority=self._settings.note_priority,
                    timeout_seconds=self._settings.note_timeout_seconds,
                    name=NOTE_JOB_NAME,
                ),
            )
            for note in notes
        ]
        log_every = max(1, len(notes) // 10)
        finished = 0

        async def _collect(note: NoteNode, handle: JobHandle) -> None:
            nonlocal finished
            try:
                note.summary = await handle.result()
            except JobError as error:
                report.notes_failed += 1
                logger.warning("Note summary failed for %s: %s", note.rel_path, error.message)
            else:
                report.notes_summarized += 1
            finished += 1
            if finished % log_every == 0 or finished == len(notes):
                self._emit(f"Notes summarized: {finished}/{len(notes)} (last: {note.rel_path})")

        await asyncio.gather(*(_collect(note, handle) for note, handle in submitted))

    async def summarize_folders_bottom_up(
        self,
        tree: FolderNode,
        report: SummarizeReport,
    ) -> None:
        report.folders_total = sum(1 for _ in iter_folders_post_order(tree))
        log_every = max(1, report.folders_total // 10)
        finished = 0

        async def _visit(folder: FolderNode) -> None:
            nonlocal finished
            await asyncio.gather(
                *(_visit(child) for child in folder.children if isinstance(child, FolderNode)),
            )
            await _summarize_folder(folder)
            finished += 1
            if finished % log_every == 0 or finished == report.folders_total:
                self._emit(
                    f"Folders done: {finished}/{report.folders_total} "
                    f"(summarized: {report.folders_summarized}, "
                    f"last: {folder.rel_path or 'root'})",
                )

        async def _summarize_folder(folder: FolderNode) -> None:
            child_summaries = folder_children_summaries(folder)
            if not child_summaries:
                report.folders_skipped += 1
                return
            sentences = (
                self._settings.root_sentences
                if folder.is_root
                else self._settings.folder_sentences
            )
            try:
                folder.summary = await self._session.complete(
                    make_folder_prompt(child_summaries, sentences, folder.name),
                    priority=self._settings.folder_priority,
                    timeout_seconds=self._settings.folder_timeout_seconds,
                    name=FOLDER_JOB_NAME,
                )
            except JobError as error:
                report.folders_failed += 1
                logger.warning(
                    "Folder summary failed for %s: %s",
                    folder.rel_path or "root",
                    error.message,
                )
                return
            report.folders_summarized += 1

        await _visit(tree)

    def _emit(self, msg: str) -> None:
        logger.info(msg)
        self._on_progress(msg)
