"""Relevance-guided recursive search over a vault index."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import PurePosixPath

from vault_scout.search.evaluator import RelevanceEvaluator
from vault_scout.search.models import RelevanceJudgment, SearchContext, SearchResult
from vault_scout.vault.index import VaultFile, VaultIndex, read_note

logger = logging.getLogger(__name__)

ROOT_FOLDER_NAME = "ROOT"


@dataclass(slots=True, frozen=True)
class SearchOutcome:
    """Ranked results plus what the traversal touched."""

    results: tuple[SearchResult, ...]
    explored_paths: frozenset[str]
    explored_order: tuple[str, ...]
    total_found: int


def note_title(file: VaultFile) -> str:
    return PurePosixPath(file.name).stem


def rank_results(results: list[SearchResult], max_results: int) -> tuple[SearchResult, ...]:
    """Sort by relevance descending, keep discovery order on ties, truncate."""

    ranked = sorted(results, key=lambda result: result.relevance, reverse=True)
    return tuple(ranked[:max_results])


class VaultSearchAgent:
    """Walk the vault top-down, letting the model prune branches.

    Notes inside one folder are judged concurrently; subfolders are explored
    one after another because they share the depth counter.
    """

    def __init__(
        self,
        index: VaultIndex,
        evaluator: RelevanceEvaluator,
        *,
        on_progress: Callable[[str], None] | None = None,
    ) -> None:
        self._index = index
        self._evaluator = evaluator
        self._on_progress = on_progress or (lambda _msg: None)

    async def search(self, query: str, *, max_depth: int, max_results: int) -> SearchOutcome:
        context = SearchContext(query=query, max_depth=max_depth)
        self._emit(
            f"Searching for {query!r} (max depth {max_depth}, max results {max_results}); "
            f"index has {len(self._index.files)} files, {len(self._index.folders_by_path)} folders",
        )
        await self.explore_folder("", context)
        results = rank_results(context.found_results, max_results)
        self._emit(
            f"Search complete: explored {len(context.explored_paths)} folder(s), "
            f"found {len(context.found_results)} result(s)",
        )
        return SearchOutcome(
            results=results,
            explored_paths=frozenset(context.explored_paths),
            explored_order=tuple(context.explored_order),
            total_found=len(context.found_results),
        )

    async def explore_folder(self, folder_rel_path: str, context: SearchContext) -> None:
        label = folder_rel_path or "root"
        async with context.lock:
            if folder_rel_path in context.explored_paths:
                logger.debug("Already explored: %s", label)
                return
            if context.current_depth > context.max_depth:
                logger.debug("Max depth %d reached at %s", context.max_depth, label)
                return
            context.explored_paths.add(folder_rel_path)
            context.explored_order.append(folder_rel_path)
            context.current_depth += 1
        try:
            await self._explore_children(folder_rel_path, context)
        finally:
            async with context.lock:
                context.current_depth -= 1

    async def _explore_children(self, folder_rel_path: str, context: SearchContext) -> None:
        children = self._index.list_children(folder_rel_path)
        notes = [child for child in children if child.is_note]
        folders = [child for child in children if child.is_folder]
        self._emit(
            f"[depth {context.current_depth}] {folder_rel_path or ROOT_FOLDER_NAME}: "
            f"{len(notes)} note(s), {len(folders)} folder(s)",
        )
        if not children:
            return

        judgments = await asyncio.gather(
            *(self._evaluate_note(note, context.query) for note in notes),
        )
        matched = 0
        async with context.lock:
            for note, judgment in zip(notes, judgments, strict=True):
                if not (judgment.relevant and judgment.excerpt):
                    continue
                matched += 1
                context.found_results.append(
                    SearchResult(
                        path=note.rel_path,
                        title=note_title(note),
                        relevance=judgment.confidence,
                        excerpt=judgment.excerpt,
                        confidence=judgment.confidence,
                    ),
                )
        if notes:
            logger.info(
                "Notes matched in %s: %d/%d",
                folder_rel_path or "root",
                matched,
                len(notes),
            )

        if not folders:
            return
        folder_name = (
            PurePosixPath(folder_rel_path).name if folder_rel_path else ROOT_FOLDER_NAME
        )
        folder_judgment = await self._evaluator.evaluate_folder(
            folder_name,
            [folder.name for folder in folders],
            context.query,
        )
        if not folder_judgment.relevant:
            logger.info(
                "Skipping subfolders of %s: %s",
                folder_rel_path or "root",
                folder_judgment.reason,
            )
            return

        by_name = {folder.name: folder for folder in folders}
        for child_name in folder_judgment.suggested_children:
            child = by_name.get(child_name)
            if child is None:
                logger.warning(
                    "Suggested folder %r not found under %s",
                    child_name,
                    folder_rel_path or "root",
                )
                continue
            await self.explore_folder(child.rel_path, context)

    async def _evaluate_note(self, note: VaultFile, query: str) -> RelevanceJudgment:
        try:
            content = await asyncio.to_thread(read_note, note)
        except OSError as error:
            logger.warning("Could not read %s: %s", note.rel_path, error)
            content = ""
        return await self._evaluator.evaluate_note(note_title(note), content, query)

    def _emit(self, msg: str) -> None:
        logger.info(msg)
        self._on_progress(msg)
