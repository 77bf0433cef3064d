"""Ask the model for relevance judgments through the job queue."""

from __future__ import annotations

import logging

from vault_scout.config import SearchSettings
from vault_scout.orchestrator.errors import JobError
from vault_scout.orchestrator.output_parsing import Malformed, parse_json_response
from vault_scout.orchestrator.session import JobSession
from vault_scout.search.models import RelevanceJudgment
from vault_scout.search.prompts import make_folder_evaluation_prompt, make_note_evaluation_prompt

logger = logging.getLogger(__name__)

NOTE_JOB_NAME = "evaluate-note"
FOLDER_JOB_NAME = "evaluate-folder"


class RelevanceEvaluator:
    """Turn prompts into judgments; never raises on job or parse failure."""

    def __init__(self, session: JobSession, *, settings: SearchSettings) -> None:
        self._session = session
        self._settings = settings

    async def evaluate_note(
        self,
        note_title: str,
        note_content: str,
        query: str,
    ) -> RelevanceJudgment:
        """Judge whether one note is relevant to the query."""

        prompt = make_note_evaluation_prompt(
            note_title,
            note_content,
            query,
            max_chars=self._settings.note_excerpt_chars,
        )
        return await self._judge(prompt, name=NOTE_JOB_NAME, subject=note_title)

    async def evaluate_folder(
        self,
        folder_name: str,
        children_names: list[str],
        query: str,
    ) -> RelevanceJudgment:
        """Judge which subfolders of one folder are worth exploring."""

        prompt = make_folder_evaluation_prompt(folder_name, children_names, query)
        return await self._judge(prompt, name=FOLDER_JOB_NAME, subject=folder_name)

    async def _judge(self, prompt: str, *, name: str, subject: str) -> RelevanceJudgment:
        try:
            text = await self._session.complete(
                prompt,
                priority=self._settings.priority,
                timeout_seconds=self._settings.timeout_seconds,
                name=name,
            )
        except JobError as error:
            logger.warning("%s for %r failed: %s", name, subject, error.message)
            return RelevanceJudgment.unavailable(f"{error.failure_class.value}: {error.message}")

        parsed = parse_json_response(text)
        if isinstance(parsed, Malformed):
            logger.warning("Failed to parse %s response (%s): %r", name, parsed.reason, text[:200])
            return RelevanceJudgment.parse_error()
        return RelevanceJudgment.from_payload(parsed.payload)
