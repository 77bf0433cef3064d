"""Prompt templates for hierarchical vault summarization."""

from __future__ import annotations

NOTE_SUMMARY_PROMPT = """\
You are summarizing an Obsidian note. Write EXACTLY {sentences} sentences. \
Use the provided language. Avoid filler or hype words; focus on concise, specific details.

Note content:
\"\"\"
{content}
\"\"\"

Respond with plain text only, {sentences} sentences."""

FOLDER_SUMMARY_PROMPT = """\
You are summarizing a folder in an Obsidian vault.
Folder name: {name}
Write {sentences} sentences that summarize the key ideas.
Use ONLY the child summaries below (do not hallucinate). \
Avoid filler or hype words; keep it concise but include specific details.

Child summaries:
{bullets}

Respond with plain text only, {sentences} sentences."""


def make_note_prompt(content: str, sentences: int) -> str:
    return NOTE_SUMMARY_PROMPT.format(content=content, sentences=sentences)


def make_folder_prompt(child_summaries: list[str], sentences: int, name: str) -> str:
    bullets = "\n".join(f"- {summary}" for summary in child_summaries)
    return FOLDER_SUMMARY_PROMPT.format(name=name, sentences=sentences, bullets=bullets)
