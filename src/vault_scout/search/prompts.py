"""Prompt templates for note and folder relevance judgments."""

from __future__ import annotations

DEFAULT_NOTE_CHARS = 1000
TRUNCATION_MARKER = "\n... [truncated]"

NOTE_EVALUATION_PROMPT = """\
You are evaluating whether a note is relevant to a user's search query.

USER QUERY: "{query}"

NOTE TITLE: "{title}"
NOTE CONTENT (first {shown_chars} chars):
\"\"\"
{content}
\"\"\"

EVALUATION RULES:
1. The note TITLE is very important - if it contains keywords related to the query, \
the note is likely relevant.
2. Be inclusive: mark relevant=true if the note could plausibly relate to the query. \
A false positive is better than a missed note.
3. Consider keywords and related concepts (e.g., "networking" relates to "network", \
"security", "systems").
4. If the title is relevant, mark relevant=true even if the content is sparse.

Respond with JSON only, no markdown:
{{
  "relevant": true|false,
  "confidence": 0.0-1.0,
  "reason": "1-2 sentences explaining your judgment, mentioning key matching terms",
  "excerpt": "if relevant, a short quote (1-3 sentences) from the note that answers or \
relates to the query; if content is sparse, use the title; null if not relevant"
}}"""

FOLDER_EVALUATION_PROMPT = """\
You are deciding which subfolders to explore to answer a search query.

USER QUERY: "{query}"

CURRENT FOLDER: "{folder}"
AVAILABLE SUBFOLDERS:
{children}

Your job: identify which subfolders likely contain information relevant to the query.

Be VERY INCLUSIVE: suggest exploring a subfolder if it could plausibly contain relevant \
information.
- "Professor" queries should explore course/research folders (course titles, module names, \
assignment folders).
- "Networking" queries should explore any course or project related to networks, systems, \
or technical topics.
- When in doubt, suggest exploring - it's better to explore and find nothing than to miss \
relevant content.

Respond with JSON only:
{{
  "relevant": true|false,
  "confidence": 0.0-1.0,
  "reason": "brief explanation of your decision",
  "suggestedExplore": ["subfolder1", "subfolder2"]
}}
List in suggestedExplore the exact subfolder names worth exploring, or [] if none would help."""


def make_note_evaluation_prompt(
    note_title: str,
    note_content: str,
    query: str,
    max_chars: int = DEFAULT_NOTE_CHARS,
) -> str:
    content = note_content
    if len(content) > max_chars:
        content = content[:max_chars] + TRUNCATION_MARKER
    return NOTE_EVALUATION_PROMPT.format(
        query=query,
        title=note_title,
        shown_chars=min(max_chars, len(note_content)),
        content=content,
    )


def make_folder_evaluation_prompt(
    folder_name: str,
    children_names: list[str],
    query: str,
) -> str:
    children = "\n".join(f"  - {name}" for name in children_names)
    return FOLDER_EVALUATION_PROMPT.format(query=query, folder=folder_name, children=children)
