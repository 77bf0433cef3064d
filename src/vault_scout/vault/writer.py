"""Write a summarized vault tree back to disk."""

from __future__ import annotations

import logging
from pathlib import Path

import frontmatter

from vault_scout.vault.tree import FolderNode, NoteNode

logger = logging.getLogger(__name__)

NOTE_SUMMARY_KEY = "summary_2s"
FOLDER_SUMMARY_FILE = "_folder_summary.md"
ROOT_SUMMARY_FILE = "_root_summary.md"


def write_summarized_vault(tree: FolderNode, output_root: Path) -> int:
    """Mirror the vault under ``output_root`` with summaries attached.

    Every note is written with its front matter plus the note summary; every
    folder that has a summary gets a summary note of its own. Returns the
    number of files written.
    """

    output_root.mkdir(parents=True, exist_ok=True)
    return _write_folder(tree, output_root)


def _write_folder(folder: FolderNode, output_root: Path) -> int:
    written = 0
    for child in folder.children:
        if isinstance(child, NoteNode):
            write_note_with_summary(output_root, child)
            written += 1
        else:
            written += _write_folder(child, output_root)
    if folder.summary:
        write_folder_summary_note(output_root, folder)
        written += 1
    return written


def write_note_with_summary(output_root: Path, note: NoteNode) -> Path:
    out_path = output_root / note.rel_path
    out_path.parent.mkdir(parents=True, exist_ok=True)
    metadata = {**note.frontmatter, NOTE_SUMMARY_KEY: note.summary or ""}
    post = frontmatter.Post(note.body, **metadata)
    out_path.write_text(f"{frontmatter.dumps(post)}\n", "utf-8")
    return out_path


def write_folder_summary_note(output_root: Path, folder: FolderNode) -> Path:
    file_name = ROOT_SUMMARY_FILE if folder.is_root else FOLDER_SUMMARY_FILE
    out_path = output_root / folder.rel_path / file_name
    out_path.parent.mkdir(parents=True, exist_ok=True)
    header = "# Root Summary" if folder.is_root else f"# Folder Summary: {folder.name}"
    post = frontmatter.Post(f"{header}\n\n{folder.summary or ''}", summary=folder.summary or "")
    out_path.write_text(f"{frontmatter.dumps(post)}\n", "utf-8")
    logger.debug("Wrote %s", out_path)
    return out_path
