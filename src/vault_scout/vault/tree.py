"""Materialized vault tree: folders and markdown notes."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import frontmatter

logger = logging.getLogger(__name__)

NOTE_SUFFIX = ".md"
ROOT_NAME = "root"


@dataclass(slots=True)
class NoteNode:
    """Leaf of the vault tree."""

    name: str
    abs_path: Path
    rel_path: str
    content: str
    frontmatter: dict[str, Any]
    body: str
    summary: str | None = None


@dataclass(slots=True)
class FolderNode:
    """Branch of the vault tree; children keep directory order."""

    name: str
    abs_path: Path
    rel_path: str
    children: list[FolderNode | NoteNode] = field(default_factory=list)
    summary: str | None = None

    @property
    def is_root(self) -> bool:
        return self.rel_path == ""


TreeNode = FolderNode | NoteNode


def is_hidden(name: str) -> bool:
    return name.startswith(".")


def is_note_file(path: Path) -> bool:
    return path.is_file() and path.name.lower().endswith(NOTE_SUFFIX)


def join_rel(base_rel: str, name: str) -> str:
    return f"{base_rel}/{name}" if base_rel else name


def parse_frontmatter(raw: str) -> tuple[dict[str, Any], str]:
    """Split a note into front matter and body.

    Anything that does not parse degrades to empty metadata and the whole
    text as body.
    """

    try:
        post = frontmatter.loads(raw)
    except Exception as exc:  # noqa: BLE001
        logger.debug("Front matter parse failed: %s", exc)
        return {}, raw.strip()
    return dict(post.metadata), post.content.strip()


def read_vault(root: Path, base_rel: str = "") -> FolderNode:
    """Recursively read a vault directory into a folder tree.

    Hidden entries are skipped and only markdown files become notes.
    """

    children: list[FolderNode | NoteNode] = []
    for entry in sorted(root.iterdir(), key=lambda item: item.name):
        if is_hidden(entry.name):
            continue
        rel = join_rel(base_rel, entry.name)
        if entry.is_dir():
            children.append(read_vault(entry, rel))
        elif is_note_file(entry):
            raw = entry.read_text("utf-8", errors="replace")
            metadata, body = parse_frontmatter(raw)
            children.append(
                NoteNode(
                    name=entry.name,
                    abs_path=entry,
                    rel_path=rel,
                    content=raw,
                    frontmatter=metadata,
                    body=body,
                ),
            )
    return FolderNode(
        name=ROOT_NAME if base_rel == "" else base_rel.rsplit("/", 1)[-1],
        abs_path=root,
        rel_path=base_rel,
        children=children,
    )


def iter_notes(node: TreeNode) -> Iterator[NoteNode]:
    """All notes under ``node`` in depth-first directory order."""

    if isinstance(node, NoteNode):
        yield node
        return
    for child in node.children:
        yield from iter_notes(child)


def iter_folders_post_order(folder: FolderNode) -> Iterator[FolderNode]:
    """Folders with every descendant folder yielded before its ancestor."""

    for child in folder.children:
        if isinstance(child, FolderNode):
            yield from iter_folders_post_order(child)
    yield folder
