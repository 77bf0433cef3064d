"""Build-once, read-only lookup index over a vault directory."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from types import MappingProxyType

from vault_scout.vault.tree import NOTE_SUFFIX, is_hidden, is_note_file, join_rel


class VaultFileKind(str, Enum):
    NOTE = "note"
    FOLDER = "folder"


@dataclass(slots=True, frozen=True)
class VaultFile:
    """One indexed note or folder."""

    name: str
    rel_path: str
    abs_path: Path
    kind: VaultFileKind

    @property
    def is_note(self) -> bool:
        return self.kind == VaultFileKind.NOTE

    @property
    def is_folder(self) -> bool:
        return self.kind == VaultFileKind.FOLDER

    @property
    def depth(self) -> int:
        return len(self.rel_path.split("/"))


@dataclass(slots=True, frozen=True)
class VaultIndex:
    """Snapshot of a vault taken by one full recursive scan.

    Never mutated after construction, so any number of concurrent readers
    may share it.
    """

    root: Path
    files: Mapping[str, VaultFile]
    notes_by_name: Mapping[str, tuple[VaultFile, ...]]
    folders_by_path: Mapping[str, VaultFile]
    children_by_folder: Mapping[str, tuple[VaultFile, ...]]

    def list_children(self, folder_rel_path: str) -> tuple[VaultFile, ...]:
        """Direct children of a folder; the vault root is ``""``."""

        return self.children_by_folder.get(folder_rel_path, ())

    def resolve_note_link(self, note_link: str) -> Path | None:
        """Resolve a ``[[link]]`` target to a note path.

        When several notes share the name, the deepest path wins; equal depths
        keep scan order.
        """

        note_name = note_link if note_link.endswith(NOTE_SUFFIX) else f"{note_link}{NOTE_SUFFIX}"
        matches = self.notes_by_name.get(note_name)
        if not matches:
            return None
        deepest = sorted(matches, key=lambda item: item.depth, reverse=True)[0]
        return deepest.abs_path


def build_vault_index(vault_root: Path) -> VaultIndex:
    """Recursively scan the vault and build lookup tables."""

    files: dict[str, VaultFile] = {}
    notes_by_name: dict[str, list[VaultFile]] = {}
    folders_by_path: dict[str, VaultFile] = {}
    children_by_folder: dict[str, list[VaultFile]] = {"": []}

    def scan(directory: Path, base_rel: str) -> None:
        for entry in sorted(directory.iterdir(), key=lambda item: item.name):
            if is_hidden(entry.name):
                continue
            rel_path = join_rel(base_rel, entry.name)
            if entry.is_dir():
                folder = VaultFile(
                    name=entry.name,
                    rel_path=rel_path,
                    abs_path=entry,
                    kind=VaultFileKind.FOLDER,
                )
                files[rel_path] = folder
                folders_by_path[rel_path] = folder
                children_by_folder[base_rel].append(folder)
                children_by_folder[rel_path] = []
                scan(entry, rel_path)
            elif is_note_file(entry):
                note = VaultFile(
                    name=entry.name,
                    rel_path=rel_path,
                    abs_path=entry,
                    kind=VaultFileKind.NOTE,
                )
                files[rel_path] = note
                notes_by_name.setdefault(entry.name, []).append(note)
                children_by_folder[base_rel].append(note)

    scan(vault_root, "")
    return VaultIndex(
        root=vault_root,
        files=MappingProxyType(files),
        notes_by_name=MappingProxyType(
            {name: tuple(entries) for name, entries in notes_by_name.items()},
        ),
        folders_by_path=MappingProxyType(folders_by_path),
        children_by_folder=MappingProxyType(
            {path: tuple(entries) for path, entries in children_by_folder.items()},
        ),
    )


def read_note(file: VaultFile) -> str:
    """Read note content; undecodable bytes become replacement characters."""

    return file.abs_path.read_text("utf-8", errors="replace")
