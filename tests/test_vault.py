from __future__ import annotations

from pathlib import Path

import allure
import frontmatter
import pytest

from fakes import write_vault
from vault_scout.vault.index import VaultFileKind, build_vault_index, read_note
from vault_scout.vault.tree import (
    FolderNode,
    NoteNode,
    iter_folders_post_order,
    iter_notes,
    parse_frontmatter,
    read_vault,
)
from vault_scout.vault.writer import (
    FOLDER_SUMMARY_FILE,
    NOTE_SUMMARY_KEY,
    ROOT_SUMMARY_FILE,
    write_summarized_vault,
)

pytestmark = [
    allure.epic("Vault"),
    allure.feature("Reading, Indexing and Writing"),
]


@pytest.fixture()
def vault(tmp_path: Path) -> Path:
    return write_vault(
        tmp_path / "vault",
        {
            "Inbox.md": "---\ntags: [inbox]\n---\nLoose thoughts.",
            "CS101/lecture1.md": "Networking basics: TCP and UDP.",
            "CS101/notes/Readme.MD": "Course readme.",
            "Projects/Readme.md": "Project readme.",
            "Projects/attachment.pdf": "binary",
            ".obsidian/workspace.md": "hidden",
            "CS101/.draft.md": "hidden draft",
        },
    )


def test_read_vault_skips_hidden_entries_and_non_markdown(vault: Path) -> None:
    tree = read_vault(vault)

    assert tree.is_root
    assert tree.rel_path == ""
    assert [note.rel_path for note in iter_notes(tree)] == [
        "CS101/lecture1.md",
        "CS101/notes/Readme.MD",
        "Inbox.md",
        "Projects/Readme.md",
    ]


def test_read_vault_parses_front_matter(vault: Path) -> None:
    tree = read_vault(vault)
    inbox = next(note for note in iter_notes(tree) if note.name == "Inbox.md")

    assert inbox.frontmatter == {"tags": ["inbox"]}
    assert inbox.body == "Loose thoughts."
    assert inbox.content.startswith("---")


def test_folders_iterate_in_post_order(vault: Path) -> None:
    tree = read_vault(vault)

    assert [folder.rel_path for folder in iter_folders_post_order(tree)] == [
        "CS101/notes",
        "CS101",
        "Projects",
        "",
    ]


def test_broken_front_matter_degrades_to_plain_body() -> None:
    raw = "---\ntitle: [unclosed\n---\nBody text\n"

    metadata, body = parse_frontmatter(raw)

    assert metadata == {}
    assert body == raw.strip()


def test_index_lists_direct_children(vault: Path) -> None:
    index = build_vault_index(vault)

    root_children = index.list_children("")
    assert [(child.name, child.kind) for child in root_children] == [
        ("CS101", VaultFileKind.FOLDER),
        ("Inbox.md", VaultFileKind.NOTE),
        ("Projects", VaultFileKind.FOLDER),
    ]
    assert [child.rel_path for child in index.list_children("CS101")] == [
        "CS101/lecture1.md",
        "CS101/notes",
    ]
    assert index.list_children("Missing") == ()
    assert ".obsidian" not in index.folders_by_path
    assert "Projects/attachment.pdf" not in index.files


def test_index_is_read_only(vault: Path) -> None:
    index = build_vault_index(vault)

    with pytest.raises(TypeError):
        index.files["new.md"] = index.files["Inbox.md"]  # type: ignore[index]


def test_resolve_note_link_prefers_deeper_path(tmp_path: Path) -> None:
    vault = write_vault(
        tmp_path,
        {
            "Readme.md": "top",
            "a/Readme.md": "middle",
            "a/b/Readme.md": "deep",
            "z/Readme.md": "other middle",
        },
    )
    index = build_vault_index(vault)

    assert index.resolve_note_link("Readme") == vault / "a" / "b" / "Readme.md"
    assert index.resolve_note_link("Readme.md") == vault / "a" / "b" / "Readme.md"
    assert index.resolve_note_link("Missing") is None
    assert [entry.rel_path for entry in index.notes_by_name["Readme.md"]] == [
        "Readme.md",
        "a/Readme.md",
        "a/b/Readme.md",
        "z/Readme.md",
    ]


def test_read_note_returns_file_content(vault: Path) -> None:
    index = build_vault_index(vault)

    assert read_note(index.files["CS101/lecture1.md"]) == "Networking basics: TCP and UDP."


def test_write_summarized_vault_mirrors_notes_and_folder_summaries(
    vault: Path,
    tmp_path: Path,
) -> None:
    tree = read_vault(vault)
    for note in iter_notes(tree):
        note.summary = f"Summary of {note.name}."
    cs101 = next(child for child in tree.children if child.name == "CS101")
    assert isinstance(cs101, FolderNode)
    cs101.summary = "Course notes."
    tree.summary = "Whole vault."
    output = tmp_path / "out"

    written = write_summarized_vault(tree, output)

    assert written == 6
    inbox = frontmatter.load(output / "Inbox.md")
    assert inbox.metadata == {"tags": ["inbox"], NOTE_SUMMARY_KEY: "Summary of Inbox.md."}
    assert inbox.content == "Loose thoughts."
    folder_note = frontmatter.load(output / "CS101" / FOLDER_SUMMARY_FILE)
    assert folder_note["summary"] == "Course notes."
    assert folder_note.content.startswith("# Folder Summary: CS101")
    root_note = frontmatter.load(output / ROOT_SUMMARY_FILE)
    assert root_note["summary"] == "Whole vault."
    assert not (output / "Projects" / FOLDER_SUMMARY_FILE).exists()


def test_note_without_summary_is_written_with_empty_summary(tmp_path: Path) -> None:
    vault = write_vault(tmp_path / "vault", {"only.md": "text"})
    tree = read_vault(vault)
    note = tree.children[0]
    assert isinstance(note, NoteNode)

    write_summarized_vault(tree, tmp_path / "out")

    assert frontmatter.load(tmp_path / "out" / "only.md")[NOTE_SUMMARY_KEY] == ""


def test_undecodable_bytes_are_replaced_not_fatal(tmp_path: Path) -> None:
    vault = write_vault(tmp_path, {"good.md": "fine"})
    (vault / "bad.md").write_bytes(b"caf\xe9 networking")

    tree = read_vault(vault)
    index = build_vault_index(vault)

    bad = next(note for note in iter_notes(tree) if note.name == "bad.md")
    assert bad.content == "caf� networking"
    assert read_note(index.files["bad.md"]) == "caf� networking"
