import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import pytest

from mdkb.core.errors import InvalidName
from mdkb.core.models import NoteItem
from mdkb.vault.repo import NoteRepository


@pytest.fixture
def repo(tmp_path):
    r = NoteRepository(tmp_path / "kb")
    r.ensure_root()
    return r


def test_categories_sorted_and_hidden_skipped(repo):
    repo.create_category("work")
    repo.create_category("Archive")
    (repo.root / ".git").mkdir()
    (repo.root / "loose.md").write_text("x", encoding="utf-8")

    assert repo.list_categories() == ["Archive", "work"]


def test_create_category_rejects_empty(repo):
    with pytest.raises(InvalidName):
        repo.create_category("   ")


def test_create_note_writes_heading(repo):
    repo.create_category("cat")
    note_path = repo.create_note("cat", "Ideas")

    assert note_path == "cat/Ideas.md"
    assert repo.read_note(note_path) == "# Ideas\n"
    assert repo.list_notes("cat") == [NoteItem(name="Ideas", path="cat/Ideas.md")]


def test_create_note_keeps_existing_content(repo):
    repo.create_note("cat", "Ideas")
    repo.write_note("cat/Ideas.md", "changed")
    repo.create_note("cat", "Ideas")

    assert repo.read_note("cat/Ideas.md") == "changed"


def test_list_notes_sorted_case_insensitive(repo):
    for name in ("beta", "Alpha", "gamma"):
        repo.create_note("cat", name)
    (repo.root / "cat" / "readme.txt").write_text("", encoding="utf-8")

    assert [n.name for n in repo.list_notes("cat")] == ["Alpha", "beta", "gamma"]
    assert repo.list_notes("missing") == []


def test_delete_note(repo):
    note_path = repo.create_note("cat", "x")
    assert repo.delete_note(note_path) is True
    assert not repo.exists(note_path)
    assert repo.delete_note(note_path) is False


def test_rename_note(repo):
    note_path = repo.create_note("cat", "old")
    new_path = repo.rename_note(note_path, "new")

    assert new_path == "cat/new.md"
    assert repo.exists(new_path)
    assert not repo.exists(note_path)


def test_rename_note_collision(repo):
    repo.create_note("cat", "a")
    repo.create_note("cat", "b")
    with pytest.raises(FileExistsError):
        repo.rename_note("cat/a.md", "b")


def test_rename_missing_note(repo):
    with pytest.raises(FileNotFoundError):
        repo.rename_note("cat/none.md", "x")


def test_import_notes(repo, tmp_path):
    src_dir = tmp_path / "outside"
    src_dir.mkdir()
    (src_dir / "one.md").write_text("1", encoding="utf-8")
    (src_dir / "two.md").write_text("2", encoding="utf-8")
    repo.create_note("cat", "two")

    asked = []

    def overwrite(note_path):
        asked.append(note_path)
        return False

    imported = repo.import_notes(
        "cat",
        [src_dir / "one.md", src_dir / "two.md", src_dir / "missing.md"],
        overwrite=overwrite,
    )

    assert imported == ["cat/one.md"]
    assert asked == ["cat/two.md"]
    assert repo.read_note("cat/two.md") == "# two\n"

    assert repo.import_notes("cat", [src_dir / "two.md"], overwrite=lambda _p: True) == ["cat/two.md"]
    assert repo.read_note("cat/two.md") == "2"


def test_paths(repo):
    note_path = repo.create_note("cat", "x")
    abs_path = repo.absolute_path(note_path)

    assert repo.relative_path(abs_path) == "cat/x.md"
    assert repo.absolute_path("cat\\x.md") == abs_path
    assert NoteRepository.category_of("cat/x.md") == "cat"
    assert NoteRepository.category_of("x.md") is None


def test_absolute_path_refuses_escape(repo):
    with pytest.raises(ValueError):
        repo.absolute_path("../outside.md")


def test_rename_category(repo):
    repo.create_category("cat")
    repo.create_note("cat", "x")
    repo.create_category("other")

    assert repo.rename_category("cat", "work") == "work"
    assert repo.list_categories() == ["other", "work"]
    assert repo.exists("work/x.md")

    with pytest.raises(FileExistsError):
        repo.rename_category("work", "other")
    with pytest.raises(FileNotFoundError):
        repo.rename_category("missing", "x")
    with pytest.raises(InvalidName):
        repo.rename_category("work", "  ")
