from __future__ import annotations

import logging
import shutil
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from mdkb.core.filenames import validate_name
from mdkb.core.models import NoteItem, normalize_note_path
from mdkb.infrastructure.filesystem import atomic_write_text

log = logging.getLogger(__name__)

NOTE_SUFFIX = ".md"


@dataclass(frozen=True)
class NoteRepository:
    """
    Categories are direct sub-folders of `root`, notes are `*.md` files in them.
    Notes are addressed by their path relative to `root` ("cat/x.md").
    """

    root: Path

    def ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    # ───────────────────────── paths ─────────────────────────

    def absolute_path(self, note_path: str) -> Path:
        rel = normalize_note_path(note_path)
        path = (self.root / PurePosixPath(rel)).resolve()
        if not path.is_relative_to(self.root.resolve()):
            raise ValueError(f"Note path escapes the root folder: {note_path!r}")
        return path

    def relative_path(self, path: Path) -> str:
        return Path(path).resolve().relative_to(self.root.resolve()).as_posix()

    @staticmethod
    def category_of(note_path: str) -> str | None:
        parent = PurePosixPath(normalize_note_path(note_path)).parent
        return None if str(parent) in ("", ".") else parent.as_posix()

    def exists(self, note_path: str) -> bool:
        return self.absolute_path(note_path).is_file()

    # ───────────────────────── categories ─────────────────────────

    def list_categories(self) -> list[str]:
        if not self.root.is_dir():
            return []
        names = [p.name for p in self.root.iterdir() if p.is_dir() and not p.name.startswith(".")]
        return sorted(names, key=str.lower)

    def create_category(self, name: str) -> str:
        safe = validate_name(name)
        (self.root / safe).mkdir(parents=True, exist_ok=True)
        log.info("Category ready: %s", safe)
        return safe

    def rename_category(self, category: str, new_name: str) -> str:
        """Rename a category folder. Returns the new category name."""
        old = self.root / category
        if not old.is_dir():
            raise FileNotFoundError(old)

        safe = validate_name(new_name)
        new = self.root / safe
        if new == old:
            return category
        if new.exists() and not new.samefile(old):
            raise FileExistsError(new)

        old.replace(new)
        log.info("Category renamed: %s -> %s", category, safe)
        return safe

    # ───────────────────────── notes ─────────────────────────

    def list_notes(self, category: str) -> list[NoteItem]:
        folder = self.root / category
        if not folder.is_dir():
            return []
        notes = [
            NoteItem(name=p.stem, path=f"{category}/{p.name}")
            for p in folder.glob(f"*{NOTE_SUFFIX}")
            if p.is_file()
        ]
        return sorted(notes, key=lambda n: n.name.lower())

    def create_note(self, category: str, name: str) -> str:
        """Create `<category>/<name>.md` with a heading; an existing note is left as is."""
        safe = validate_name(name)
        note_path = f"{category}/{safe}{NOTE_SUFFIX}"
        path = self.absolute_path(note_path)
        if not path.exists():
            atomic_write_text(path, f"# {safe}\n")
            log.info("Note created: %s", note_path)
        return note_path

    def read_note(self, note_path: str) -> str:
        path = self.absolute_path(note_path)
        return path.read_text(encoding="utf-8") if path.exists() else ""

    def write_note(self, note_path: str, text: str) -> None:
        atomic_write_text(self.absolute_path(note_path), text)

    def delete_note(self, note_path: str) -> bool:
        path = self.absolute_path(note_path)
        if not path.exists():
            return False
        path.unlink()
        log.info("Note deleted: %s", normalize_note_path(note_path))
        return True

    def rename_note(self, note_path: str, new_name: str) -> str:
        """Rename inside the same category. Returns the new relative path."""
        old = self.absolute_path(note_path)
        if not old.is_file():
            raise FileNotFoundError(old)

        new = old.with_name(f"{validate_name(new_name)}{NOTE_SUFFIX}")
        if new == old:
            return self.relative_path(old)
        # case-only rename on case-insensitive filesystems points at the same file
        if new.exists() and not new.samefile(old):
            raise FileExistsError(new)

        old.replace(new)
        new_path = self.relative_path(new)
        log.info("Note renamed: %s -> %s", normalize_note_path(note_path), new_path)
        return new_path

    def import_notes(
        self,
        category: str,
        sources: Iterable[Path],
        *,
        overwrite: Callable[[str], bool] = lambda _path: False,
    ) -> list[str]:
        """
        Copy external Markdown files into a category.
        `overwrite(note_path)` decides about notes that already exist.
        Returns imported relative paths; missing sources are skipped.
        """
        imported: list[str] = []
        for src in sources:
            src = Path(src)
            if not src.is_file():
                log.warning("Import skipped, not a file: %s", src)
                continue

            note_path = f"{category}/{validate_name(src.stem)}{NOTE_SUFFIX}"
            dst = self.absolute_path(note_path)
            if dst.exists() and not overwrite(note_path):
                log.info("Import skipped, note exists: %s", note_path)
                continue

            dst.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(src, dst)
            imported.append(note_path)
            log.info("Imported %s -> %s", src, note_path)
        return imported
