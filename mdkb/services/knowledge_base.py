from __future__ import annotations

import logging
from pathlib import Path

from mdkb.core import metadata
from mdkb.core.errors import PersistenceError
from mdkb.core.markers import MarkerGraph
from mdkb.core.models import Link, Marker, NavigationEntry, normalize_note_path
from mdkb.core.navigation import NavigationHistory
from mdkb.settings import METADATA_FILENAME
from mdkb.vault.repo import NoteRepository

log = logging.getLogger(__name__)


class KnowledgeBase:
    """
    Owns everything one window works with: the note repository, the marker
    graph with its metadata file, and the jump history.

    Lifecycle: open() loads metadata once; every mutating call saves it.
    A failed save raises PersistenceError and leaves memory ahead of disk
    until the next successful save.
    """

    def __init__(
        self,
        repo: NoteRepository,
        *,
        metadata_path: Path | None = None,
        history: NavigationHistory | None = None,
    ) -> None:
        self.repo = repo
        self.metadata_path = Path(metadata_path) if metadata_path else repo.root / METADATA_FILENAME
        self.graph = MarkerGraph()
        self.history = history if history is not None else NavigationHistory()

    @classmethod
    def at(cls, root: Path) -> "KnowledgeBase":
        return cls(NoteRepository(Path(root)))

    def open(self) -> "KnowledgeBase":
        self.repo.ensure_root()
        self.graph = MarkerGraph(metadata.load(self.metadata_path))
        self.history.clear()
        log.info("Knowledge base opened: root=%s", self.repo.root)
        return self

    def save(self) -> None:
        metadata.save(self.metadata_path, self.graph.store)

    # ───────────────────────── read side ─────────────────────────

    @property
    def markers(self) -> list[Marker]:
        return self.graph.markers

    @property
    def links(self) -> list[Link]:
        return self.graph.links

    def marker_label(self, marker: Marker | None) -> str:
        return self.graph.marker_label(marker)

    def link_label(self, link: Link) -> str:
        return self.graph.link_label(link)

    # ───────────────────────── markers / links ─────────────────────────

    def add_marker(self, name: str, note_path: str, position: int) -> Marker:
        marker = self.graph.add_marker(name, note_path, position)
        self.save()
        return marker

    def add_link(self, source_marker_id: str, target_marker_id: str) -> Link:
        link = self.graph.add_link(source_marker_id, target_marker_id)
        self.save()
        return link

    def remove_marker(self, marker_id: str) -> bool:
        removed = self.graph.remove_marker(marker_id)
        if removed:
            self.save()
        return removed

    def remove_link(self, link_id: str) -> bool:
        removed = self.graph.remove_link(link_id)
        if removed:
            self.save()
        return removed

    # ───────────────────────── note lifecycle hooks ─────────────────────────

    #
    # The file operation runs first. If saving the metadata afterwards fails,
    # the PersistenceError carries the hook's return value in `result`.

    def _save_after(self, result):
        try:
            self.save()
        except PersistenceError as e:
            e.result = result
            raise
        return result

    def delete_note(self, note_path: str) -> list[Marker]:
        """Delete the file, then its markers (with their links) and history entries."""
        note_path = normalize_note_path(note_path)
        self.repo.delete_note(note_path)
        removed = self.graph.remove_markers_for_note(note_path)
        self.history.forget_note(note_path)
        log.info("Note removed from knowledge base: %s markers=%d", note_path, len(removed))
        if removed:
            self._save_after(removed)
        return removed

    def rename_note(self, note_path: str, new_name: str) -> str:
        """Rename the file and move markers and history entries along with it."""
        old_path = normalize_note_path(note_path)
        new_path = self.repo.rename_note(old_path, new_name)
        if new_path == old_path:
            return new_path

        changed = self.graph.rename_note_references(old_path, new_path)
        self.history.rename_note(old_path, new_path)
        if changed:
            self._save_after(new_path)
        return new_path

    def rename_category(self, category: str, new_name: str) -> str:
        """Rename a category folder; markers and history follow its notes."""
        new_category = self.repo.rename_category(category, new_name)
        if new_category == category:
            return new_category

        changed = self.graph.rename_category_references(category, new_category)
        self.history.rename_category(category, new_category)
        if changed:
            self._save_after(new_category)
        return new_category

    def links_of(self, marker_id: str) -> list[Link]:
        """Links that start or end at a marker (the ones removed with it)."""
        outgoing = self.graph.links_from(marker_id)
        return outgoing + [link for link in self.graph.links_to(marker_id) if link not in outgoing]

    # ───────────────────────── navigation ─────────────────────────

    def jump(self, link_id: str, current: NavigationEntry | None = None) -> Marker | None:
        """
        Resolve the target of a link. The current position is pushed on the
        history only when there is somewhere to go.
        """
        link = self.graph.resolve_link(link_id)
        if link is None:
            log.debug("Jump ignored: unknown link %s", link_id)
            return None

        target = self.graph.resolve_marker(link.target_marker_id)
        if target is None:
            log.debug("Jump ignored: link %s points at a missing marker", link_id)
            return None

        if current is not None:
            self.history.push_current(current.note_path, current.position)
        log.info("Jump: link=%s -> %s@%d", link_id, target.note_path, target.position)
        return target

    def back(self) -> NavigationEntry | None:
        return self.history.back()
