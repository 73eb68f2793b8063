from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable

from .errors import InvalidReference
from .models import Link, Marker, MetadataStore, normalize_note_path, note_stem

log = logging.getLogger(__name__)

UNKNOWN_LABEL = "unknown"


def _new_id() -> str:
    return str(uuid.uuid4())


class MarkerGraph:
    """
    Markers anchored to (note, offset) and directed links between them.

    Links reference markers by id only. Deleting markers is one filter pass
    over both sequences with the set of removed ids; nothing else keeps
    back-pointers. Mutations do not persist; the owner saves the store.
    """

    def __init__(self, store: MetadataStore | None = None) -> None:
        self.store = store if store is not None else MetadataStore()
        self._by_id: dict[str, Marker] = {}
        self._reindex()

    def _reindex(self) -> None:
        self._by_id = {m.id: m for m in self.store.markers}

    @property
    def markers(self) -> list[Marker]:
        return list(self.store.markers)

    @property
    def links(self) -> list[Link]:
        return list(self.store.links)

    # ───────────────────────── markers ─────────────────────────

    def add_marker(self, name: str, note_path: str, position: int) -> Marker:
        marker_id = _new_id()
        while marker_id in self._by_id:
            marker_id = _new_id()

        marker = Marker(
            id=marker_id,
            name=str(name),
            note_path=normalize_note_path(note_path),
            position=max(0, int(position)),
        )
        self.store.markers.append(marker)
        self._by_id[marker.id] = marker
        log.debug("Marker added: id=%s note=%s pos=%d", marker.id, marker.note_path, marker.position)
        return marker

    def resolve_marker(self, marker_id: str) -> Marker | None:
        return self._by_id.get(marker_id)

    def markers_for_note(self, note_path: str) -> list[Marker]:
        note_path = normalize_note_path(note_path)
        found = [m for m in self.store.markers if m.note_path == note_path]
        return sorted(found, key=lambda m: m.position)

    def remove_marker(self, marker_id: str) -> bool:
        return bool(self.remove_markers([marker_id]))

    def remove_markers(self, marker_ids: Iterable[str]) -> list[Marker]:
        """Remove markers and every link touching them. Unknown ids are ignored."""
        removed_ids = {mid for mid in marker_ids if mid in self._by_id}
        if not removed_ids:
            return []

        removed = [m for m in self.store.markers if m.id in removed_ids]
        self.store.markers = [m for m in self.store.markers if m.id not in removed_ids]
        links_before = len(self.store.links)
        self.store.links = [
            link
            for link in self.store.links
            if link.source_marker_id not in removed_ids and link.target_marker_id not in removed_ids
        ]
        self._reindex()

        log.debug(
            "Markers removed: count=%d cascaded_links=%d",
            len(removed),
            links_before - len(self.store.links),
        )
        return removed

    def remove_markers_for_note(self, note_path: str) -> list[Marker]:
        note_path = normalize_note_path(note_path)
        return self.remove_markers(m.id for m in self.store.markers if m.note_path == note_path)

    def rename_note_references(self, old_path: str, new_path: str) -> int:
        old_path = normalize_note_path(old_path)
        new_path = normalize_note_path(new_path)
        if old_path == new_path:
            return 0
        return self._rewrite_paths(lambda p: new_path if p == old_path else None)

    def rename_category_references(self, old_category: str, new_category: str) -> int:
        old_prefix = normalize_note_path(old_category) + "/"
        new_prefix = normalize_note_path(new_category) + "/"
        if old_prefix == new_prefix:
            return 0
        return self._rewrite_paths(
            lambda p: new_prefix + p[len(old_prefix):] if p.startswith(old_prefix) else None
        )

    def _rewrite_paths(self, rewrite) -> int:
        changed = 0
        out: list[Marker] = []
        for m in self.store.markers:
            new_path = rewrite(m.note_path)
            if new_path is None:
                out.append(m)
                continue
            out.append(Marker(id=m.id, name=m.name, note_path=new_path, position=m.position))
            changed += 1
        if changed:
            self.store.markers = out
            self._reindex()
        return changed

    # ───────────────────────── links ─────────────────────────

    def add_link(self, source_marker_id: str, target_marker_id: str) -> Link:
        for marker_id in (source_marker_id, target_marker_id):
            if marker_id not in self._by_id:
                raise InvalidReference(marker_id)

        existing = {link.id for link in self.store.links}
        link_id = _new_id()
        while link_id in existing:
            link_id = _new_id()

        link = Link(id=link_id, source_marker_id=source_marker_id, target_marker_id=target_marker_id)
        self.store.links.append(link)
        log.debug("Link added: id=%s %s -> %s", link.id, source_marker_id, target_marker_id)
        return link

    def resolve_link(self, link_id: str) -> Link | None:
        for link in self.store.links:
            if link.id == link_id:
                return link
        return None

    def remove_link(self, link_id: str) -> bool:
        before = len(self.store.links)
        self.store.links = [link for link in self.store.links if link.id != link_id]
        return len(self.store.links) != before

    def links_from(self, marker_id: str) -> list[Link]:
        return [link for link in self.store.links if link.source_marker_id == marker_id]

    def links_to(self, marker_id: str) -> list[Link]:
        return [link for link in self.store.links if link.target_marker_id == marker_id]

    # ───────────────────────── labels ─────────────────────────

    @staticmethod
    def marker_label(marker: Marker | None) -> str:
        if marker is None:
            return UNKNOWN_LABEL
        return f"{marker.name} ({note_stem(marker.note_path)})"

    def link_label(self, link: Link) -> str:
        source = self.marker_label(self.resolve_marker(link.source_marker_id))
        target = self.marker_label(self.resolve_marker(link.target_marker_id))
        return f"{source} -> {target}"
