"""
JSON sidecar with markers and links.

On disk:

    {
      "markers": [{"id": ..., "name": ..., "notePath": "cat/x.md", "position": 10}],
      "links":   [{"id": ..., "sourceMarkerId": ..., "targetMarkerId": ...}]
    }

Reading is tolerant: unknown fields are ignored, missing ones default, and the
PascalCase keys written by the first version of the app are accepted too.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from mdkb.infrastructure.filesystem import atomic_write_text, copy_aside

from .errors import PersistenceError
from .models import Link, Marker, MetadataStore, normalize_note_path

log = logging.getLogger(__name__)


def _field(obj: dict, name: str, default: Any = None) -> Any:
    """camelCase first, then PascalCase."""
    if name in obj:
        return obj[name]
    pascal = name[:1].upper() + name[1:]
    return obj.get(pascal, default)


def _as_int(value: Any) -> int:
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return 0


def _as_str(value: Any) -> str:
    return "" if value is None else str(value)


def _parse_markers(raw: Any) -> list[Marker]:
    out: list[Marker] = []
    seen: set[str] = set()
    for item in raw if isinstance(raw, list) else []:
        if not isinstance(item, dict):
            continue
        marker_id = _as_str(_field(item, "id")).strip()
        if not marker_id or marker_id in seen:
            log.warning("Skipping marker with missing/duplicate id: %r", item)
            continue
        seen.add(marker_id)
        out.append(
            Marker(
                id=marker_id,
                name=_as_str(_field(item, "name", "")),
                note_path=normalize_note_path(_as_str(_field(item, "notePath", ""))),
                position=_as_int(_field(item, "position", 0)),
            )
        )
    return out


def _parse_links(raw: Any) -> list[Link]:
    out: list[Link] = []
    seen: set[str] = set()
    for item in raw if isinstance(raw, list) else []:
        if not isinstance(item, dict):
            continue
        link_id = _as_str(_field(item, "id")).strip()
        if not link_id or link_id in seen:
            log.warning("Skipping link with missing/duplicate id: %r", item)
            continue
        seen.add(link_id)
        out.append(
            Link(
                id=link_id,
                source_marker_id=_as_str(_field(item, "sourceMarkerId", "")),
                target_marker_id=_as_str(_field(item, "targetMarkerId", "")),
            )
        )
    return out


def store_from_dict(data: Any) -> MetadataStore:
    if not isinstance(data, dict):
        return MetadataStore()
    return MetadataStore(
        markers=_parse_markers(_field(data, "markers")),
        links=_parse_links(_field(data, "links")),
    )


def store_to_dict(store: MetadataStore) -> dict:
    return {
        "markers": [
            {"id": m.id, "name": m.name, "notePath": m.note_path, "position": m.position}
            for m in store.markers
        ],
        "links": [
            {"id": link.id, "sourceMarkerId": link.source_marker_id, "targetMarkerId": link.target_marker_id}
            for link in store.links
        ],
    }


def _empty_after_failure(path: Path) -> MetadataStore:
    try:
        backup = copy_aside(path, tag="corrupt")
        log.warning("Unreadable metadata preserved as %s", backup)
    except OSError:
        log.exception("Failed to preserve unreadable metadata: %s", path)
    return MetadataStore()


def load(path: Path) -> MetadataStore:
    """
    Never raises. Missing file -> empty store. An unreadable or corrupt file
    is logged, copied aside, and an empty store is returned.
    """
    path = Path(path)
    if not path.exists():
        log.debug("Metadata file not found, starting empty: %s", path)
        return MetadataStore()

    try:
        data = json.loads(path.read_text(encoding="utf-8-sig"))
    except (OSError, UnicodeDecodeError, ValueError):
        log.warning("Failed to read metadata, starting empty: %s", path, exc_info=True)
        return _empty_after_failure(path)

    if not isinstance(data, dict):
        log.warning("Metadata root is not an object (%s), starting empty: %s", type(data).__name__, path)
        return _empty_after_failure(path)

    store = store_from_dict(data)
    log.info("Metadata loaded: markers=%d links=%d path=%s", len(store.markers), len(store.links), path)
    return store


def save(path: Path, store: MetadataStore) -> None:
    path = Path(path)
    text = json.dumps(store_to_dict(store), ensure_ascii=False, indent=2)
    try:
        atomic_write_text(path, text + "\n", encoding="utf-8")
    except OSError as e:
        raise PersistenceError(f"Failed to save metadata to {path}: {e}") from e
    log.debug("Metadata saved: markers=%d links=%d", len(store.markers), len(store.links))
