from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePosixPath


def normalize_note_path(note_path: str) -> str:
    """Relative note ids always use forward slashes ("cat/x.md")."""
    return str(note_path or "").replace("\\", "/").strip("/")


def note_stem(note_path: str) -> str:
    return PurePosixPath(normalize_note_path(note_path)).stem


@dataclass(frozen=True)
class NoteItem:
    name: str
    path: str


@dataclass(frozen=True)
class Marker:
    id: str
    name: str
    note_path: str
    position: int


@dataclass(frozen=True)
class Link:
    id: str
    source_marker_id: str
    target_marker_id: str


@dataclass(frozen=True)
class NavigationEntry:
    note_path: str
    position: int


@dataclass
class MetadataStore:
    """Persisted aggregate. Order is kept for display only."""

    markers: list[Marker] = field(default_factory=list)
    links: list[Link] = field(default_factory=list)
