from __future__ import annotations

from collections import deque

from .models import NavigationEntry, normalize_note_path


class NavigationHistory:
    """
    Back-stack of (note, position) pairs left by jumps.

    There is no forward stack: an entry is gone once popped, and going back
    does not push anything. Lives for the process only.
    """

    def __init__(self, *, limit: int | None = None) -> None:
        if limit is not None and limit < 0:
            raise ValueError("limit must be >= 0 or None")
        # deque(maxlen) drops the oldest entries first
        self._stack: deque[NavigationEntry] = deque(maxlen=limit)

    def __len__(self) -> int:
        return len(self._stack)

    @property
    def can_back(self) -> bool:
        return bool(self._stack)

    def push_current(self, note_path: str, position: int) -> NavigationEntry:
        """Remember where the user is leaving from, right before a jump."""
        entry = NavigationEntry(normalize_note_path(note_path), max(0, int(position)))
        self._stack.append(entry)
        return entry

    def back(self) -> NavigationEntry | None:
        if not self._stack:
            return None
        return self._stack.pop()

    def peek(self) -> NavigationEntry | None:
        return self._stack[-1] if self._stack else None

    def clear(self) -> None:
        self._stack.clear()

    def rename_note(self, old_path: str, new_path: str) -> int:
        """Point entries of a renamed note at its new path."""
        old_path = normalize_note_path(old_path)
        new_path = normalize_note_path(new_path)
        return self._rewrite_paths(lambda p: new_path if p == old_path else None)

    def rename_category(self, old_category: str, new_category: str) -> int:
        """Point entries of notes in a renamed category at the new folder."""
        old_prefix = normalize_note_path(old_category) + "/"
        new_prefix = normalize_note_path(new_category) + "/"
        return self._rewrite_paths(
            lambda p: new_prefix + p[len(old_prefix):] if p.startswith(old_prefix) else None
        )

    def _rewrite_paths(self, rewrite) -> int:
        changed = 0
        entries = list(self._stack)
        for i, entry in enumerate(entries):
            new_path = rewrite(entry.note_path)
            if new_path is not None and new_path != entry.note_path:
                entries[i] = NavigationEntry(new_path, entry.position)
                changed += 1
        if changed:
            self._replace(entries)
        return changed

    def forget_note(self, note_path: str) -> int:
        """Drop entries of a deleted note."""
        note_path = normalize_note_path(note_path)
        kept = [e for e in self._stack if e.note_path != note_path]
        removed = len(self._stack) - len(kept)
        if removed:
            self._replace(kept)
        return removed

    def _replace(self, entries: list[NavigationEntry]) -> None:
        self._stack = deque(entries, maxlen=self._stack.maxlen)
