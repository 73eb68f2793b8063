from __future__ import annotations

import re

# optional "> " quote prefixes, a list marker, then the "[ ]" / "[x]" box
TASK_RE = re.compile(r"^\s*(?:>\s*)*(?:[-*+]|\d+[.)])\s+\[(?P<state>[ xX])\]")
_LIST_ITEM_RE = re.compile(r"^\s*(?:>\s*)*(?:[-*+]|\d+[.)])\s+")
_FENCE_RE = re.compile(r"^\s*(```|~~~)")

# Wraps the source index of a task box while the note goes through Markdown.
TASK_INDEX_MARK = "\u2063"


def _indent_width(line: str) -> int:
    width = 0
    for ch in line:
        if ch == " ":
            width += 1
        elif ch == "\t":
            width += 4 - width % 4
        else:
            break
    return width


def _task_state_offsets(text: str) -> list[int]:
    """
    Offsets of the state char of every task box.
    Fenced code and indented code blocks are skipped; a line indented by four
    or more columns only counts as a list item while a list is open.
    """
    offsets: list[int] = []
    fence: str | None = None
    in_list = False
    prev_blank = True
    pos = 0
    for line in text.splitlines(keepends=True):
        start = pos
        pos += len(line)

        m_fence = _FENCE_RE.match(line)
        if m_fence:
            marker = m_fence.group(1)
            if fence is None:
                fence = marker
            elif fence == marker:
                fence = None
            in_list = False
            prev_blank = False
            continue
        if fence is not None:
            continue

        if not line.strip():
            prev_blank = True
            continue

        indented = _indent_width(line) >= 4
        if indented and not in_list:
            # indented code, or a lazy continuation of a paragraph
            prev_blank = False
            continue

        if _LIST_ITEM_RE.match(line):
            in_list = True
            m = TASK_RE.match(line)
            if m:
                offsets.append(start + m.start("state"))
        elif prev_blank and not indented:
            in_list = False
        prev_blank = False
    return offsets


def count_tasks(text: str) -> int:
    return len(_task_state_offsets(text or ""))


def mark_tasks(text: str) -> str:
    """Tag every task box with its index so a renderer can number its checkboxes."""
    text = text or ""
    parts = []
    last = 0
    for index, at in enumerate(_task_state_offsets(text)):
        end = at + 2  # state char + "]"
        parts.append(text[last:end])
        parts.append(f"{TASK_INDEX_MARK}{index}{TASK_INDEX_MARK}")
        last = end
    parts.append(text[last:])
    return "".join(parts)


def toggle_task(text: str, index: int, checked: bool) -> tuple[str, bool]:
    """
    Set the `index`-th task box ("- [ ]" / "- [x]") of the note.
    Returns (new_text, changed). Out-of-range index is a no-op.
    """
    offsets = _task_state_offsets(text or "")
    if index < 0 or index >= len(offsets):
        return text, False

    at = offsets[index]
    state = "x" if checked else " "
    if text[at].lower() == state:
        return text, False
    return text[:at] + state + text[at + 1:], True
