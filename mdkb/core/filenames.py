from __future__ import annotations

import re
import unicodedata

from .errors import InvalidName

_WINDOWS_RESERVED = (
    {"con", "prn", "aux", "nul"}
    | {f"com{i}" for i in range(1, 10)}
    | {f"lpt{i}" for i in range(1, 10)}
)
_ILLEGAL_RE = re.compile(r'[<>:"|?*]')


def safe_filename(name: str | None, *, max_len: int = 120) -> str:
    """
    Make a user-entered category/note name usable as a single path component.
    Returns "" when nothing usable is left.
    """
    if name is None:
        return ""

    s = unicodedata.normalize("NFKC", str(name))
    s = "".join(ch for ch in s if unicodedata.category(ch)[0] != "C")
    s = s.strip()
    if s.lower().endswith(".md"):
        s = s[:-3]
    s = s.replace("/", "-").replace("\\", "-")
    s = _ILLEGAL_RE.sub("_", s)
    s = re.sub(r"\s+", " ", s)
    s = s.strip().rstrip(" .")
    # no hidden entries: the root keeps its own dotfiles (.metadata.json)
    s = s.lstrip(".").strip()

    if not s:
        return ""

    base = s.split(".")[0].strip().lower()
    if base in _WINDOWS_RESERVED:
        s = f"_{s}"

    if len(s) > max_len:
        s = s[:max_len].rstrip(" .")

    return s


def validate_name(name: str | None) -> str:
    """safe_filename() that refuses to invent a name."""
    safe = safe_filename(name)
    if not safe:
        raise InvalidName(f"Invalid name: {name!r}")
    return safe
