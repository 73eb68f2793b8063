from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

APP_NAME = "mdkb"
APP_TITLE = "Markdown Knowledge Base"

LOG_DIR = Path.home() / f".{APP_NAME}" / "logs"
LOG_PATH = LOG_DIR / f"{APP_NAME}.log"

DEFAULT_ROOT = Path.home() / "Documents" / "MarkdownKnowledgeBase"
ROOT_ENV_VAR = "MDKB_ROOT"
METADATA_FILENAME = ".metadata.json"

PREVIEW_DEBOUNCE_MS_MIN = 150
PREVIEW_DEBOUNCE_MS_MAX = 800
PREVIEW_DEBOUNCE_CHARS_PER_STEP = 2000


@dataclass(frozen=True)
class SettingsKeys:
    UI_THEME: str = "ui/theme"
    UI_GEOMETRY: str = "ui/geometry"
    UI_STATE: str = "ui/windowState"
    UI_SPLITTER: str = "ui/splitter_sizes"
    UI_EDITOR_VISIBLE: str = "ui/editor_visible"
    UI_PREVIEW_VISIBLE: str = "ui/preview_visible"
    ROOT_DIR: str = "kb/root"


def resolve_root(cli_root: Path | None, remembered: str | None = None) -> Path:
    """--root wins, then $MDKB_ROOT, then the last used root, then ~/Documents/MarkdownKnowledgeBase."""
    if cli_root is not None:
        return Path(cli_root).expanduser()
    env = (os.environ.get(ROOT_ENV_VAR) or "").strip()
    if env:
        return Path(env).expanduser()
    if remembered:
        return Path(remembered).expanduser()
    return DEFAULT_ROOT


def normalize_theme(name: str | None) -> str:
    name = (name or "").strip().lower()
    return name if name in ("dark", "light") else "light"


def preview_debounce_ms(text_len: int) -> int:
    """Larger notes => render the preview less often."""
    if text_len <= 0:
        return PREVIEW_DEBOUNCE_MS_MIN
    steps = text_len // PREVIEW_DEBOUNCE_CHARS_PER_STEP
    return min(PREVIEW_DEBOUNCE_MS_MAX, PREVIEW_DEBOUNCE_MS_MIN + steps * 50)
