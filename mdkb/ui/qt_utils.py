from __future__ import annotations

import logging
from contextlib import contextmanager

from PySide6.QtCore import QSettings

log = logging.getLogger(__name__)


@contextmanager
def blocked_signals(obj):
    """Temporarily silence Qt signals of `obj`; always re-enables them."""
    if obj is None:
        yield
        return
    try:
        obj.blockSignals(True)
        yield
    finally:
        try:
            obj.blockSignals(False)
        except RuntimeError:
            # the C++ object may already be gone
            pass


def safe_set_setting(settings: QSettings, key: str, value) -> None:
    """Best-effort QSettings write; the UI must not fall over on it."""
    try:
        settings.setValue(key, value)
    except Exception:
        log.exception("Failed to write setting %s", key)


def get_str(settings: QSettings, key: str, default: str) -> str:
    try:
        val = settings.value(key, default)
        return str(val) if val is not None else default
    except Exception:
        return default


def get_bool(settings: QSettings, key: str, default: bool) -> bool:
    val = settings.value(key, default)
    # some backends hand back "true"/"false" strings
    if isinstance(val, str):
        return val.strip().lower() in ("1", "true", "yes", "on")
    return bool(val) if val is not None else default
