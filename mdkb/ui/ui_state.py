from __future__ import annotations

import logging

from PySide6.QtCore import QSettings, QTimer
from PySide6.QtWidgets import QMainWindow, QSplitter

from mdkb.settings import SettingsKeys

log = logging.getLogger(__name__)


class UiStateStore:
    """Window geometry/state and splitter sizes, kept in QSettings (debounced)."""

    def __init__(self, *, owner: QMainWindow, settings: QSettings, splitter: QSplitter, debounce_ms: int = 400):
        self._owner = owner
        self._settings = settings
        self._splitter = splitter
        self._restoring = False
        self._timer = QTimer(owner)
        self._timer.setSingleShot(True)
        self._timer.setInterval(int(debounce_ms))
        self._timer.timeout.connect(self.save)

    def schedule_save(self) -> None:
        if not self._restoring:
            self._timer.start()

    @staticmethod
    def _coerce_sizes(value) -> list[int] | None:
        if value is None:
            return None
        # QSettings may hand back a list, a tuple or "200,800"
        if isinstance(value, str):
            value = value.replace(",", " ").split()
        if not isinstance(value, (list, tuple)):
            return None
        out: list[int] = []
        for x in value:
            try:
                out.append(int(x))
            except (TypeError, ValueError):
                pass
        return out or None

    def restore(self) -> None:
        self._restoring = True
        try:
            geo = self._settings.value(SettingsKeys.UI_GEOMETRY)
            if geo:
                self._owner.restoreGeometry(geo)
            else:
                self._owner.resize(1280, 780)

            st = self._settings.value(SettingsKeys.UI_STATE)
            if st:
                self._owner.restoreState(st)

            sizes = self._coerce_sizes(self._settings.value(SettingsKeys.UI_SPLITTER))
            if sizes:
                self._splitter.setSizes(sizes)
        except Exception:
            log.exception("Failed to restore UI state from QSettings")
        finally:
            self._restoring = False

    def save(self) -> None:
        try:
            self._settings.setValue(SettingsKeys.UI_GEOMETRY, self._owner.saveGeometry())
            self._settings.setValue(SettingsKeys.UI_STATE, self._owner.saveState())
            self._settings.setValue(SettingsKeys.UI_SPLITTER, self._splitter.sizes())
        except Exception:
            log.exception("Failed to save UI state to QSettings")
