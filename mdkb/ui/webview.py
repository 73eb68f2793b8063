from __future__ import annotations

from urllib.parse import parse_qs

from PySide6.QtCore import Signal
from PySide6.QtGui import QDesktopServices
from PySide6.QtWebEngineCore import QWebEnginePage
from PySide6.QtWebEngineWidgets import QWebEngineView

from mdkb.services.markdown_renderer import TASK_SCHEME

__all__ = ["PreviewView"]


class _PreviewPage(QWebEnginePage):
    """
    Keeps the preview on the rendered note: task checkbox clicks come back
    as task://<index>?checked=0|1 and become a signal; external links open
    in the system browser.
    """

    def __init__(self, view: "PreviewView"):
        super().__init__(view)
        self._view = view

    def acceptNavigationRequest(self, url, nav_type, isMainFrame):  # type: ignore[override]
        if not isMainFrame:
            return super().acceptNavigationRequest(url, nav_type, isMainFrame)

        scheme = url.scheme()
        if scheme == TASK_SCHEME:
            # task://3 -> host "3"; task:///3 -> path "/3"
            raw = url.host() or (url.path() or "").lstrip("/")
            try:
                index = int(raw)
            except ValueError:
                return False
            checked = parse_qs(url.query()).get("checked", ["0"])[0] == "1"
            self._view.taskToggled.emit(index, checked)
            return False

        if scheme in ("http", "https", "mailto"):
            QDesktopServices.openUrl(url)
            return False

        return super().acceptNavigationRequest(url, nav_type, isMainFrame)


class PreviewView(QWebEngineView):
    taskToggled = Signal(int, bool)

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setPage(_PreviewPage(self))
