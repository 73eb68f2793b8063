from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from PySide6.QtCore import QSettings
from PySide6.QtWidgets import QApplication, QMessageBox

from mdkb.logging_setup import SESSION_ID, install_global_exception_hooks, setup_logging
from mdkb.services.knowledge_base import KnowledgeBase
from mdkb.settings import APP_NAME, APP_TITLE, SettingsKeys, resolve_root
from mdkb.single_instance import SingleInstanceGuard
from mdkb.ui.main_window import MainWindow
from mdkb.ui.qt_utils import get_str


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description=APP_TITLE)
    p.add_argument(
        "--root",
        type=Path,
        default=None,
        help="Notes root folder (categories are its sub-folders). Default: $MDKB_ROOT or ~/Documents/MarkdownKnowledgeBase",
    )
    p.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Console log level (the log file always gets DEBUG)",
    )
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    log = setup_logging(getattr(logging, args.log_level))
    install_global_exception_hooks(log)

    app = QApplication(sys.argv[:1])
    app.setApplicationName(APP_NAME)

    guard = SingleInstanceGuard()
    if not guard.acquire():
        QMessageBox.information(None, APP_TITLE, "The application is already running.")
        return 0

    try:
        settings = QSettings(APP_NAME, APP_NAME)
        root = resolve_root(args.root, get_str(settings, SettingsKeys.ROOT_DIR, ""))
        settings.setValue(SettingsKeys.ROOT_DIR, str(root))

        kb = KnowledgeBase.at(root).open()
        win = MainWindow(kb, settings=settings)
        win.show()
        log.info("Application started: root=%s SID=%s", root, SESSION_ID)
        return app.exec()
    finally:
        guard.release()


if __name__ == "__main__":
    raise SystemExit(main())
