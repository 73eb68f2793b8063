from __future__ import annotations

import logging
from pathlib import Path

from PySide6.QtCore import QDir, QLockFile

from mdkb.settings import APP_NAME

log = logging.getLogger(__name__)


class SingleInstanceGuard:
    """
    One running window per user: the metadata file has exactly one writer.
    Backed by a QLockFile in the temp dir; stale locks of crashed runs are
    taken over by Qt.
    """

    def __init__(self, name: str = APP_NAME) -> None:
        self.lock_path = Path(QDir.tempPath()) / f"{name}.lock"
        self._lock = QLockFile(str(self.lock_path))
        self._lock.setStaleLockTime(0)

    def acquire(self) -> bool:
        ok = self._lock.tryLock(100)
        if not ok:
            log.info("Another instance holds %s (error=%s)", self.lock_path, self._lock.error())
        return ok

    def release(self) -> None:
        if self._lock.isLocked():
            self._lock.unlock()
