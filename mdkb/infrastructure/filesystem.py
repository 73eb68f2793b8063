from __future__ import annotations

import os
import shutil
import uuid
from datetime import datetime
from pathlib import Path


def atomic_write_text(path: Path, text: str, *, encoding: str = "utf-8") -> None:
    """
    Atomic-ish file write:
      - write to temp file in same directory
      - fsync
      - replace() into final path
    A crash mid-write leaves the previous file intact.
    """
    path = Path(path)
    parent = path.parent
    parent.mkdir(parents=True, exist_ok=True)

    tmp_path = parent / f".{path.name}.tmp-{uuid.uuid4().hex}"
    try:
        with open(tmp_path, "w", encoding=encoding, newline="") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        tmp_path.replace(path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()


def copy_aside(path: Path, *, tag: str) -> Path:
    """
    Keep a timestamped copy next to `path` (e.g. `.metadata.json.corrupt-20240101-120000`).
    Used before a fallback would overwrite a file we could not read.
    """
    path = Path(path)
    ts = datetime.now().strftime("%Y%m%d-%H%M%S")
    dst = path.with_name(f"{path.name}.{tag}-{ts}")
    shutil.copy2(path, dst)
    return dst
