# pocketpet/core/storage.py
import os
import tempfile
from pathlib import Path
from typing import Optional

import structlog

log = structlog.get_logger(__name__)


def ensure_directory(path: Path) -> Path:
    """Creates the directory (and parents) if it is missing."""
    if not path.exists():
        log.info("Creating storage directory", path=str(path))
        path.mkdir(parents=True, exist_ok=True)
    return path


def write_text_atomic(path: Path, text: str):
    """Writes text to a temp file next to `path`, then swaps it into place."""
    ensure_directory(path.parent)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.remove(tmp_name)
        raise


def read_text_if_exists(path: Path) -> Optional[str]:
    """Returns the file contents, or None when the file does not exist."""
    if not path.exists():
        return None
    return path.read_text(encoding="utf-8")
