"""Writing outline documents back to the graph directory."""

import os
from pathlib import Path

import structlog

logger = structlog.get_logger()


def atomic_write(path: Path, content: str) -> None:
    """
    Atomically replace a file's content with the temp-file-rename pattern.

    The content is written to a hidden temporary file in the same directory,
    flushed to disk and renamed over ``path``, so readers see either the old
    or the new document and never a partial one. Missing parent directories
    are created.

    Args:
        path: Target file path
        content: Content to write

    Raises:
        OSError: On file I/O errors (the temporary file is removed)
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    # Same directory, so the rename stays on one filesystem
    temp_path = path.parent / f".{path.name}.tmp.{os.getpid()}"

    try:
        temp_path.write_text(content, encoding="utf-8")

        with open(temp_path, "r+", encoding="utf-8") as f:
            f.flush()
            os.fsync(f.fileno())

        temp_path.replace(path)

        logger.debug("atomic_write_success", path=str(path), size=len(content))

    except OSError as e:
        if temp_path.exists():
            temp_path.unlink()
        logger.error("atomic_write_failed", path=str(path), error=str(e))
        raise
