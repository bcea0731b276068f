"""Small filesystem helpers shared by the stores."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from multigit.errors import FileOperationError

logger = logging.getLogger(__name__)

PRIVATE_FILE_MODE = 0o600
PUBLIC_FILE_MODE = 0o644
PRIVATE_DIR_MODE = 0o700


def ensure_private_dir(path: Path) -> None:
    """Create *path* (and parents) with owner-only permissions if missing."""
    try:
        path.mkdir(mode=PRIVATE_DIR_MODE, parents=True, exist_ok=True)
    except OSError as exc:
        raise FileOperationError(path, f"Failed to create directory ({exc})") from exc


def write_file(path: Path, data: bytes, mode: int) -> None:
    """Overwrite *path* with *data*; a new file is created with *mode* already set."""
    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
        os.chmod(path, mode)
    except OSError as exc:
        raise FileOperationError(path, f"Failed to write file ({exc})") from exc


def replace_atomically(path: Path, data: bytes, mode: int = PRIVATE_FILE_MODE) -> None:
    """Write *data* to a sibling ``.tmp`` file and rename it over *path*.

    The real path only ever holds the old or the new content.
    """
    tmp_path = path.with_name(path.name + ".tmp")
    write_file(tmp_path, data, mode)
    try:
        os.replace(tmp_path, path)
    except OSError as exc:
        try:
            tmp_path.unlink(missing_ok=True)
        except OSError as cleanup_exc:
            logger.warning("Could not remove temporary file %s: %s", tmp_path, cleanup_exc)
        raise FileOperationError(path, f"Failed to replace file ({exc})") from exc
    logger.debug("Replaced %s via %s", path, tmp_path)


__all__ = [
    "PRIVATE_DIR_MODE",
    "PRIVATE_FILE_MODE",
    "PUBLIC_FILE_MODE",
    "ensure_private_dir",
    "replace_atomically",
    "write_file",
]
