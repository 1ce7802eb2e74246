"""
Atomic file writes: temp file in the target directory, fsync, rename over
the destination, then re-apply the file mode.

Readers see either the previous complete file or the new complete file.
On failure the temp file is removed and the destination is left untouched.
"""

from __future__ import annotations

import logging
import os
import secrets
from pathlib import Path
from typing import Union

from pagestore.engine.errors import WriteFailedError

logger = logging.getLogger("pagestore.storage.atomic")

FILE_PERMISSIONS = 0o640
TEMP_SUFFIX = ".tmp"


def temp_path_for(path: Union[str, Path], suffix: str = TEMP_SUFFIX) -> Path:
    """Collision-resistant sibling temp path: ``<name>.<16 hex>.tmp``."""
    path = Path(path)
    return path.with_name(f"{path.name}.{secrets.token_hex(8)}{suffix}")


def write_atomically(
    path: Union[str, Path],
    data: bytes,
    mode: int = FILE_PERMISSIONS,
    temp_suffix: str = TEMP_SUFFIX,
) -> None:
    """
    Replace ``path`` with ``data`` in one atomic step.

    Raises:
        WriteFailedError: any failure writing, renaming or chmod-ing; the
            original OSError is kept as ``cause``.
    """
    path = Path(path)
    tmp = temp_path_for(path, temp_suffix)

    try:
        fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_EXCL, mode)
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
        # umask may have narrowed the mode at creation
        os.chmod(path, mode)
    except OSError as e:
        try:
            os.unlink(tmp)
        except FileNotFoundError:
            pass
        except OSError as cleanup_error:
            logger.warning(f"Could not remove temp file {tmp}: {cleanup_error}")
        raise WriteFailedError(f"Failed to write page: {e}", cause=e, path=str(path)) from e
