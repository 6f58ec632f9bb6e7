"""Crash-safe document writes: temp file in the target directory, fsync, rename."""

import os
import tempfile

from city_cache.errors import CacheIOError
from common.config import TEMP_FILE_PREFIX, TEMP_FILE_SUFFIX
from common.logging_config import get_logger

logger = get_logger("city_cache_atomic_write")


def write_atomic(directory: str, final_path: str, data: bytes) -> None:
    """
    Replace final_path with data in one atomic step.

    The temp file lives in `directory`, which must be the directory of
    final_path so the rename stays on one filesystem. On any failure the
    temp file is removed and final_path keeps its previous content.

    Raises:
        CacheIOError: If creating, writing, syncing or renaming fails
    """
    try:
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=TEMP_FILE_PREFIX, suffix=TEMP_FILE_SUFFIX)
    except OSError as e:
        raise CacheIOError(f"Failed to create temp file in {directory}: {e}") from e

    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, final_path)
    except BaseException as e:
        try:
            os.remove(tmp_path)
        except FileNotFoundError:
            pass
        if isinstance(e, OSError):
            raise CacheIOError(f"Failed to write {final_path}: {e}") from e
        raise

    logger.debug(f"Wrote {len(data)} bytes to {final_path}")
