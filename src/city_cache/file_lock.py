"""
Advisory file lock based on an exclusive-create marker file.

The presence of the marker is the only mutex signal. Its content (the
holder's pid) is diagnostic only. A marker left behind by a crashed
process is never expired automatically and must be removed by hand.

Usage:
    with file_lock(path + ".lock", timeout=5.0):
        write_atomic(directory, path, data)
"""

import os
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from city_cache.errors import LockTimeout
from common.config import LOCK_POLL_INTERVAL_SECONDS
from common.logging_config import get_logger

logger = get_logger("city_cache_lock")


def _try_create(lock_path: str) -> bool:
    """Create the marker file; False if it already exists."""
    try:
        fd = os.open(lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o600)
    except FileExistsError:
        return False
    try:
        os.write(fd, f"pid={os.getpid()}".encode())
    except OSError:
        os.close(fd)
        os.remove(lock_path)
        raise
    os.close(fd)
    return True


def acquire(
    lock_path: str,
    timeout: float | None = None,
    cancel: threading.Event | None = None,
    poll_interval: float = LOCK_POLL_INTERVAL_SECONDS,
) -> Callable[[], None]:
    """
    Acquire the lock at lock_path, polling until it is free.

    Args:
        lock_path: Path of the marker file
        timeout: Seconds to keep trying; None waits until cancelled
        cancel: Event that aborts the wait when set
        poll_interval: Seconds between attempts

    Returns:
        A release() callable that deletes the marker. Calling it again is a no-op.

    Raises:
        LockTimeout: If the deadline passes or cancel is set before the lock is free
    """
    wake = cancel if cancel is not None else threading.Event()
    deadline = None if timeout is None else time.monotonic() + timeout

    while not _try_create(lock_path):
        if wake.is_set():
            raise LockTimeout(lock_path, "cancelled")

        wait = poll_interval
        if deadline is not None:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise LockTimeout(lock_path, "timeout")
            wait = min(wait, remaining)

        logger.debug(f"Lock {lock_path} is held, retrying in {wait * 1000:.0f}ms")
        wake.wait(wait)

    released = False

    def release() -> None:
        nonlocal released
        if released:
            return
        released = True
        try:
            os.remove(lock_path)
        except FileNotFoundError:
            logger.warning(f"Lock {lock_path} was already removed")

    return release


@contextmanager
def file_lock(
    lock_path: str,
    timeout: float | None = None,
    cancel: threading.Event | None = None,
    poll_interval: float = LOCK_POLL_INTERVAL_SECONDS,
) -> Iterator[None]:
    """Hold the lock at lock_path for the duration of the with-block."""
    release = acquire(lock_path, timeout=timeout, cancel=cancel, poll_interval=poll_interval)
    try:
        yield
    finally:
        release()
