"""Error types for the city cache."""


class CacheError(Exception):
    """Base class for city cache failures."""


class LockTimeout(CacheError):
    """The write lock could not be acquired before the deadline or cancellation."""

    def __init__(self, lock_path: str, reason: str = "timeout"):
        self.lock_path = lock_path
        self.reason = reason
        super().__init__(f"Could not acquire cache lock {lock_path} ({reason})")


class CacheIOError(CacheError):
    """A filesystem operation on the write path failed."""


class CorruptDocument(CacheError):
    """The backing file does not hold a valid cache document."""


class CacheInvariantError(CacheError):
    """An entry is stored under a key that differs from its normalized name."""
