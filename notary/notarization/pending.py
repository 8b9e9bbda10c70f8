import threading
from collections.abc import Iterator
from contextlib import contextmanager

from notary.database.repositories.base import NotaryRepository
from notary.logging.logger import Log
from notary.notarization.exceptions import ConflictError


class PendingGuard:
    """Per-hash mutual exclusion for notarization attempts.

    A hash is claimed in two layers: an in-process set guarded by a lock, then
    the store's atomic pending marker, which also covers other processes
    sharing the store. The lock only covers the set update, so unrelated
    hashes never wait on each other.
    """

    def __init__(self, repository: NotaryRepository) -> None:
        self._repository = repository
        self._lock = threading.Lock()
        self._claimed: set[str] = set()

    @contextmanager
    def claim(self, content_hash: str) -> Iterator[None]:
        """Hold the hash for the duration of the block; released on every exit.

        Raises:
            ConflictError: if another attempt already holds the hash.
        """
        with self._lock:
            if content_hash in self._claimed:
                raise ConflictError("Notarization already in progress for this document")
            self._claimed.add(content_hash)
        try:
            claimed = self._repository.try_add_pending(content_hash)
        except Exception:
            self._release_local(content_hash)
            raise
        if not claimed:
            self._release_local(content_hash)
            raise ConflictError("Notarization already in progress for this document")

        try:
            yield
        finally:
            self._release_local(content_hash)
            try:
                self._repository.remove_pending(content_hash)
            except Exception:
                # The outcome of the block stands; a stale marker is cleared at startup.
                Log.exception("Failed to release pending marker", hash=content_hash)

    def _release_local(self, content_hash: str) -> None:
        with self._lock:
            self._claimed.discard(content_hash)
