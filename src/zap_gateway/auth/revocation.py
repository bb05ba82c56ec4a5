"""In-memory store of revoked token ids.

Entries expire together with the token they revoke: once a token's natural
expiry has passed it cannot be used anyway, so its entry is dropped on the
next sweep. Sweeps run lazily on every ``revoke`` and ``is_revoked`` call.

Revocations are not persisted and do not survive a process restart.
"""

from __future__ import annotations

import threading
import time
from typing import TYPE_CHECKING

from zap_gateway.observability.logging import get_logger


if TYPE_CHECKING:
    from collections.abc import Callable


logger = get_logger(__name__)


class RevocationStore:
    """Concurrent, self-expiring set of revoked token ids.

    Expiry times are POSIX timestamps in seconds, the same unit as the
    token ``exp`` claim.

    One lock guards the dict. It is held only for single dict operations
    and for copying the entries before a sweep; the O(n) expiry scan runs
    on that copy outside the lock. Handlers share one event loop, so the
    only contention is from threadpool callers, and each waits at most for
    one dict operation or one copy.

    Args:
        clock: Returns the current POSIX time. Injected by tests.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._entries: dict[str, float] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def revoke(self, token_id: str, natural_expiry: float) -> None:
        """Mark ``token_id`` as revoked until ``natural_expiry``.

        Revoking an id again overwrites its expiry; it stays revoked.
        """
        with self._lock:
            self._entries[token_id] = natural_expiry
        logger.info("Token revoked", token_id=token_id, expires_at=int(natural_expiry))
        self.cleanup()

    def is_revoked(self, token_id: str) -> bool:
        """Return True while ``token_id`` has a live revocation entry."""
        self.cleanup()
        with self._lock:
            return token_id in self._entries

    def cleanup(self) -> int:
        """Drop entries whose natural expiry has passed.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            snapshot = list(self._entries.items())

        now = self._clock()
        expired = [tid for tid, exp in snapshot if exp < now]
        if not expired:
            return 0

        removed = 0
        with self._lock:
            for token_id in expired:
                # May have been revoked again with a later expiry since the copy
                if self._entries.get(token_id, now) < now:
                    del self._entries[token_id]
                    removed += 1
        if removed:
            logger.debug("Purged expired revocations", count=removed)
        return removed

    def size(self) -> int:
        """Number of entries currently held (including not-yet-swept ones)."""
        with self._lock:
            return len(self._entries)

    def clear(self) -> None:
        """Remove every entry."""
        with self._lock:
            self._entries.clear()
