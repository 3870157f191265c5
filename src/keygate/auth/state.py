"""Anti-forgery state for the OAuth redirect.

``mint_state`` and ``verify_state`` are the primitives. Storing the expected
value between the redirect and the callback is the session layer's job;
``StateVerifier`` is a small in-process store for callers without one.
"""

import secrets
import threading
import time

from loguru import logger


def mint_state(nbytes: int = 32) -> str:
    """Return a new unpredictable state value."""
    return secrets.token_urlsafe(nbytes)


def verify_state(expected: str | None, received: str | None) -> bool:
    """Compare states in constant time. Empty values never match.

    The caller must discard ``expected`` after one call so a replayed
    callback fails.
    """
    if not expected or not received:
        return False
    return secrets.compare_digest(expected.encode(), received.encode())


class StateVerifier:
    """Single-use state store.

    Every issued value is accepted at most once, and only within ``ttl``
    seconds of being issued.
    """

    def __init__(self, ttl: float = 600.0):
        self.ttl = ttl
        self._pending: dict[str, float] = {}
        self._lock = threading.Lock()

    def issue(self) -> str:
        state = mint_state()
        with self._lock:
            self._purge()
            self._pending[state] = time.monotonic() + self.ttl
        return state

    def consume(self, received: str | None) -> bool:
        """Verify a callback state and discard it.

        Args:
            received: State value returned by the identity backend

        Returns:
            True only for a known, unexpired, not yet consumed state
        """
        with self._lock:
            self._purge()
            for expected in list(self._pending):
                if verify_state(expected, received):
                    del self._pending[expected]
                    return True

        logger.warning("Rejected unknown or replayed OAuth state")
        return False

    def __len__(self) -> int:
        with self._lock:
            self._purge()
            return len(self._pending)

    def _purge(self) -> None:
        now = time.monotonic()
        for state, deadline in list(self._pending.items()):
            if deadline <= now:
                del self._pending[state]
