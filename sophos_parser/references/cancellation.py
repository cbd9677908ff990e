"""Cancellation for long-running reference index builds."""

import logging
import threading

logger = logging.getLogger(__name__)


class CancellationToken:
    """A one-way flag a build checks after every yield.

    Backed by a threading.Event so that a request thread may cancel a
    build running on an event loop elsewhere.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class BuildSupervisor:
    """Hands out tokens so that only the newest build can publish a result."""

    def __init__(self):
        self._lock = threading.Lock()
        self._current: CancellationToken | None = None

    def start(self) -> CancellationToken:
        """Cancel the running build, if any, and return a token for a new one."""
        with self._lock:
            if self._current is not None and not self._current.cancelled:
                logger.debug("Superseding running reference build")
                self._current.cancel()
            self._current = CancellationToken()
            return self._current

    def cancel(self) -> None:
        with self._lock:
            if self._current is not None:
                self._current.cancel()

    def is_current(self, token: CancellationToken) -> bool:
        with self._lock:
            return token is self._current and not token.cancelled
