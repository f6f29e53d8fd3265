"""Cooperative cancellation for threads blocked in a limiter.

Threads cannot be interrupted from outside, so a blocked ``acquire`` takes
an optional token. Cancelling the token runs its callbacks, which the
limiter uses to wake the waiting thread.
"""

from __future__ import annotations

import itertools
import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)


class CancellationToken:
    """One-shot cancellation signal shared between threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cancelled = False
        self._callbacks: dict[int, Callable[[], None]] = {}
        self._ids = itertools.count()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def register(self, callback: Callable[[], None]) -> int:
        """Run ``callback`` when the token is cancelled.

        If the token is already cancelled the callback runs immediately.

        Returns:
            Handle to pass to ``unregister``.
        """
        with self._lock:
            handle = next(self._ids)
            if not self._cancelled:
                self._callbacks[handle] = callback
                return handle
        callback()
        return handle

    def unregister(self, handle: int) -> None:
        with self._lock:
            self._callbacks.pop(handle, None)

    def cancel(self) -> None:
        """Cancel the token and run registered callbacks once."""
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            callbacks = list(self._callbacks.values())
            self._callbacks.clear()

        # Callbacks take other locks; run them after releasing ours.
        for callback in callbacks:
            callback()
        logger.debug("cancellation.cancelled", extra={"callbacks": len(callbacks)})
