"""Cancellable context handed to every lookup ``run`` call.

Network and subprocess lookups register ``on_cancel`` hooks to abort in-flight
work; local lookups only call ``raise_if_cancelled`` between terms.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, List, Optional

from .errors import LookupCancelledError

logger = logging.getLogger(__name__)


class LookupContext:
    """Cancellation flag with an optional deadline."""

    def __init__(self, deadline: Optional[float] = None) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], None]] = []
        self._deadline = deadline
        self._timer: Optional[threading.Timer] = None
        if deadline is not None:
            delay = max(0.0, deadline - time.monotonic())
            self._timer = threading.Timer(delay, self.cancel)
            self._timer.daemon = True
            self._timer.start()

    @classmethod
    def background(cls) -> "LookupContext":
        """A context that is never cancelled unless ``cancel`` is called."""
        return cls()

    @classmethod
    def with_timeout(cls, seconds: float) -> "LookupContext":
        return cls(deadline=time.monotonic() + seconds)

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def remaining(self) -> Optional[float]:
        """Seconds until the deadline, ``None`` when there is no deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._event.wait(timeout)

    def cancel(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = list(self._callbacks)
            self._callbacks.clear()
        if self._timer is not None:
            self._timer.cancel()
        for callback in callbacks:
            try:
                callback()
            except Exception as e:  # pragma: no cover - best effort abort
                logger.debug("Cancellation hook %r failed: %s", callback, e)

    def on_cancel(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Run ``callback`` on cancellation; returns a function that unregisters it.

        If the context is already cancelled the callback runs immediately.
        """
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)

                def unregister() -> None:
                    with self._lock:
                        if callback in self._callbacks:
                            self._callbacks.remove(callback)

                return unregister
        callback()
        return lambda: None

    def raise_if_cancelled(self, term: Optional[str] = None) -> None:
        if self._event.is_set():
            where = f" before '{term}'" if term is not None else ""
            raise LookupCancelledError(f"lookup cancelled{where}", term=term)
