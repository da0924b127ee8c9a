"""Cache-bust counter for image preview URLs.

Preview URLs such as ``/images/{id}`` and ``/preview`` do not change when the
service reprocesses an image, so browsers and proxies happily serve the stale
PNG. Appending ``?cache=N`` with a counter that grows after every invalidating
mutation turns each refetch into a cache miss.

Usage:
    buster = CacheBust()
    buster.bust                  # "cache=0"
    buster.refresh()
    buster.apply(image.url)      # "http://.../images/abc?cache=1"

    unsubscribe = buster.subscribe(lambda value: rerender())
"""

import threading
from collections.abc import Callable

import structlog

__all__ = ["CacheBust", "cache_buster"]

logger = structlog.get_logger(__name__)

Listener = Callable[[int], None]


class CacheBust:
    """Observable, monotonically increasing counter with a derived cache key."""

    def __init__(self) -> None:
        self._buster = 0
        self._lock = threading.Lock()
        self._listeners: list[Listener] = []

    @property
    def value(self) -> int:
        return self._buster

    @property
    def bust(self) -> str:
        """Cache key query fragment, recomputed on every read."""
        return f"cache={self._buster}"

    def apply(self, url: str) -> str:
        """Append the current cache key to ``url``."""
        separator = "&" if "?" in url else "?"
        return f"{url}{separator}{self.bust}"

    def refresh(self) -> int:
        """Increment the counter and notify subscribers with the new value.

        Subscriber exceptions are logged and do not stop the remaining
        subscribers from being notified.
        """
        with self._lock:
            self._buster += 1
            value = self._buster
            listeners = list(self._listeners)

        logger.debug("cache_bust_refreshed", value=value)
        for listener in listeners:
            try:
                listener(value)
            except Exception:
                # Counter has already moved; a failing subscriber is only logged
                logger.exception("cache_bust_listener_failed", value=value, listener=repr(listener))
        return value

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; returns a callable that unregisters it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe


# Shared by every Image and Printer operation in the process
cache_buster = CacheBust()
