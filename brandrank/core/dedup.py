"""In-flight request deduplication for catalog loads."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from typing import Any, Callable, Dict, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RequestDeduplicator:
    """Share one call among concurrent callers asking for the same key.

    The first caller for a key runs the function; callers arriving while it is
    still running wait for and receive the same result (or exception). The key
    is released as soon as the outcome is known, so the next call runs again.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending: Dict[str, Future] = {}

    def run(self, key: str, fn: Callable[[], T]) -> T:
        with self._lock:
            future = self._pending.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._pending[key] = future

        if not owner:
            logger.debug("Joining in-flight request for key=%s", key)
            return future.result()

        try:
            result = fn()
        except BaseException as exc:
            future.set_exception(exc)
            raise
        else:
            future.set_result(result)
            return result
        finally:
            with self._lock:
                if self._pending.get(key) is future:
                    del self._pending[key]

    def clear(self) -> None:
        """Forget every in-flight key; callers already waiting still get their outcome."""
        with self._lock:
            self._pending.clear()

    def status(self) -> Dict[str, Any]:
        with self._lock:
            return {"size": len(self._pending), "keys": list(self._pending)}
