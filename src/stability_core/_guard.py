from __future__ import annotations

import sys
import threading
from types import TracebackType


class StateGuard:
    """Guard short, await-free critical sections over per-instance state.

    On GIL builds the event loop already serializes these sections, so the
    guard is a no-op. Free-threaded builds get a real ``threading.Lock``.
    """

    def __init__(self) -> None:
        is_gil_enabled = getattr(sys, "_is_gil_enabled", None)
        self._gil_enabled = True if is_gil_enabled is None else bool(is_gil_enabled())
        self._thread_lock: threading.Lock | None = None
        if not self._gil_enabled:
            self._thread_lock = threading.Lock()

    def __enter__(self) -> StateGuard:
        if self._thread_lock is not None:
            self._thread_lock.acquire()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._thread_lock is not None:
            self._thread_lock.release()
