"""Owning lifecycle for trackers.

A Session represents the embedding context a tracker lives in (a project, a
window, a CLI invocation). Once disposed it stays disposed, and work guarded
by the session can no longer start.
"""

import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from types import TracebackType
from typing import Self

import structlog


class Session:
    """Terminal liveness flag with teardown callbacks.

    dispose() and guard() share one reentrant lock. Code that checks
    is_disposed inside guard() therefore either completes before dispose()
    returns or observes the session as disposed.

    Example:
        >>> session = Session()
        >>> with session.guard():
        ...     if not session.is_disposed:
        ...         publish()
        >>> session.dispose()
    """

    __slots__ = ("_callbacks", "_disposed", "_lock", "_name")

    def __init__(self, name: str = "session") -> None:
        """Initialize a live session.

        Args:
            name: Label used in log messages.
        """
        self._name: str = name
        self._lock: threading.RLock = threading.RLock()
        self._disposed: bool = False
        self._callbacks: list[Callable[[], object]] = []

    @property
    def name(self) -> str:
        """Return the session label."""
        return self._name

    @property
    def is_disposed(self) -> bool:
        """Return True once dispose() has been called."""
        return self._disposed

    @contextmanager
    def guard(self) -> Iterator[Self]:
        """Hold the disposal lock for the duration of the block.

        Yields:
            This session; check is_disposed before doing guarded work.
        """
        with self._lock:
            yield self

    def register(self, callback: Callable[[], object]) -> None:
        """Register a callback to run when the session is disposed.

        A callback registered after disposal runs immediately.

        Args:
            callback: Zero-argument callable.
        """
        with self._lock:
            if not self._disposed:
                self._callbacks.append(callback)
                return
        _ = callback()

    def dispose(self) -> None:
        """Dispose the session and run teardown callbacks once.

        Callbacks run in reverse registration order. An exception from one
        callback is logged and the remaining callbacks still run. Calling
        dispose() again does nothing.
        """
        with self._lock:
            if self._disposed:
                return
            self._disposed = True
            callbacks = list(reversed(self._callbacks))
            self._callbacks.clear()

        logger = structlog.get_logger("repostate")
        for callback in callbacks:
            try:
                _ = callback()
            except Exception as e:  # noqa: BLE001
                logger.warning(
                    "session_callback_failed", session=self._name, error=str(e)
                )

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.dispose()
