"""
Process-wide "request in flight" counter for the UI layer.
"""
import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager

logger = logging.getLogger(__name__)


class LoadingSignal:
    def __init__(self) -> None:
        self._count = 0
        self._listeners: list[Callable[[bool], None]] = []

    @property
    def count(self) -> int:
        return self._count

    @property
    def is_loading(self) -> bool:
        return self._count > 0

    def subscribe(self, callback: Callable[[bool], None]) -> None:
        """Call callback(is_loading) whenever the signal flips between idle and busy."""
        self._listeners.append(callback)

    def unsubscribe(self, callback: Callable[[bool], None]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def start(self) -> None:
        self._count += 1
        if self._count == 1:
            self._notify()

    def stop(self) -> None:
        if self._count == 0:
            logger.debug("stop() with no request in flight; ignoring")
            return
        self._count -= 1
        if self._count == 0:
            self._notify()

    @contextmanager
    def track(self) -> Iterator[None]:
        """Count one request for the duration of the block, whatever its outcome."""
        self.start()
        try:
            yield
        finally:
            self.stop()

    def _notify(self) -> None:
        busy = self.is_loading
        for callback in list(self._listeners):
            try:
                callback(busy)
            except Exception:
                logger.exception("Loading listener failed")
