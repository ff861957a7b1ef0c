"""Debounced push of the store to a remote sync endpoint."""

import logging
import threading
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_PUSH_DELAY = 5.0


class PushScheduler:
    """
    Coalesces rapid saves into a single remote push after a quiet period.

    Scheduling a push cancels any push still pending. The push itself runs
    on a timer thread; its failures are logged and never reach the caller,
    so the store's correctness never depends on the push.
    """

    def __init__(
        self,
        push: Callable[[Dict[str, Any]], Any],
        delay: float = DEFAULT_PUSH_DELAY,
        is_online: Callable[[], bool] = lambda: True,
        timer_factory: Callable[..., Any] = threading.Timer,
    ):
        self._push = push
        self.delay = delay
        self.is_online = is_online
        self._timer_factory = timer_factory
        self._pending = None
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def schedule(self, payload_factory: Callable[[], Dict[str, Any]]) -> bool:
        """Schedule a push, replacing any pending one. False when offline."""
        if not self.is_online():
            logger.debug("Skipping remote push - offline")
            return False
        with self._lock:
            if self._pending is not None:
                self._pending.cancel()
            self._generation += 1
            timer = self._timer_factory(
                self.delay, self._run, args=(self._generation, payload_factory)
            )
            timer.daemon = True
            self._pending = timer
        timer.start()
        logger.debug("Remote push scheduled (%.1fs)", self.delay)
        return True

    def cancel(self) -> None:
        with self._lock:
            self._generation += 1
            if self._pending is not None:
                self._pending.cancel()
                self._pending = None

    def _run(
        self, generation: int, payload_factory: Callable[[], Dict[str, Any]]
    ) -> Optional[Any]:
        with self._lock:
            # A timer that fired while being replaced must not clear its successor.
            if generation != self._generation:
                logger.debug("Skipping superseded remote push")
                return None
            self._pending = None
        logger.info("Pushing data to remote")
        try:
            result = self._push(payload_factory())
        except Exception:
            logger.exception("Remote push failed")
            return None
        logger.info("Remote push successful")
        return result
