"""Cooperative cancellation shared by the orchestrator and its workers."""

import logging
import threading

logger = logging.getLogger(__name__)


class ShutdownController:
    """
    A single stop flag, polled by workers between requests and groups.

    Setting it never interrupts a request already in flight. It is not tied
    to any signal, so tests and timeouts can trigger it directly.
    """

    def __init__(self):
        self._event = threading.Event()

    def request_stop(self):
        """Signals every worker to stop. Calling it again has no effect."""
        if not self._event.is_set():
            logger.info("Shutting down ...")
        self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()
