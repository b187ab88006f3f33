"""Readiness Gate — deferred callbacks until a backend connection is established.

Invariants:
    - Callbacks registered before mark_ready() run exactly once, in order, on mark_ready()
    - Callbacks registered after mark_ready() run immediately
    - mark_ready() is idempotent
"""

import logging

from geck.core.driver_protocol import ReadyCallback

logger = logging.getLogger(__name__)


class Readiness:
    """Tracks one backend's connected state and its waiting callbacks."""

    def __init__(self, name: str):
        self._name = name
        self._ready = False
        self._waiting: list[ReadyCallback] = []

    @property
    def is_ready(self) -> bool:
        return self._ready

    def when_ready(self, callback: ReadyCallback) -> None:
        if self._ready:
            callback()
            return
        self._waiting.append(callback)

    def mark_ready(self) -> None:
        if self._ready:
            return
        self._ready = True
        waiting, self._waiting = self._waiting, []
        logger.info(f"Storage backend ready: {self._name}", extra={"collection": self._name})
        for callback in waiting:
            callback()
