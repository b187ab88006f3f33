"""Request Completion — one-shot channel carrying a single request's outcome.

Invariants:
    - Exactly one resolution per Completion: a second resolve/reject raises
      CompletionAlreadyResolvedError
    - Listeners run synchronously inside resolve/reject, in registration order,
      before any awaiter of wait() resumes
    - A listener added after resolution runs immediately
    - wait(timeout) never hangs forever when a timeout is given: expiry cancels the
      storage task and resolves the request with RequestTimeoutError

Design Decisions:
    - asyncio.Future underneath: single producer, awaited by the HTTP adapter
    - Own listener list instead of Future.add_done_callback: done-callbacks are
      scheduled with call_soon, so render order against wait() would depend on loop
      scheduling details
    - Listener failures are logged and isolated; they never undo a resolution
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from geck.core.domain_types import OutcomeState
from geck.core.errors import (
    CompletionAlreadyResolvedError, GeckError, RequestTimeoutError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Outcome:
    """Terminal result of a request: a document or an error."""
    state: OutcomeState
    document: Any = None
    error: GeckError | None = None

    @property
    def succeeded(self) -> bool:
        return self.state is OutcomeState.RESOLVED_SUCCESS

    @property
    def status_code(self) -> int:
        return 200 if self.succeeded else self.error.http_status

    def to_envelope(self) -> dict:
        """Convert to the REST envelope rendered by the default response hook."""
        if self.succeeded:
            return {"success": True, "response": self.document}
        return self.error.to_response()


Listener = Callable[[Outcome], None]


class Completion:
    """One-shot completion channel for a single request."""

    def __init__(self, label: str = "request"):
        self.label = label
        self._future: asyncio.Future[Outcome] = (
            asyncio.get_running_loop().create_future()
        )
        self._listeners: list[Listener] = []
        self._task: asyncio.Future | None = None

    @property
    def done(self) -> bool:
        return self._future.done()

    @property
    def state(self) -> OutcomeState:
        if not self.done:
            return OutcomeState.PENDING
        return self._future.result().state

    @property
    def outcome(self) -> Outcome:
        """The resolved outcome. Raises InvalidStateError while pending."""
        return self._future.result()

    def attach(self, task: asyncio.Future) -> None:
        """Bind the storage task that will resolve this completion."""
        self._task = task

    def add_listener(self, listener: Listener) -> None:
        """Register interest in the outcome."""
        if self.done:
            self._notify(listener, self.outcome)
            return
        self._listeners.append(listener)

    def resolve(self, document: Any = None) -> None:
        self._settle(Outcome(OutcomeState.RESOLVED_SUCCESS, document=document))

    def reject(self, error: GeckError) -> None:
        self._settle(Outcome(OutcomeState.RESOLVED_ERROR, error=error))

    async def wait(self, timeout: float | None = None) -> Outcome:
        """Await the outcome; on timeout cancel the storage task and reject."""
        try:
            return await asyncio.wait_for(asyncio.shield(self._future), timeout)
        except asyncio.TimeoutError:
            if not self.done:
                if self._task is not None:
                    self._task.cancel()
                logger.warning(
                    f"Request {self.label} timed out after {timeout}s",
                    extra={"route": self.label, "error_code": "REQUEST_TIMEOUT"},
                )
                self.reject(RequestTimeoutError(timeout))
            return self.outcome

    def _settle(self, outcome: Outcome) -> None:
        if self.done:
            raise CompletionAlreadyResolvedError(self.label)
        self._future.set_result(outcome)
        listeners, self._listeners = self._listeners, []
        for listener in listeners:
            self._notify(listener, outcome)

    def _notify(self, listener: Listener, outcome: Outcome) -> None:
        try:
            listener(outcome)
        except Exception as e:
            logger.error(
                f"Listener failed for {self.label}: {e}",
                exc_info=True, extra={"route": self.label},
            )
