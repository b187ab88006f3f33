"""Request Runner — drives one storage coroutine to exactly one Completion resolution.

Invariants:
    - dispatch() returns immediately; the storage coroutine runs as a task
    - The task resolves the completion exactly once: success, GeckError, or
      StorageFailureError wrapping any other exception
    - Lifecycle hooks (after_create/after_update) run once, after a successful
      resolution, with the stored record; their failures are logged, never surfaced
    - Cancellation (request timeout) propagates; a cancelled task never resolves

Design Decisions:
    - Hooks after resolution: a slow or failing hook cannot delay or alter the response
    - Hooks may be plain functions or coroutines
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from geck.core.completion import Completion
from geck.core.domain_types import Record
from geck.core.errors import ErrorContext, GeckError, StorageFailureError
from geck.core.routing import ResponseHook, RouteRequest

logger = logging.getLogger(__name__)

AfterHook = Callable[[Record], Any]


def open_completion(
    request: RouteRequest, hook: ResponseHook, label: str,
) -> Completion:
    """Create the request's completion and let the response hook register interest."""
    completion = Completion(label)
    hook(request, completion)
    return completion


def dispatch(
    completion: Completion,
    operation: Callable[..., Awaitable[Any]],
    *args: Any,
    after: AfterHook | None = None,
) -> Completion:
    """Schedule operation(*args) and bind its task to completion."""
    task = asyncio.ensure_future(_settle(completion, operation, args, after))
    completion.attach(task)
    return completion


async def _settle(
    completion: Completion,
    operation: Callable[..., Awaitable[Any]],
    args: tuple,
    after: AfterHook | None,
) -> None:
    try:
        document = await operation(*args)
    except GeckError as e:
        if e.context.route is None:
            e.context.route = completion.label
        logger.warning(
            f"{completion.label} failed: {e.message}",
            extra={**e.log_extra(), "route": completion.label},
        )
        completion.reject(e)
        return
    except Exception as e:
        logger.error(
            f"Unexpected storage failure on {completion.label}: {e}",
            exc_info=True, extra={"route": completion.label},
        )
        completion.reject(StorageFailureError.from_exception(
            e, "unknown", ErrorContext(route=completion.label),
        ))
        return
    completion.resolve(document)
    if after is not None:
        await run_hook(after, document, completion.label)


async def run_hook(hook: AfterHook, record: Record, label: str) -> None:
    """Run a lifecycle hook; failures are logged and swallowed."""
    try:
        result = hook(record)
        if inspect.isawaitable(result):
            await result
    except Exception as e:
        logger.error(
            f"Lifecycle hook {getattr(hook, '__name__', hook)!s} failed on {label}: {e}",
            exc_info=True, extra={"route": label},
        )
