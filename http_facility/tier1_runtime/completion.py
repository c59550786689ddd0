"""
http_facility.tier1_runtime.completion
────────────────────────────────────────
Callback / awaitable duality for every public entry point.

Usage:
    # awaitable form, raises on failure
    envelope = await fac.get("/users")

    # callback form, callback(error, result) is invoked exactly once
    def on_done(err, res): ...
    task = fac.get("/users", on_done)
"""
from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any, TypeVar

from http_facility.tier0_core.logging import get_logger

T = TypeVar("T")

Callback = Callable[[BaseException | None, Any], Any]

log = get_logger(__name__)


async def _settle(coro: Awaitable[T], callback: Callback) -> None:
    try:
        result = await coro
    except asyncio.CancelledError:
        raise
    except Exception as exc:
        error: Exception | None = exc
        result = None
    else:
        error = None

    outcome = callback(error, result)
    if inspect.isawaitable(outcome):
        await outcome


def complete(
    coro: Coroutine[Any, Any, T], callback: Callback | None = None
) -> Coroutine[Any, Any, T] | asyncio.Task[None]:
    """
    Route the outcome of *coro* to *callback* when one is given, otherwise
    return *coro* for the caller to await.

    In callback form the work runs as a task on the running loop and the
    call's error is delivered only to the callback, so the task never holds
    an unretrieved exception. Exceptions raised by the callback itself are
    logged and left on the task. Without a running loop the callback form
    raises RuntimeError at once.
    """
    if callback is None:
        return coro

    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        coro.close()
        raise
    task = loop.create_task(_settle(coro, callback))
    task.add_done_callback(_log_callback_failure)
    return task


def _log_callback_failure(task: asyncio.Task[None]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        log.error("completion.callback_failed", error=repr(exc))


def split_callback(
    options: Any, callback: Callback | None
) -> tuple[Any, Callback | None]:
    """Treat a callable in the options position as the callback."""
    if callable(options):
        return None, options
    return options, callback


__all__ = ["complete", "split_callback", "Callback"]
