"""
http_facility.tier2_reliability.lifecycle
───────────────────────────────────────────
Start/stop lifecycle by composition. Anything with async ``start`` and
``stop`` satisfies ``Lifecycle``; ``LifecycleHooks`` lets a host process
attach its own work around a component's start and stop.

Usage:
    hooks = LifecycleHooks()
    hooks.on_start("warmup", warm_cache)
    hooks.on_stop("flush", flush_metrics)

    await hooks.run_start()   # registration order
    await hooks.run_stop()    # reverse order
"""
from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from http_facility.tier0_core.logging import get_logger

log = get_logger(__name__)

Hook = Callable[[], Coroutine[Any, Any, Any] | Any]


@runtime_checkable
class Lifecycle(Protocol):
    async def start(self) -> None: ...
    async def stop(self) -> None: ...


@dataclass
class _Registered:
    name: str
    fn: Hook


class LifecycleHooks:
    def __init__(self) -> None:
        self._start: list[_Registered] = []
        self._stop: list[_Registered] = []

    def on_start(self, name: str, fn: Hook) -> None:
        """Register a sync or async callable to run on start."""
        self._start.append(_Registered(name, fn))

    def on_stop(self, name: str, fn: Hook) -> None:
        """Register a sync or async callable to run on stop."""
        self._stop.append(_Registered(name, fn))

    async def run_start(self) -> None:
        for hook in self._start:
            await _call(hook)

    async def run_stop(self) -> None:
        # Stop hooks unwind in reverse; every hook runs, first failure re-raised
        first_error: Exception | None = None
        for hook in reversed(self._stop):
            try:
                await _call(hook)
            except Exception as exc:
                log.error("lifecycle.stop_hook_failed", hook=hook.name, error=str(exc))
                if first_error is None:
                    first_error = exc
        if first_error is not None:
            raise first_error


async def _call(hook: _Registered) -> None:
    result = hook.fn()
    if asyncio.iscoroutine(result):
        await result


__all__ = ["Lifecycle", "LifecycleHooks"]
