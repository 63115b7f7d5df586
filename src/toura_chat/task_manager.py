"""Lifecycle tracking for the session's background asyncio tasks."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
import logging
from typing import Any

LOGGER = logging.getLogger(__name__)


class TaskManager:
    """Own named tasks (the in-flight reply) and fire-and-forget tasks (speech)."""

    def __init__(self) -> None:
        self._named: dict[str, asyncio.Task[Any]] = {}
        self._anonymous: set[asyncio.Task[Any]] = set()

    def spawn(
        self, coro: Coroutine[Any, Any, Any], name: str | None = None
    ) -> asyncio.Task[Any]:
        """Schedule ``coro`` on the running loop and track the resulting task."""
        task = asyncio.create_task(coro)
        self.add(task, name=name)
        return task

    def add(self, task: asyncio.Task[Any], name: str | None = None) -> None:
        """Register a task, optionally under a unique name.

        Named tasks replace any prior task with the same name (the old task
        is *not* cancelled automatically) and drop themselves from tracking
        when they finish. Anonymous tasks self-clean on completion and have
        unhandled exceptions logged.
        """
        if name is not None:
            self._named[name] = task
            task.add_done_callback(lambda done: self._forget_named(name, done))
        else:
            self._anonymous.add(task)
            task.add_done_callback(self._anonymous.discard)
            task.add_done_callback(self._log_anonymous_exception)

    def _forget_named(self, name: str, task: asyncio.Task[Any]) -> None:
        if self._named.get(name) is task:
            del self._named[name]

    def _log_anonymous_exception(self, task: asyncio.Task[Any]) -> None:
        """Log unhandled exceptions from anonymous tasks so they are not silently lost."""
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            LOGGER.warning(
                "task.anonymous.exception",
                extra={
                    "event": "task.anonymous.exception",
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                },
            )

    async def cancel(self, name: str) -> None:
        """Cancel a named task and await its completion."""
        task = self._named.pop(name, None)
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def cancel_all(self) -> None:
        """Cancel every tracked task and await them all."""
        all_tasks: list[asyncio.Task[Any]] = list(self._named.values()) + [
            t for t in self._anonymous if not t.done()
        ]
        for task in all_tasks:
            if not task.done():
                task.cancel()
        for task in all_tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception:  # noqa: BLE001 - already reported by done callbacks.
                pass
        self._named.clear()
        self._anonymous.clear()

    async def wait(self, name: str) -> None:
        """Await a named task without cancelling it."""
        task = self._named.get(name)
        if task is None or task.done():
            return
        try:
            await asyncio.shield(task)
        except asyncio.CancelledError:
            if not task.cancelled():
                raise
