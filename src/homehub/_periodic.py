"""Cancellable fixed-interval timers on the running event loop."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable

_logger = logging.getLogger(__name__)

TickCallback = Callable[[], Awaitable[None] | None]


class PeriodicTask:
    """Run *callback* every *interval* seconds until stopped.

    ``start()`` and ``stop()`` are idempotent. ``stop()`` cancels the pending
    sleep, so no tick runs after it returns. A failing tick is logged and the
    timer keeps going.
    """

    def __init__(
        self,
        name: str,
        interval: float,
        callback: TickCallback,
        *,
        immediate: bool = False,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.name = name
        self.interval = interval
        self._callback = callback
        self._immediate = immediate
        self._task: asyncio.Task[None] | None = None
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name=f"homehub-timer:{self.name}")
        _logger.debug("Timer %s started interval=%.3fs", self.name, self.interval)

    async def stop(self) -> None:
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        _logger.debug("Timer %s stopped after %d ticks", self.name, self.ticks)

    async def _run(self) -> None:
        if not self._immediate:
            await asyncio.sleep(self.interval)
        while True:
            await self._tick()
            await asyncio.sleep(self.interval)

    async def _tick(self) -> None:
        self.ticks += 1
        try:
            result = self._callback()
            if inspect.isawaitable(result):
                await result
        except Exception:
            _logger.exception("Timer %s tick failed", self.name)
