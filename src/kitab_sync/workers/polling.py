"""Polling loop: one recurring fetch task per resource key."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Coroutine

from kitab_sync.application.exceptions import AppError
from kitab_sync.application.ports.clock import Clock, SystemClock

logger = logging.getLogger(__name__)

FetchFn = Callable[[], Coroutine[Any, Any, None]]


class Subscription:
    """Handle for one running poll. ``cancel()`` is synchronous and idempotent."""

    def __init__(self, key: str, interval: float) -> None:
        self.key = key
        self.interval = interval
        self.ticks = 0
        self._task: asyncio.Task[None] | None = None
        self._cancelled = False
        self._on_cancel: Callable[[Subscription], None] | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def active(self) -> bool:
        return not self._cancelled and self._task is not None and not self._task.done()

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if self._task is not None:
            self._task.cancel()
        if self._on_cancel is not None:
            self._on_cancel(self)
        logger.debug("Polling %s cancelled after %d tick(s)", self.key, self.ticks)


class PollingLoop:
    """Schedules recurring fetches.

    A fetch runs immediately on subscribe, then ``interval`` seconds after each
    completion, so ticks for one key never overlap. Subscribing again for a key
    cancels the previous subscription first.
    """

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or SystemClock()
        self._subs: dict[str, Subscription] = {}
        # Cancelled subscriptions leave _subs at once; their tasks stay here until done.
        self._tasks: set[asyncio.Task[None]] = set()

    def subscribe(self, key: str, interval: float, fetch: FetchFn) -> Subscription:
        previous = self._subs.get(key)
        if previous is not None:
            previous.cancel()

        sub = Subscription(key, interval)
        sub._on_cancel = self._forget
        sub._task = asyncio.create_task(self._run(sub, fetch), name=f"poll:{key}")
        self._tasks.add(sub._task)
        sub._task.add_done_callback(self._tasks.discard)
        self._subs[key] = sub
        logger.debug("Polling %s every %.1fs", key, interval)
        return sub

    def get(self, key: str) -> Subscription | None:
        return self._subs.get(key)

    def active_keys(self) -> list[str]:
        return [k for k, s in self._subs.items() if not s.cancelled]

    def cancel(self, key: str) -> None:
        sub = self._subs.get(key)
        if sub is not None:
            sub.cancel()

    def cancel_all(self) -> None:
        for sub in list(self._subs.values()):
            sub.cancel()

    async def aclose(self) -> None:
        """Cancel every subscription and wait for the tasks to unwind."""
        self.cancel_all()
        tasks = [t for t in self._tasks if not t.done()]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _forget(self, sub: Subscription) -> None:
        if self._subs.get(sub.key) is sub:
            del self._subs[sub.key]

    async def _run(self, sub: Subscription, fetch: FetchFn) -> None:
        while not sub.cancelled:
            sub.ticks += 1
            try:
                await fetch()
            except asyncio.CancelledError:
                raise
            except AppError as exc:
                logger.warning("Polling %s failed: %s", sub.key, exc.detail or exc)
            except Exception:
                logger.exception("Polling %s loop error", sub.key)
            if sub.cancelled:
                break
            await self._clock.sleep(sub.interval)
