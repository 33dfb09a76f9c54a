"""Timer - periodic task service

Runs interval tasks on one asyncio loop. Callbacks may be sync or async;
a failing callback is logged and counted but does not stop other tasks.

Usage:
    timer = Timer()

    # poll the gesture translator for timed-out drags
    timer.register_interval("gesture_poll", 0.1, supervisor.poll_gestures)

    await timer.run()
    timer.stop()
"""

import asyncio
import inspect
import time
from dataclasses import dataclass
from typing import Callable, Any, Coroutine

from .telemetry import get_logger, metrics
from .config import METRICS_ENABLED, TIMER_TICK_INTERVAL

logger = get_logger(__name__)


@dataclass
class IntervalTask:
    """Periodic task"""
    name: str
    interval: float  # seconds
    callback: Callable[[], Any | Coroutine[Any, Any, Any]]
    last_run: float = 0.0  # monotonic time of the last run


class Timer:
    """Interval task runner

    One Timer drives all periodic work of a LayoutSupervisor; its lifecycle is
    owned by whoever constructed it.
    """

    def __init__(self, tick_interval: float | None = None):
        """
        Args:
            tick_interval: tick period in seconds, None uses config
        """
        self._tick_interval = tick_interval or TIMER_TICK_INTERVAL
        self._interval_tasks: dict[str, IntervalTask] = {}
        self._running = False

    def register_interval(
        self,
        name: str,
        interval: float,
        callback: Callable[[], Any | Coroutine[Any, Any, Any]]
    ) -> None:
        """Register (or replace) a periodic task.

        Args:
            name: task name, used for logs and unregistering
            interval: period in seconds
            callback: sync or async callable
        """
        self._interval_tasks[name] = IntervalTask(
            name=name,
            interval=interval,
            callback=callback,
        )
        logger.debug(f"[Timer] Registered interval task: {name} ({interval}s)")

    def unregister_interval(self, name: str) -> bool:
        """Remove a periodic task.

        Returns:
            True if the task existed
        """
        if name in self._interval_tasks:
            del self._interval_tasks[name]
            logger.debug(f"[Timer] Unregistered interval task: {name}")
            return True
        return False

    async def run(self) -> None:
        """Run the tick loop until stop() is called."""
        if self._running:
            logger.warning("[Timer] Already running")
            return

        self._running = True
        logger.info(f"[Timer] Started (tick={self._tick_interval}s)")

        try:
            while self._running:
                await self._tick()
                await asyncio.sleep(self._tick_interval)
        except asyncio.CancelledError:
            logger.info("[Timer] Cancelled")
            raise
        finally:
            self._running = False

    def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        logger.info("[Timer] Stopping...")

    async def _tick(self) -> None:
        """Run every task whose interval has elapsed."""
        now = time.monotonic()

        for task in list(self._interval_tasks.values()):
            if now - task.last_run >= task.interval:
                task.last_run = now
                await self._execute_callback(task.name, task.callback)

    async def _execute_callback(
        self,
        name: str,
        callback: Callable[[], Any | Coroutine[Any, Any, Any]]
    ) -> None:
        """Run one callback, isolating its failure."""
        try:
            result = callback()
            if inspect.iscoroutine(result):
                await result
        except Exception as e:
            logger.error(f"[Timer] Task '{name}' failed: {e}")
            if METRICS_ENABLED:
                metrics.inc("timer.errors", {"task": name})

    # === State (tests) ===

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def interval_task_count(self) -> int:
        return len(self._interval_tasks)

    def get_interval_tasks(self) -> list[str]:
        return list(self._interval_tasks.keys())
