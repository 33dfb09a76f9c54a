"""Command queue - single-writer funnel for layout mutations

Gesture handling, lifecycle callbacks and API calls enqueue LayoutCommands;
one consumer drains them serially against the LayoutManager.

Policy:
- capacity QUEUE_MAX_SIZE, debug log above the high watermark
- preview commands are dropped above the low-priority watermark
- protected commands are never dropped
- on overflow the oldest preview, then the oldest unprotected command, is dropped
- runs of consecutive previews keep only the latest per (op, stream)
"""

import itertools
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from ..config import (
    LOW_PRIORITY_COMMANDS,
    METRICS_ENABLED,
    PROTECTED_COMMANDS,
    QUEUE_HIGH_WATERMARK,
    QUEUE_LOW_PRIORITY_DROP_WATERMARK,
    QUEUE_MAX_SIZE,
)
from ..telemetry import get_logger, metrics

logger = get_logger(__name__)

T = TypeVar("T")

_command_ids = itertools.count(1)


@dataclass
class LayoutCommand:
    """One queued manager operation.

    Attributes:
        op: LayoutManager method name, or a supervisor-level op ("gesture", "intent", ...)
        kwargs: keyword arguments for the operation
        stream_id: target stream, taken from kwargs when not given
        source: who submitted it ("api", "gesture", "stream_ended", ...)
        low_priority / protected: per-command overrides of the config sets
        tag: extra merge key for low-priority commands
        seq: enqueue order
        result / error: filled in after processing
    """
    op: str
    kwargs: dict[str, Any] = field(default_factory=dict)
    stream_id: str | None = None
    source: str = "api"
    low_priority: bool = False
    protected: bool = False
    tag: str = ""
    seq: int = field(default_factory=lambda: next(_command_ids))
    timestamp: float = field(default_factory=time.time)
    result: Any = None
    error: Exception | None = None

    def __post_init__(self):
        if self.stream_id is None:
            self.stream_id = self.kwargs.get("stream_id") or self.kwargs.get("key")

    @property
    def is_low_priority(self) -> bool:
        return self.low_priority or self.op in LOW_PRIORITY_COMMANDS

    @property
    def is_protected(self) -> bool:
        return self.protected or self.op in PROTECTED_COMMANDS

    @property
    def merge_key(self) -> tuple[str, str | None, str]:
        return (self.op, self.stream_id, self.tag)

    def __str__(self) -> str:
        target = f":{self.stream_id}" if self.stream_id else ""
        return f"{self.op}{target}#{self.seq}"


class ActorQueue(Generic[T]):
    """Bounded FIFO processed by a single consumer.

    Attributes:
        name: label used in logs and metrics
    """

    def __init__(
        self,
        name: str,
        max_size: int = QUEUE_MAX_SIZE,
        high_watermark: float = QUEUE_HIGH_WATERMARK,
    ):
        self.name = name
        self._max_size = max_size
        self._high_watermark = high_watermark
        self._queue: deque[T] = deque()
        self._processing = False

    def enqueue(self, item: T) -> bool:
        """Append; drops the oldest item when full.

        Returns:
            always True
        """
        if len(self._queue) >= self._max_size:
            self._queue.popleft()
            logger.warning(f"[Queue:{self.name}] Dropped oldest item (queue full)")
            if METRICS_ENABLED:
                metrics.inc("queue.dropped", {"queue": self.name})

        self._append(item)
        return True

    def _append(self, item: T) -> None:
        self._queue.append(item)

        depth = len(self._queue)
        if METRICS_ENABLED:
            metrics.gauge("queue.depth", depth, {"queue": self.name})

        if depth >= self._max_size * self._high_watermark:
            logger.debug(
                f"[Queue:{self.name}] High watermark: {depth}/{self._max_size} "
                f"({depth / self._max_size * 100:.0f}%)"
            )

    def dequeue(self) -> T | None:
        if not self._queue:
            return None

        item = self._queue.popleft()
        if METRICS_ENABLED:
            metrics.gauge("queue.depth", len(self._queue), {"queue": self.name})
        return item

    def peek(self) -> T | None:
        if not self._queue:
            return None
        return self._queue[0]

    def clear(self) -> int:
        """Drop everything.

        Returns:
            number of items removed
        """
        count = len(self._queue)
        self._queue.clear()
        if METRICS_ENABLED:
            metrics.gauge("queue.depth", 0, {"queue": self.name})
        return count

    # === State ===

    def __len__(self) -> int:
        return len(self._queue)

    def __bool__(self) -> bool:
        return len(self._queue) > 0

    @property
    def is_empty(self) -> bool:
        return len(self._queue) == 0

    @property
    def depth(self) -> int:
        return len(self._queue)

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def is_processing(self) -> bool:
        return self._processing

    def set_processing(self, value: bool) -> None:
        self._processing = value


class CommandQueue(ActorQueue[LayoutCommand]):
    """LayoutCommand queue with priority-aware dropping and preview merging."""

    def __init__(self, name: str = "layout", max_size: int = QUEUE_MAX_SIZE):
        super().__init__(name, max_size)
        self._low_priority_drops = 0
        self._overflow_drops = 0

    @property
    def low_priority_drops(self) -> int:
        return self._low_priority_drops

    @property
    def overflow_drops(self) -> int:
        return self._overflow_drops

    def enqueue(self, item: LayoutCommand) -> bool:
        """Enqueue with the priority policy.

        Returns:
            False if the command was dropped or rejected
        """
        if self._should_drop_low_priority(item):
            logger.debug(
                f"[Queue:{self.name}] Dropped low-priority {item} "
                f"(depth={len(self._queue)}/{self._max_size})"
            )
            self._low_priority_drops += 1
            if METRICS_ENABLED:
                metrics.inc("queue.low_priority_dropped", {"queue": self.name})
            return False

        if len(self._queue) >= self._max_size and self._drop_for_overflow() is None:
            logger.warning(
                f"[Queue:{self.name}] Queue full with protected commands, rejecting {item}"
            )
            if METRICS_ENABLED:
                metrics.inc("queue.overflow_rejected", {"queue": self.name})
            return False

        self._append(item)
        return True

    def _should_drop_low_priority(self, item: LayoutCommand) -> bool:
        if item.is_protected or not item.is_low_priority:
            return False
        return len(self._queue) >= self._max_size * QUEUE_LOW_PRIORITY_DROP_WATERMARK

    def _drop_for_overflow(self) -> LayoutCommand | None:
        """Drop the oldest preview, else the oldest unprotected command.

        Returns:
            the dropped command, or None if every queued command is protected
        """
        for predicate in (
            lambda c: c.is_low_priority and not c.is_protected,
            lambda c: not c.is_protected,
        ):
            for index, queued in enumerate(self._queue):
                if predicate(queued):
                    del self._queue[index]
                    self._overflow_drops += 1
                    logger.debug(f"[Queue:{self.name}] Overflow: dropped {queued}")
                    if METRICS_ENABLED:
                        metrics.inc("queue.dropped", {"queue": self.name})
                    return queued
        return None

    def merge_previews(self) -> int:
        """Collapse runs of consecutive previews to the latest per (op, stream).

        Returns:
            number of commands merged away
        """
        if len(self._queue) < 2:
            return 0

        merged = 0
        new_queue: deque[LayoutCommand] = deque()
        run: dict[tuple[str, str | None, str], LayoutCommand] = {}

        for command in self._queue:
            if command.is_low_priority:
                key = command.merge_key
                if key in run:
                    merged += 1
                    del run[key]
                run[key] = command
            else:
                new_queue.extend(run.values())
                run = {}
                new_queue.append(command)
        new_queue.extend(run.values())

        self._queue = new_queue

        if merged:
            logger.debug(f"[Queue:{self.name}] Merged {merged} preview commands")
            if METRICS_ENABLED:
                metrics.inc("queue.preview_merged", {"queue": self.name}, merged)
        return merged

    def debug_snapshot(self, max_pending: int = 10) -> dict:
        return {
            "depth": len(self._queue),
            "max_size": self._max_size,
            "is_processing": self._processing,
            "low_priority_drops": self._low_priority_drops,
            "overflow_drops": self._overflow_drops,
            "pending": [str(c) for c in list(self._queue)[:max_pending]],
        }
