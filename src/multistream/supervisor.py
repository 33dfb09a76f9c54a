"""LayoutSupervisor - serialized writer in front of the LayoutManager

Every mutation source funnels through one CommandQueue:
- API / UI calls: submit(op, **kwargs)
- raw input: feed_gesture(event) -> translator -> dispatcher
- player callbacks: stream_ended(stream_id) -> remove_stream
- timer: poll_gestures() (tap/long-press/timeout intents) and process_queued()

After each command the supervisor pushes audio routing and start/stop
notifications to the PlaybackEngine.
"""

import inspect
from collections import deque
from collections.abc import Callable
from typing import Any

from .adapters.base import PlaybackEngine, StreamRegistry
from .config import GESTURE_POLL_INTERVAL, METRICS_ENABLED, TIMER_TICK_INTERVAL
from .errors import LayoutError
from .gesture.dispatcher import DispatchResult, IntentDispatcher
from .gesture.translator import GestureTranslator
from .gesture.types import GestureEvent, GestureKind, GesturePhase
from .layout.manager import LayoutManager
from .layout.queue import CommandQueue, LayoutCommand
from .telemetry import format_stream_log, get_logger, metrics
from .timer import Timer

logger = get_logger(__name__)

# (command, error) -> None, may be async
OnErrorCallback = Callable[[LayoutCommand, LayoutError], Any]

# LayoutManager methods callable through submit()
MANAGER_OPERATIONS = frozenset({
    "set_container_size",
    "set_template",
    "add_stream",
    "remove_stream",
    "move_slot",
    "resize_slot",
    "bring_to_front",
    "send_to_back",
    "set_focus",
    "clear_focus",
    "toggle_fullscreen",
    "exit_fullscreen",
    "set_audio_active",
    "mute_all",
    "auto_arrange",
    "detach_to_pip",
    "reattach_from_pip",
    "move_pip",
    "resize_pip",
    "minimize_pip",
    "maximize_pip",
    "restore_pip",
    "bring_pip_to_front",
    "close_pip",
    "preview_move",
    "preview_resize",
    "discard_preview",
    "commit_drag",
    "commit_resize",
    "restore",
})

# Selection-mode batch operations handled by the dispatcher
SELECTION_OPERATIONS = frozenset({"remove_selected", "detach_selected", "exit_selection"})

ERROR_HISTORY_MAX_LENGTH = 50

_TIMER_TASK_POLL = "gesture_poll"
_TIMER_TASK_DRAIN = "layout_queue"


class LayoutSupervisor:
    """Single writer for one LayoutManager.

    Attributes:
        manager: the layout owner
        translator: gesture recognizer
        dispatcher: intent applier (holds selection mode)
        queue: pending commands
    """

    def __init__(
        self,
        manager: LayoutManager,
        translator: GestureTranslator | None = None,
        dispatcher: IntentDispatcher | None = None,
        queue: CommandQueue | None = None,
        playback: PlaybackEngine | None = None,
        registry: StreamRegistry | None = None,
    ):
        self.manager = manager
        self.translator = translator or GestureTranslator()
        self.dispatcher = dispatcher or IntentDispatcher(manager)
        self.queue = queue or CommandQueue()
        self._playback = playback
        self._registry = registry
        self._timer: Timer | None = None
        self._on_error: OnErrorCallback | None = None
        self._errors: deque[tuple[LayoutCommand, LayoutError]] = deque(
            maxlen=ERROR_HISTORY_MAX_LENGTH
        )

        if playback is not None:
            playback.set_on_stream_ended(self.stream_ended)

    # === Configuration ===

    def set_on_error(self, callback: OnErrorCallback | None) -> None:
        self._on_error = callback

    @property
    def playback(self) -> PlaybackEngine | None:
        return self._playback

    @property
    def registry(self) -> StreamRegistry | None:
        return self._registry

    @property
    def recent_errors(self) -> list[tuple[LayoutCommand, LayoutError]]:
        return list(self._errors)

    # === Lifecycle ===

    def attach_timer(self, timer: Timer) -> None:
        """Register the gesture poll and queue drain as interval tasks."""
        self._timer = timer
        timer.register_interval(_TIMER_TASK_POLL, GESTURE_POLL_INTERVAL, self.poll_gestures)
        timer.register_interval(_TIMER_TASK_DRAIN, TIMER_TICK_INTERVAL, self.process_queued)
        logger.info("[Supervisor] Attached to timer")

    def detach_timer(self) -> None:
        if self._timer is None:
            return
        self._timer.unregister_interval(_TIMER_TASK_POLL)
        self._timer.unregister_interval(_TIMER_TASK_DRAIN)
        self._timer = None
        logger.info("[Supervisor] Detached from timer")

    # === Enqueue ===

    def submit(self, op: str, **kwargs: Any) -> LayoutCommand | None:
        """Queue a manager or selection operation.

        Returns:
            the queued command, or None if the queue dropped it

        Raises:
            ValueError: unknown operation, or arguments that do not fit it
        """
        if op in MANAGER_OPERATIONS:
            target = getattr(self.manager, op)
        elif op in SELECTION_OPERATIONS:
            target = getattr(self.dispatcher, op)
        else:
            raise ValueError(f"Unknown layout operation: {op}")

        try:
            inspect.signature(target).bind(**kwargs)
        except TypeError as e:
            raise ValueError(f"Bad arguments for {op}: {e}") from None
        return self._enqueue(LayoutCommand(op, kwargs))

    def feed_gesture(self, event: GestureEvent) -> LayoutCommand | None:
        """Queue a raw gesture event.

        Continuous pan/pinch changes are low priority and mergeable; terminal
        phases are protected so a drag always gets its end.
        """
        continuous = event.kind in (GestureKind.PAN, GestureKind.PINCH)
        command = LayoutCommand(
            "gesture",
            {"event": event},
            stream_id=event.target,
            source="gesture",
            low_priority=continuous and event.phase == GesturePhase.CHANGED,
            protected=continuous and event.phase.is_terminal,
            tag=event.kind.value,
        )
        return self._enqueue(command)

    def stream_ended(self, stream_id: str) -> LayoutCommand | None:
        """Player callback: the stream is gone, remove it from the layout."""
        logger.info(format_stream_log("Supervisor", stream_id, "Stream ended"))
        command = LayoutCommand("remove_stream", {"stream_id": stream_id}, source="stream_ended")
        return self._enqueue(command)

    def poll_gestures(self, now: float | None = None) -> int:
        """Queue time-driven intents from the translator.

        Returns:
            number of intents queued
        """
        intents = self.translator.poll(now)
        for intent in intents:
            self._enqueue(LayoutCommand(
                "intent",
                {"intent": intent},
                stream_id=intent.stream_id,
                source="timer",
                protected=intent.kind.is_terminal,
            ))
        return len(intents)

    def _enqueue(self, command: LayoutCommand) -> LayoutCommand | None:
        if not self.queue.enqueue(command):
            return None
        return command

    # === Processing ===

    async def process_queued(self) -> int:
        """Drain the queue serially.

        Returns:
            number of commands processed
        """
        if self.queue.is_processing:
            return 0

        self.queue.set_processing(True)
        count = 0
        try:
            self.queue.merge_previews()
            while not self.queue.is_empty:
                command = self.queue.dequeue()
                if command is None:
                    break
                await self._process(command)
                count += 1
        finally:
            self.queue.set_processing(False)
        return count

    async def execute(self, op: str, **kwargs: Any) -> LayoutCommand | None:
        """Submit and drain in one step (request/response callers)."""
        command = self.submit(op, **kwargs)
        await self.process_queued()
        return command

    async def _process(self, command: LayoutCommand) -> None:
        audio_before = self.manager.audio_stream_id
        streams_before = set(self.manager.stream_ids)

        try:
            command.result = self._apply(command)
        except LayoutError as e:
            command.error = e
            await self._report(command, e)
        else:
            for result in self._dispatch_results(command.result):
                if not result.ok and result.error is not None:
                    command.error = command.error or result.error
                    await self._report(command, result.error)

        await self._sync_playback(audio_before, streams_before)

    def _apply(self, command: LayoutCommand) -> Any:
        op = command.op

        if op == "gesture":
            intents = self.translator.feed(command.kwargs["event"])
            return self.dispatcher.dispatch_all(intents)
        if op == "intent":
            return self.dispatcher.dispatch(command.kwargs["intent"])
        if op in SELECTION_OPERATIONS:
            return getattr(self.dispatcher, op)()

        if command.source == "stream_ended" and not self.manager.contains(command.stream_id):
            logger.info(format_stream_log(
                "Supervisor", command.stream_id, "Ended stream not in layout, ignored"
            ))
            return None

        return getattr(self.manager, op)(**command.kwargs)

    @staticmethod
    def _dispatch_results(result: Any) -> list[DispatchResult]:
        if isinstance(result, DispatchResult):
            return [result]
        if isinstance(result, list):
            return [r for r in result if isinstance(r, DispatchResult)]
        return []

    async def _report(self, command: LayoutCommand, error: LayoutError) -> None:
        self._errors.append((command, error))
        logger.warning(f"[Supervisor] {command} failed ({error.reason}): {error}")
        if METRICS_ENABLED:
            metrics.inc("supervisor.errors", {"op": command.op, "reason": error.reason})

        if self._on_error:
            outcome = self._on_error(command, error)
            if inspect.iscoroutine(outcome):
                await outcome

    async def _sync_playback(self, audio_before: str | None, streams_before: set[str]) -> None:
        if self._playback is None:
            return

        streams_after = set(self.manager.stream_ids)
        for stream_id in sorted(streams_after - streams_before):
            await self._playback.start(stream_id)
        for stream_id in sorted(streams_before - streams_after):
            await self._playback.stop(stream_id)

        audio_after = self.manager.audio_stream_id
        if audio_after != audio_before:
            await self._playback.set_audio_active(audio_after)

    # === Queries ===

    async def stream_titles(self) -> dict[str, str]:
        """Display titles of placed streams from the StreamRegistry."""
        titles: dict[str, str] = {}
        if self._registry is None:
            return titles
        for stream_id in self.manager.stream_ids:
            info = await self._registry.get(stream_id)
            if info is not None:
                titles[stream_id] = info.title
        return titles

    def debug_snapshot(self) -> dict:
        return {
            "queue": self.queue.debug_snapshot(),
            "active_gestures": self.translator.active_gestures,
            "selection_mode": self.dispatcher.selection_mode,
            "selection": self.dispatcher.selection,
            "recent_errors": [
                {"command": str(c), **e.to_dict()} for c, e in list(self._errors)[-10:]
            ],
            "counters": metrics.get_all_counters(),
            "gauges": metrics.get_all_gauges(),
        }
