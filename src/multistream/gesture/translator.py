"""GestureTranslator - raw pointer events to layout intents

Rules:
- Pan: no intent until the translation reaches MIN_DRAG_DISTANCE; then
  DRAG_MOVE per change and exactly one DRAG_END or DRAG_CANCELLED
- Pinch: RESIZE per change, one RESIZE_END / RESIZE_CANCELLED; scale clamped
- Tap on a slot: held for DOUBLE_TAP_INTERVAL_SECONDS; a second tap on the
  same slot inside the window is TOGGLE_FULLSCREEN, otherwise FOCUS
- Tap on empty canvas: CLEAR_FOCUS
- Press held LONG_PRESS_SECONDS: ENTER_SELECTION
- Close: DISMISS

Open drags and pinches that go silent for GESTURE_TIMEOUT_SECONDS are ended
by poll() with the last known translation/scale. Events for a gesture that
already ended are ignored until a new BEGAN for the same target.

The translator has no clock of its own: feed() uses event timestamps, poll()
takes `now` (defaults to time.monotonic()).
"""

import time
from dataclasses import dataclass

from ..config import (
    DOUBLE_TAP_INTERVAL_SECONDS,
    GESTURE_TIMEOUT_SECONDS,
    LONG_PRESS_SECONDS,
    MAX_RESIZE_SCALE,
    METRICS_ENABLED,
    MIN_DRAG_DISTANCE,
    MIN_RESIZE_SCALE,
)
from ..layout.geometry import Point, clamp
from ..telemetry import get_logger, metrics
from .types import GestureEvent, GestureKind, GesturePhase, Intent, IntentKind

logger = get_logger(__name__)


@dataclass
class _PanTrack:
    target: str
    last_ts: float
    translation: Point
    dragging: bool = False


@dataclass
class _PinchTrack:
    target: str
    last_ts: float
    scale: float = 1.0


@dataclass
class _PressTrack:
    target: str | None
    began_ts: float
    fired: bool = False


@dataclass
class _PendingTap:
    target: str
    timestamp: float


class GestureTranslator:
    """Stateful gesture recognizer, one per input surface."""

    def __init__(
        self,
        min_drag_distance: float = MIN_DRAG_DISTANCE,
        double_tap_interval: float = DOUBLE_TAP_INTERVAL_SECONDS,
        long_press: float = LONG_PRESS_SECONDS,
        timeout: float = GESTURE_TIMEOUT_SECONDS,
    ):
        self._min_drag_distance = min_drag_distance
        self._double_tap_interval = double_tap_interval
        self._long_press = long_press
        self._timeout = timeout

        self._pans: dict[str, _PanTrack] = {}
        self._pinches: dict[str, _PinchTrack] = {}
        self._presses: dict[str | None, _PressTrack] = {}
        self._pending_tap: _PendingTap | None = None
        # Ended gestures; their events are ignored until the next BEGAN
        self._closed: set[tuple[GestureKind, str]] = set()

    @property
    def active_gestures(self) -> int:
        return len(self._pans) + len(self._pinches) + len(self._presses)

    @property
    def has_pending_tap(self) -> bool:
        return self._pending_tap is not None

    def reset(self) -> None:
        self._pans.clear()
        self._pinches.clear()
        self._presses.clear()
        self._pending_tap = None
        self._closed.clear()

    # === Input ===

    def feed(self, event: GestureEvent) -> list[Intent]:
        """Consume one raw event.

        Returns:
            intents in the order they were generated (possibly empty)
        """
        if event.kind == GestureKind.PAN:
            return self._on_pan(event)
        if event.kind == GestureKind.PINCH:
            return self._on_pinch(event)
        if event.kind == GestureKind.TAP:
            return self._on_tap(event)
        if event.kind == GestureKind.PRESS:
            return self._on_press(event)
        return self._on_close(event)

    def poll(self, now: float | None = None) -> list[Intent]:
        """Emit time-driven intents: expired taps, long presses, timeouts."""
        now = time.monotonic() if now is None else now
        intents: list[Intent] = []

        if self._pending_tap and now - self._pending_tap.timestamp > self._double_tap_interval:
            intents.append(Intent(IntentKind.FOCUS, self._pending_tap.target))
            self._pending_tap = None

        for press in list(self._presses.values()):
            if not press.fired and now - press.began_ts >= self._long_press:
                press.fired = True
                intents.append(Intent(IntentKind.ENTER_SELECTION, press.target))
            elif press.fired and now - press.began_ts >= self._long_press + self._timeout:
                del self._presses[press.target]

        for track in list(self._pans.values()):
            if now - track.last_ts >= self._timeout:
                self._close(GestureKind.PAN, track.target)
                if track.dragging:
                    self._count_timeout("pan", track.target)
                    intents.append(Intent(
                        IntentKind.DRAG_END, track.target, track.translation, timed_out=True
                    ))

        for track in list(self._pinches.values()):
            if now - track.last_ts >= self._timeout:
                self._close(GestureKind.PINCH, track.target)
                self._count_timeout("pinch", track.target)
                intents.append(Intent(
                    IntentKind.RESIZE_END, track.target, scale=track.scale, timed_out=True
                ))

        return intents

    def flush(self) -> list[Intent]:
        """Resolve a pending tap immediately as a single tap."""
        if self._pending_tap is None:
            return []
        intent = Intent(IntentKind.FOCUS, self._pending_tap.target)
        self._pending_tap = None
        return [intent]

    # === Pan ===

    def _on_pan(self, event: GestureEvent) -> list[Intent]:
        target = event.target
        if target is None or self._is_late(GestureKind.PAN, event):
            return []

        intents: list[Intent] = []
        track = self._pans.get(target)

        if event.phase == GesturePhase.BEGAN:
            if track is not None:
                # Previous pan on this target never ended
                intents += self._end_pan(track)
            self._pans[target] = _PanTrack(target, event.timestamp, event.translation)
            self._closed.discard((GestureKind.PAN, target))
            return intents

        if track is None:
            if event.phase.is_terminal:
                return []
            track = _PanTrack(target, event.timestamp, Point(0.0, 0.0))
            self._pans[target] = track

        track.last_ts = event.timestamp
        track.translation = event.translation
        if not track.dragging and event.translation.magnitude >= self._min_drag_distance:
            track.dragging = True
            logger.debug(f"[Gesture:{target}] Drag started")

        if event.phase == GesturePhase.CHANGED:
            if track.dragging:
                intents.append(Intent(IntentKind.DRAG_MOVE, target, track.translation))
        elif event.phase == GesturePhase.ENDED:
            intents += self._end_pan(track)
        else:
            self._close(GestureKind.PAN, target)
            if track.dragging:
                intents.append(Intent(IntentKind.DRAG_CANCELLED, target, track.translation))
        return intents

    def _end_pan(self, track: _PanTrack) -> list[Intent]:
        self._close(GestureKind.PAN, track.target)
        if not track.dragging:
            return []
        return [Intent(IntentKind.DRAG_END, track.target, track.translation)]

    # === Pinch ===

    def _on_pinch(self, event: GestureEvent) -> list[Intent]:
        target = event.target
        if target is None or self._is_late(GestureKind.PINCH, event):
            return []

        scale = clamp(event.scale, MIN_RESIZE_SCALE, MAX_RESIZE_SCALE)
        track = self._pinches.get(target)
        intents: list[Intent] = []

        if event.phase == GesturePhase.BEGAN:
            if track is not None:
                self._close(GestureKind.PINCH, target)
                intents.append(Intent(IntentKind.RESIZE_END, target, scale=track.scale))
            self._pinches[target] = _PinchTrack(target, event.timestamp, scale)
            self._closed.discard((GestureKind.PINCH, target))
            return intents

        if track is None:
            if event.phase.is_terminal:
                return []
            track = _PinchTrack(target, event.timestamp)
            self._pinches[target] = track

        track.last_ts = event.timestamp
        track.scale = scale

        if event.phase == GesturePhase.CHANGED:
            intents.append(Intent(IntentKind.RESIZE, target, scale=scale))
        elif event.phase == GesturePhase.ENDED:
            self._close(GestureKind.PINCH, target)
            intents.append(Intent(IntentKind.RESIZE_END, target, scale=scale))
        else:
            self._close(GestureKind.PINCH, target)
            intents.append(Intent(IntentKind.RESIZE_CANCELLED, target, scale=scale))
        return intents

    # === Tap / press / close ===

    def _on_tap(self, event: GestureEvent) -> list[Intent]:
        if event.phase != GesturePhase.ENDED:
            return []

        pending = self._pending_tap
        if event.target is None:
            self._pending_tap = None
            return [Intent(IntentKind.CLEAR_FOCUS)]

        if (
            pending is not None
            and pending.target == event.target
            and event.timestamp - pending.timestamp <= self._double_tap_interval
        ):
            self._pending_tap = None
            return [Intent(IntentKind.TOGGLE_FULLSCREEN, event.target)]

        intents = []
        if pending is not None:
            intents.append(Intent(IntentKind.FOCUS, pending.target))
        self._pending_tap = _PendingTap(event.target, event.timestamp)
        return intents

    def _on_press(self, event: GestureEvent) -> list[Intent]:
        target = event.target

        if event.phase == GesturePhase.BEGAN:
            self._presses[target] = _PressTrack(target, event.timestamp)
            return []
        if event.phase == GesturePhase.CHANGED:
            return []

        track = self._presses.pop(target, None)
        if event.phase == GesturePhase.CANCELLED:
            return []
        if track is None:
            # Already recognized upstream as a long press
            return [Intent(IntentKind.ENTER_SELECTION, target)]
        if not track.fired and event.timestamp - track.began_ts >= self._long_press:
            return [Intent(IntentKind.ENTER_SELECTION, target)]
        return []

    def _on_close(self, event: GestureEvent) -> list[Intent]:
        if self._pending_tap and self._pending_tap.target == event.target:
            self._pending_tap = None
        return [Intent(IntentKind.DISMISS, event.target)]

    # === Internals ===

    def _close(self, kind: GestureKind, target: str) -> None:
        if kind == GestureKind.PAN:
            self._pans.pop(target, None)
        else:
            self._pinches.pop(target, None)
        self._closed.add((kind, target))

    def _is_late(self, kind: GestureKind, event: GestureEvent) -> bool:
        """Event belongs to a gesture that already ended and no BEGAN has reopened it."""
        if event.phase == GesturePhase.BEGAN or (kind, event.target) not in self._closed:
            return False
        logger.debug(f"[Gesture:{event.target}] Ignored late {kind.value} {event.phase.value}")
        return True

    def _count_timeout(self, kind: str, target: str) -> None:
        logger.warning(f"[Gesture:{target}] {kind} timed out, ending with last known value")
        if METRICS_ENABLED:
            metrics.inc("gesture.timeout", {"kind": kind})
