"""Tests for GestureTranslator"""

import pytest

from multistream.gesture.translator import GestureTranslator
from multistream.gesture.types import GestureEvent, GestureKind, GesturePhase, Intent, IntentKind
from multistream.layout.geometry import Point
from multistream.telemetry import metrics

BEGAN = GesturePhase.BEGAN
CHANGED = GesturePhase.CHANGED
ENDED = GesturePhase.ENDED
CANCELLED = GesturePhase.CANCELLED


def pan(phase, x, ts, target="a"):
    return GestureEvent(GestureKind.PAN, phase, target, Point(x, 0.0), timestamp=ts)


def pinch(phase, scale, ts, target="a"):
    return GestureEvent(GestureKind.PINCH, phase, target, scale=scale, timestamp=ts)


def tap(target, ts):
    return GestureEvent(GestureKind.TAP, ENDED, target, timestamp=ts)


def press(phase, ts, target="a"):
    return GestureEvent(GestureKind.PRESS, phase, target, timestamp=ts)


@pytest.fixture
def translator():
    return GestureTranslator()


def kinds(intents: list[Intent]) -> list[IntentKind]:
    return [i.kind for i in intents]


class TestPan:
    """Pan -> drag intents"""

    def test_below_threshold_emits_nothing(self, translator):
        assert translator.feed(pan(BEGAN, 0, 0.0)) == []
        assert translator.feed(pan(CHANGED, 5, 0.1)) == []
        assert translator.feed(pan(ENDED, 9, 0.2)) == []
        assert translator.active_gestures == 0

    def test_drag_lifecycle(self, translator):
        translator.feed(pan(BEGAN, 0, 0.0))
        assert kinds(translator.feed(pan(CHANGED, 20, 0.1))) == [IntentKind.DRAG_MOVE]
        assert kinds(translator.feed(pan(CHANGED, 30, 0.2))) == [IntentKind.DRAG_MOVE]

        intents = translator.feed(pan(ENDED, 35, 0.3))
        assert intents == [Intent(IntentKind.DRAG_END, "a", Point(35, 0))]

    def test_cancel(self, translator):
        translator.feed(pan(BEGAN, 0, 0.0))
        translator.feed(pan(CHANGED, 20, 0.1))
        assert kinds(translator.feed(pan(CANCELLED, 20, 0.2))) == [IntentKind.DRAG_CANCELLED]

    def test_cancel_before_threshold_is_silent(self, translator):
        translator.feed(pan(BEGAN, 0, 0.0))
        assert translator.feed(pan(CANCELLED, 3, 0.1)) == []

    def test_late_events_ignored(self, translator):
        translator.feed(pan(BEGAN, 0, 0.0))
        translator.feed(pan(CHANGED, 20, 0.1))
        translator.feed(pan(ENDED, 20, 0.3))

        assert translator.feed(pan(CHANGED, 40, 0.2)) == []
        assert translator.feed(pan(ENDED, 40, 0.3)) == []

    def test_new_began_ends_open_drag(self, translator):
        translator.feed(pan(BEGAN, 0, 0.0))
        translator.feed(pan(CHANGED, 20, 0.1))
        assert kinds(translator.feed(pan(BEGAN, 0, 0.5))) == [IntentKind.DRAG_END]

    def test_changed_without_began_starts_track(self, translator):
        assert kinds(translator.feed(pan(CHANGED, 20, 0.1))) == [IntentKind.DRAG_MOVE]

    def test_terminal_without_track_ignored(self, translator):
        assert translator.feed(pan(ENDED, 50, 0.1)) == []

    def test_independent_targets(self, translator):
        translator.feed(pan(BEGAN, 0, 0.0, "a"))
        translator.feed(pan(BEGAN, 0, 0.0, "b"))
        assert translator.feed(pan(CHANGED, 20, 0.1, "b"))[0].stream_id == "b"
        assert translator.active_gestures == 2

    def test_timeout_ends_with_last_translation(self, translator):
        translator.feed(pan(BEGAN, 0, 0.0))
        translator.feed(pan(CHANGED, 20, 0.1))

        assert translator.poll(now=0.5) == []
        intents = translator.poll(now=1.2)

        assert intents == [Intent(IntentKind.DRAG_END, "a", Point(20, 0), timed_out=True)]
        assert metrics.get_counter("gesture.timeout", {"kind": "pan"}) == 1
        # The real end arrives late and is dropped
        assert translator.feed(pan(ENDED, 25, 1.0)) == []

    def test_events_after_timeout_ignored_until_began(self, translator):
        translator.feed(pan(BEGAN, 0, 0.0))
        translator.feed(pan(CHANGED, 20, 0.1))
        assert kinds(translator.poll(now=1.2)) == [IntentKind.DRAG_END]

        assert translator.feed(pan(CHANGED, 30, 1.3)) == []
        assert translator.feed(pan(ENDED, 40, 1.4)) == []
        assert translator.active_gestures == 0

        # A new gesture on the same target is recognized again
        translator.feed(pan(BEGAN, 0, 2.0))
        assert kinds(translator.feed(pan(CHANGED, 15, 2.1))) == [IntentKind.DRAG_MOVE]
        assert kinds(translator.feed(pan(ENDED, 15, 2.2))) == [IntentKind.DRAG_END]

    def test_drag_ends_once_after_release(self, translator):
        translator.feed(pan(BEGAN, 0, 0.0))
        translator.feed(pan(CHANGED, 20, 0.1))
        translator.feed(pan(ENDED, 20, 0.2))

        assert translator.feed(pan(CHANGED, 30, 0.5)) == []
        assert translator.feed(pan(ENDED, 30, 0.6)) == []

    def test_timeout_of_non_drag_is_silent(self, translator):
        translator.feed(pan(BEGAN, 0, 0.0))
        assert translator.poll(now=2.0) == []
        assert translator.active_gestures == 0


class TestPinch:
    """Pinch -> resize intents"""

    def test_lifecycle_with_clamped_scale(self, translator):
        assert translator.feed(pinch(BEGAN, 1.0, 0.0)) == []
        assert translator.feed(pinch(CHANGED, 3.0, 0.1)) == [
            Intent(IntentKind.RESIZE, "a", scale=2.0)
        ]
        assert translator.feed(pinch(ENDED, 0.2, 0.2)) == [
            Intent(IntentKind.RESIZE_END, "a", scale=0.5)
        ]

    def test_cancel(self, translator):
        translator.feed(pinch(BEGAN, 1.0, 0.0))
        assert kinds(translator.feed(pinch(CANCELLED, 1.2, 0.1))) == [IntentKind.RESIZE_CANCELLED]

    def test_timeout(self, translator):
        translator.feed(pinch(BEGAN, 1.0, 0.0))
        translator.feed(pinch(CHANGED, 1.5, 0.1))
        assert translator.poll(now=1.5) == [
            Intent(IntentKind.RESIZE_END, "a", scale=1.5, timed_out=True)
        ]

    def test_events_after_timeout_ignored_until_began(self, translator):
        translator.feed(pinch(BEGAN, 1.0, 0.0))
        translator.feed(pinch(CHANGED, 1.5, 0.1))
        assert kinds(translator.poll(now=1.5)) == [IntentKind.RESIZE_END]

        assert translator.feed(pinch(CHANGED, 1.8, 1.6)) == []
        assert translator.feed(pinch(ENDED, 1.8, 1.7)) == []

        translator.feed(pinch(BEGAN, 1.0, 2.0))
        assert kinds(translator.feed(pinch(CHANGED, 1.2, 2.1))) == [IntentKind.RESIZE]


class TestTap:
    """Tap -> focus / fullscreen"""

    def test_single_tap_resolves_after_window(self, translator):
        assert translator.feed(tap("a", 0.0)) == []
        assert translator.has_pending_tap
        assert translator.poll(now=0.4) == []
        assert translator.poll(now=0.6) == [Intent(IntentKind.FOCUS, "a")]
        assert not translator.has_pending_tap

    def test_double_tap(self, translator):
        translator.feed(tap("a", 0.0))
        assert translator.feed(tap("a", 0.3)) == [Intent(IntentKind.TOGGLE_FULLSCREEN, "a")]
        assert translator.poll(now=1.0) == []

    def test_slow_second_tap_is_two_focuses(self, translator):
        translator.feed(tap("a", 0.0))
        assert translator.feed(tap("a", 0.7)) == [Intent(IntentKind.FOCUS, "a")]
        assert translator.flush() == [Intent(IntentKind.FOCUS, "a")]

    def test_tap_on_other_target(self, translator):
        translator.feed(tap("a", 0.0))
        assert translator.feed(tap("b", 0.2)) == [Intent(IntentKind.FOCUS, "a")]
        assert translator.poll(now=1.0) == [Intent(IntentKind.FOCUS, "b")]

    def test_tap_on_empty_canvas(self, translator):
        translator.feed(tap("a", 0.0))
        assert translator.feed(tap(None, 0.1)) == [Intent(IntentKind.CLEAR_FOCUS)]
        assert not translator.has_pending_tap

    def test_non_ended_tap_ignored(self, translator):
        assert translator.feed(GestureEvent(GestureKind.TAP, BEGAN, "a", timestamp=0.0)) == []

    def test_flush_without_pending(self, translator):
        assert translator.flush() == []


class TestPressAndClose:
    """Long press and close"""

    def test_long_press_fires_from_poll(self, translator):
        translator.feed(press(BEGAN, 0.0))
        assert translator.poll(now=0.3) == []
        assert translator.poll(now=0.6) == [Intent(IntentKind.ENTER_SELECTION, "a")]
        assert translator.feed(press(ENDED, 0.8)) == []

    def test_long_press_fires_on_release(self, translator):
        translator.feed(press(BEGAN, 0.0))
        assert translator.feed(press(ENDED, 0.7)) == [Intent(IntentKind.ENTER_SELECTION, "a")]

    def test_short_press_is_nothing(self, translator):
        translator.feed(press(BEGAN, 0.0))
        assert translator.feed(press(ENDED, 0.2)) == []

    def test_recognized_upstream(self, translator):
        assert translator.feed(press(ENDED, 0.0)) == [Intent(IntentKind.ENTER_SELECTION, "a")]

    def test_cancelled_press(self, translator):
        translator.feed(press(BEGAN, 0.0))
        assert translator.feed(press(CANCELLED, 0.7)) == []

    def test_close(self, translator):
        translator.feed(tap("a", 0.0))
        event = GestureEvent(GestureKind.CLOSE, ENDED, "a", timestamp=0.1)
        assert translator.feed(event) == [Intent(IntentKind.DISMISS, "a")]
        assert not translator.has_pending_tap


def test_reset(translator):
    translator.feed(pan(BEGAN, 0, 0.0))
    translator.feed(tap("a", 0.0))
    translator.reset()
    assert translator.active_gestures == 0
    assert not translator.has_pending_tap


def test_event_from_dict():
    event = GestureEvent.from_dict({
        "kind": "pan", "phase": "changed", "target": "a",
        "translation": {"x": 3, "y": 4}, "timestamp": 1.5,
    })
    assert event.kind == GestureKind.PAN
    assert event.translation.magnitude == 5
    assert event.timestamp == 1.5
