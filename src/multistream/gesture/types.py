"""Gesture data types

Raw input events (framework-agnostic) and the discrete intents derived from
them.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..layout.geometry import Point


class GestureKind(Enum):
    PAN = "pan"
    PINCH = "pinch"
    TAP = "tap"
    PRESS = "press"  # long-press candidate
    CLOSE = "close"  # explicit close button


class GesturePhase(Enum):
    BEGAN = "began"
    CHANGED = "changed"
    ENDED = "ended"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in {GesturePhase.ENDED, GesturePhase.CANCELLED}


@dataclass(frozen=True)
class GestureEvent:
    """One raw pointer event.

    Attributes:
        kind: gesture family
        phase: lifecycle phase (taps and closes are ENDED)
        target: stream id under the pointer, None for empty canvas
        translation: cumulative pan translation since the gesture began
        scale: cumulative pinch scale since the gesture began
        timestamp: monotonic seconds
    """
    kind: GestureKind
    phase: GesturePhase = GesturePhase.ENDED
    target: str | None = None
    translation: Point = Point(0.0, 0.0)
    scale: float = 1.0
    timestamp: float = field(default_factory=time.monotonic)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GestureEvent":
        translation = data.get("translation") or {"x": 0.0, "y": 0.0}
        kwargs: dict[str, Any] = {
            "kind": GestureKind(data["kind"]),
            "phase": GesturePhase(data.get("phase", GesturePhase.ENDED.value)),
            "target": data.get("target"),
            "translation": Point(float(translation["x"]), float(translation["y"])),
            "scale": float(data.get("scale", 1.0)),
        }
        if data.get("timestamp") is not None:
            kwargs["timestamp"] = float(data["timestamp"])
        return cls(**kwargs)


class IntentKind(Enum):
    DRAG_MOVE = "drag_move"
    DRAG_END = "drag_end"
    DRAG_CANCELLED = "drag_cancelled"
    RESIZE = "resize"
    RESIZE_END = "resize_end"
    RESIZE_CANCELLED = "resize_cancelled"
    FOCUS = "focus"
    CLEAR_FOCUS = "clear_focus"
    TOGGLE_FULLSCREEN = "toggle_fullscreen"
    ENTER_SELECTION = "enter_selection"
    DISMISS = "dismiss"

    @property
    def is_terminal(self) -> bool:
        """Ends a continuous drag/resize gesture."""
        return self in {
            IntentKind.DRAG_END,
            IntentKind.DRAG_CANCELLED,
            IntentKind.RESIZE_END,
            IntentKind.RESIZE_CANCELLED,
        }


@dataclass(frozen=True)
class Intent:
    """Discrete layout intent.

    timed_out is set when a terminal intent was synthesized because the
    gesture went silent.
    """
    kind: IntentKind
    stream_id: str | None = None
    translation: Point | None = None
    scale: float | None = None
    timed_out: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "stream_id": self.stream_id,
            "translation": self.translation.to_dict() if self.translation else None,
            "scale": self.scale,
            "timed_out": self.timed_out,
        }
