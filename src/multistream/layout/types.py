"""Layout data types

Contains:
- Slot: one stream placed in the template grid
- PiPStream: one stream detached to the floating layer
- PlacementState / GridSubState / PiPSubState: per-stream placement state
- PlacementHistoryEntry: placement transition record
- LayoutSnapshot: immutable view of the whole layout (render + persistence)
- LayoutIssue: validation finding

Slot and PiPStream are frozen; the manager replaces them on write, so a
snapshot handed to a reader never changes underneath it.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from ..config import PIP_BUBBLE_SIZE
from .geometry import Point, Rect, Size


class PlacementState(Enum):
    """Where a stream currently lives.

    UNPLACED -> IN_GRID <-> IN_PIP -> REMOVED
    """
    UNPLACED = "unplaced"
    IN_GRID = "in_grid"
    IN_PIP = "in_pip"
    REMOVED = "removed"

    @property
    def is_placed(self) -> bool:
        return self in {PlacementState.IN_GRID, PlacementState.IN_PIP}


class GridSubState(Enum):
    NORMAL = "normal"
    FOCUSED = "focused"


class PiPSubState(Enum):
    NORMAL = "normal"
    MINIMIZED = "minimized"
    MAXIMIZED = "maximized"


@dataclass(frozen=True)
class Slot:
    """A stream assigned to screen space in the main layout.

    Attributes:
        stream_id: opaque stream identifier, unique within the layout
        frame: current rectangle
        z_index: stacking order, higher draws on top
        is_focused: UI emphasis, at most one slot
        is_minimized / is_maximized: mutually exclusive; is_maximized marks
            the fullscreen slot
        is_audio_active: the single unmuted stream (grid and PiP combined)
        manual_frame: last free-form position, used by the custom template
    """
    stream_id: str
    frame: Rect
    z_index: int
    is_focused: bool = False
    is_minimized: bool = False
    is_maximized: bool = False
    is_audio_active: bool = False
    manual_frame: Rect | None = None

    @property
    def sub_state(self) -> GridSubState:
        return GridSubState.FOCUSED if self.is_focused else GridSubState.NORMAL

    def to_dict(self) -> dict[str, Any]:
        return {
            "stream_id": self.stream_id,
            "frame": self.frame.to_dict(),
            "z_index": self.z_index,
            "is_focused": self.is_focused,
            "is_minimized": self.is_minimized,
            "is_maximized": self.is_maximized,
            "is_audio_active": self.is_audio_active,
            "manual_frame": self.manual_frame.to_dict() if self.manual_frame else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Slot":
        manual = data.get("manual_frame")
        return cls(
            stream_id=data["stream_id"],
            frame=Rect.from_dict(data["frame"]),
            z_index=int(data["z_index"]),
            is_focused=bool(data.get("is_focused", False)),
            is_minimized=bool(data.get("is_minimized", False)),
            is_maximized=bool(data.get("is_maximized", False)),
            is_audio_active=bool(data.get("is_audio_active", False)),
            manual_frame=Rect.from_dict(manual) if manual else None,
        )


@dataclass(frozen=True)
class PiPStream:
    """A stream detached from the grid into the floating layer.

    `position` is the top-left corner of the normal footprint. `size` is the
    stored size; minimizing shows a bubble but leaves `size` untouched.
    """
    pip_id: str
    stream_id: str
    position: Point
    size: Size
    z_index: int
    is_minimized: bool = False
    is_maximized: bool = False
    is_audio_active: bool = False

    @property
    def sub_state(self) -> PiPSubState:
        if self.is_minimized:
            return PiPSubState.MINIMIZED
        if self.is_maximized:
            return PiPSubState.MAXIMIZED
        return PiPSubState.NORMAL

    @property
    def frame(self) -> Rect:
        """Stored (normal) rectangle."""
        return Rect.from_origin_size(self.position, self.size)

    def footprint(self, container: Size) -> Rect:
        """Rectangle actually drawn for the current sub-state."""
        if self.is_minimized:
            return Rect(self.position.x, self.position.y, PIP_BUBBLE_SIZE, PIP_BUBBLE_SIZE)
        if self.is_maximized:
            return Rect.container(container)
        return self.frame

    def to_dict(self) -> dict[str, Any]:
        return {
            "pip_id": self.pip_id,
            "stream_id": self.stream_id,
            "position": self.position.to_dict(),
            "size": self.size.to_dict(),
            "z_index": self.z_index,
            "is_minimized": self.is_minimized,
            "is_maximized": self.is_maximized,
            "is_audio_active": self.is_audio_active,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PiPStream":
        return cls(
            pip_id=data["pip_id"],
            stream_id=data["stream_id"],
            position=Point(float(data["position"]["x"]), float(data["position"]["y"])),
            size=Size(float(data["size"]["width"]), float(data["size"]["height"])),
            z_index=int(data["z_index"]),
            is_minimized=bool(data.get("is_minimized", False)),
            is_maximized=bool(data.get("is_maximized", False)),
            is_audio_active=bool(data.get("is_audio_active", False)),
        )


@dataclass
class PlacementHistoryEntry:
    """One placement transition of a stream."""
    operation: str
    from_state: PlacementState
    to_state: PlacementState
    generation: int
    timestamp: float = field(default_factory=lambda: datetime.now().timestamp())

    def __str__(self) -> str:
        ts = datetime.fromtimestamp(self.timestamp).strftime("%H:%M:%S")
        return f"{ts} | {self.operation} {self.from_state.value} → {self.to_state.value}"

    def to_dict(self) -> dict:
        return {
            "operation": self.operation,
            "from_state": self.from_state.value,
            "to_state": self.to_state.value,
            "generation": self.generation,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class LayoutSnapshot:
    """Immutable layout view.

    `serialize()` snapshots carry no previews; render snapshots may. `version`
    increments on every committed mutation and is ignored by equality.
    """
    template_id: str
    container_size: Size
    slots: tuple[Slot, ...] = ()
    pip_slots: tuple[PiPStream, ...] = ()
    fullscreen_stream_id: str | None = None
    previews: dict[str, Rect] = field(default_factory=dict, compare=False)
    version: int = field(default=0, compare=False)

    @property
    def stream_ids(self) -> list[str]:
        return [s.stream_id for s in self.slots] + [p.stream_id for p in self.pip_slots]

    def get_slot(self, stream_id: str) -> Slot | None:
        for slot in self.slots:
            if slot.stream_id == stream_id:
                return slot
        return None

    def get_pip(self, stream_id: str) -> PiPStream | None:
        for pip in self.pip_slots:
            if pip.stream_id == stream_id or pip.pip_id == stream_id:
                return pip
        return None

    @property
    def focused_stream_id(self) -> str | None:
        for slot in self.slots:
            if slot.is_focused:
                return slot.stream_id
        return None

    @property
    def audio_stream_id(self) -> str | None:
        for item in (*self.slots, *self.pip_slots):
            if item.is_audio_active:
                return item.stream_id
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "template_id": self.template_id,
            "container_size": self.container_size.to_dict(),
            "slots": [s.to_dict() for s in self.slots],
            "pip_slots": [p.to_dict() for p in self.pip_slots],
            "fullscreen_stream_id": self.fullscreen_stream_id,
            "previews": {sid: r.to_dict() for sid, r in self.previews.items()},
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LayoutSnapshot":
        """Build a snapshot from a payload, validating its shape first.

        Raises:
            InvalidSnapshot: payload fails schema validation
        """
        from .schema import validate_snapshot_payload

        data = validate_snapshot_payload(data)
        return cls(
            template_id=data["template_id"],
            container_size=Size(
                data["container_size"]["width"], data["container_size"]["height"]
            ),
            slots=tuple(Slot.from_dict(s) for s in data["slots"]),
            pip_slots=tuple(PiPStream.from_dict(p) for p in data["pip_slots"]),
            fullscreen_stream_id=data.get("fullscreen_stream_id"),
        )


@dataclass(frozen=True)
class LayoutIssue:
    """One problem reported by LayoutManager.validate().

    kind: "overlap" | "out_of_bounds" | "too_small"
    """
    kind: str
    stream_ids: tuple[str, ...]
    detail: str = ""

    def to_dict(self) -> dict:
        return {"kind": self.kind, "stream_ids": list(self.stream_ids), "detail": self.detail}
