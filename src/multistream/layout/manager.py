"""LayoutManager - single source of truth for stream placement

Responsibilities:
- Own the active template, container size, slot registry and PiP layer
- Recompute frames on template / container changes
- Expose the mutation operations (add/remove/move/resize/reorder/arrange,
  focus, audio, fullscreen, detach/reattach, PiP pane management)
- Keep drag/resize previews apart from committed state
- Publish immutable snapshots to subscribers
- serialize() / restore() for named layouts

Every public mutation is check-then-commit: all validation happens before the
first write, so a raised LayoutError means nothing changed.
"""

import functools
import math
from collections.abc import Callable
from dataclasses import replace
from typing import Any

from ..config import (
    DEFAULT_CONTAINER_HEIGHT,
    DEFAULT_CONTAINER_WIDTH,
    DEFAULT_TEMPLATE_ID,
    MAX_RESIZE_SCALE,
    METRICS_ENABLED,
    MIN_RESIZE_SCALE,
    MIN_SLOT_HEIGHT,
    MIN_SLOT_WIDTH,
    SNAP_DISTANCE,
)
from ..errors import (
    CapacityExceeded,
    DuplicateStream,
    InvalidGeometry,
    InvalidSnapshot,
    LayoutError,
    NotFound,
    TemplateLocked,
)
from ..telemetry import format_stream_log, get_logger, metrics
from .arrange import ArrangeStyle, arrange
from .geometry import Point, Rect, Size, clamp, clamp_origin, clamp_rect
from .pip import PiPLayer
from .placement import PlacementTracker
from .registry import SlotRegistry, compact_z
from .templates import CUSTOM, STACK, TEMPLATES, Template, get_template
from .types import LayoutIssue, LayoutSnapshot, PiPStream, PlacementState, Slot

logger = get_logger(__name__)

SnapshotCallback = Callable[[LayoutSnapshot], Any]


def _operation(name: str):
    """Count ok/fail per operation and log rejections; errors propagate."""

    def decorator(func):
        @functools.wraps(func)
        def wrapper(self: "LayoutManager", *args, **kwargs):
            try:
                result = func(self, *args, **kwargs)
            except LayoutError as e:
                logger.warning(f"[LayoutManager] {name} rejected ({e.reason}): {e}")
                if METRICS_ENABLED:
                    metrics.inc("layout.op.fail", {"op": name, "reason": e.reason})
                raise
            if METRICS_ENABLED:
                metrics.inc("layout.op.ok", {"op": name})
            return result

        return wrapper

    return decorator


def _resolve_template(template: Template | str) -> Template:
    try:
        return get_template(template)
    except KeyError as e:
        raise NotFound(str(e.args[0])) from None


def clamp_scale(scale: float) -> float:
    """Clamp a pinch scale factor to [MIN_RESIZE_SCALE, MAX_RESIZE_SCALE]."""
    if not math.isfinite(scale):
        raise InvalidGeometry(f"Scale must be finite: {scale}")
    return clamp(scale, MIN_RESIZE_SCALE, MAX_RESIZE_SCALE)


class LayoutManager:
    """Layout owner

    Not thread-safe: all mutations must come from one writer (see
    LayoutSupervisor). Readers take snapshot(), which is immutable.

    Attributes:
        template: active Template
        container_size: current canvas size
        placement: per-stream placement tracker
    """

    def __init__(
        self,
        template: Template | str = DEFAULT_TEMPLATE_ID,
        container_size: Size | None = None,
    ):
        """
        Args:
            template: initial template (object or id)
            container_size: initial canvas, None uses config defaults

        Raises:
            NotFound: unknown template id
            InvalidGeometry: non-positive container size
        """
        container = container_size or Size(DEFAULT_CONTAINER_WIDTH, DEFAULT_CONTAINER_HEIGHT)
        if not container.is_positive:
            raise InvalidGeometry(f"Container size must be positive: {container}")

        self._template = _resolve_template(template)
        self._container = container
        self._registry = SlotRegistry()
        self._pip = PiPLayer()
        self._placement = PlacementTracker()
        self._fullscreen: str | None = None
        self._previews: dict[str, Rect] = {}
        self._last_resize_seq: int | None = None
        self._version = 0
        self._subscribers: list[SnapshotCallback] = []

    # === Queries ===

    @property
    def template(self) -> Template:
        return self._template

    @property
    def container_size(self) -> Size:
        return self._container

    @property
    def max_slots(self) -> int:
        return self._template.max_slots

    @property
    def slots(self) -> list[Slot]:
        return self._registry.slots

    @property
    def pip_panes(self) -> list[PiPStream]:
        return self._pip.panes

    @property
    def stream_ids(self) -> list[str]:
        return self._registry.stream_ids + self._pip.stream_ids

    @property
    def fullscreen_stream_id(self) -> str | None:
        return self._fullscreen

    @property
    def focused_stream_id(self) -> str | None:
        slot = self._registry.focused
        return slot.stream_id if slot else None

    @property
    def audio_stream_id(self) -> str | None:
        slot = self._registry.audio_active
        if slot:
            return slot.stream_id
        pane = self._pip.audio_active
        return pane.stream_id if pane else None

    @property
    def version(self) -> int:
        return self._version

    @property
    def placement(self) -> PlacementTracker:
        return self._placement

    @property
    def previews(self) -> dict[str, Rect]:
        return dict(self._previews)

    def get_slot(self, stream_id: str) -> Slot | None:
        return self._registry.get(stream_id)

    def get_pip(self, key: str) -> PiPStream | None:
        """PiP pane by pip id or stream id."""
        return self._pip.get(key)

    def contains(self, stream_id: str) -> bool:
        return stream_id in self._registry or self._pip.contains_stream(stream_id)

    def placement_state(self, stream_id: str) -> PlacementState:
        return self._placement.state(stream_id)

    def snapshot(self) -> LayoutSnapshot:
        """Render view: committed state plus current previews."""
        return LayoutSnapshot(
            template_id=self._template.id,
            container_size=self._container,
            slots=tuple(self._registry.slots),
            pip_slots=tuple(self._pip.panes),
            fullscreen_stream_id=self._fullscreen,
            previews=dict(self._previews),
            version=self._version,
        )

    def serialize(self) -> LayoutSnapshot:
        """Persistence view: committed state only."""
        return replace(self.snapshot(), previews={})

    def visible_frames(self) -> dict[str, Rect]:
        """Rectangles actually drawn, keyed by stream id.

        In fullscreen only the fullscreen slot is visible, at container size.
        """
        if self._fullscreen is not None:
            return {self._fullscreen: Rect.container(self._container)}
        frames = {slot.stream_id: slot.frame for slot in self._registry}
        for pane in self._pip.panes:
            frames[pane.stream_id] = pane.footprint(self._container)
        return frames

    # === Subscriptions ===

    def subscribe(self, callback: SnapshotCallback) -> Callable[[], None]:
        """Register a snapshot listener, called after every change.

        Returns:
            a function that unsubscribes the callback
        """
        self._subscribers.append(callback)
        return lambda: self.unsubscribe(callback)

    def unsubscribe(self, callback: SnapshotCallback) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def _publish(self, committed: bool = True) -> None:
        if committed:
            self._version += 1
        snapshot = self.snapshot()
        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception as e:
                logger.error(f"[LayoutManager] Subscriber failed: {e}")
                if METRICS_ENABLED:
                    metrics.inc("layout.subscriber.errors")

    # === Container & template ===

    @_operation("set_container_size")
    def set_container_size(self, size: Size, seq: int | None = None) -> bool:
        """Apply a container resize.

        Args:
            size: new canvas size
            seq: monotonic resize sequence number; events at or below the
                last applied number are rejected as stale

        Returns:
            False if the event was stale (nothing applied), True otherwise

        Raises:
            InvalidGeometry: non-positive size
        """
        if seq is not None and self._last_resize_seq is not None and seq <= self._last_resize_seq:
            logger.warning(
                f"[LayoutManager] Stale resize dropped: seq={seq} <= {self._last_resize_seq}"
            )
            if METRICS_ENABLED:
                metrics.inc("layout.resize.stale")
            return False
        if not size.is_positive:
            raise InvalidGeometry(f"Container size must be positive: {size}")

        slots = self._registry.slots
        if self._template.is_custom:
            slots = [
                replace(s, manual_frame=clamp_rect(s.manual_frame or s.frame, size))
                for s in slots
            ]
        slots = self._layout(self._template, size, slots)
        panes = [self._pip.clamped(p, size) for p in self._pip.panes]

        self._container = size
        self._registry.replace_all(slots)
        self._pip.commit(panes)
        self._previews.clear()
        if seq is not None:
            self._last_resize_seq = seq

        logger.debug(f"[LayoutManager] Container resized to {size.width}x{size.height} (seq={seq})")
        self._publish()
        return True

    @_operation("set_template")
    def set_template(self, template: Template | str) -> Template:
        """Switch the active template.

        Raises:
            NotFound: unknown template id
            CapacityExceeded: more slots than the template allows
        """
        target = _resolve_template(template)

        count = len(self._registry)
        if count > target.max_slots:
            raise CapacityExceeded(
                f"Template {target.id} holds {target.max_slots} slots, layout has {count}"
            )

        slots = self._registry.slots
        if target.is_custom and not self._template.is_custom:
            # Freeze the current positions as manual placement
            slots = [replace(s, manual_frame=s.frame) for s in slots]
        slots = compact_z(self._layout(target, self._container, slots))

        previous = self._template
        self._template = target
        self._registry.replace_all(slots)
        self._previews.clear()

        logger.info(f"[LayoutManager] Template {previous.id} -> {target.id}")
        self._publish()
        return target

    # === Stream lifecycle ===

    @_operation("add_stream")
    def add_stream(self, stream_id: str) -> Slot:
        """Append a stream to the grid.

        Raises:
            DuplicateStream: already in the grid or the PiP layer
            CapacityExceeded: the template is full
        """
        if self.contains(stream_id):
            raise DuplicateStream(f"Stream already placed: {stream_id}", stream_id)
        if len(self._registry) >= self._template.max_slots:
            raise CapacityExceeded(
                f"Template {self._template.id} is full ({self._template.max_slots})", stream_id
            )
        self._placement.check(stream_id, "add")

        new_slot = Slot(
            stream_id=stream_id,
            frame=Rect.container(self._container),
            z_index=self._registry.max_z + 1,
        )
        slots = self._layout(self._template, self._container, [*self._registry.slots, new_slot])

        self._registry.replace_all(slots)
        self._placement.apply(stream_id, "add")

        logger.debug(format_stream_log("LayoutManager", stream_id, f"Added (slots={len(slots)})"))
        self._publish()
        return self._registry.require(stream_id)

    @_operation("remove_stream")
    def remove_stream(self, stream_id: str) -> Slot | PiPStream:
        """Remove a stream from the grid or the PiP layer.

        Focus and audio held by the stream become unset; nothing is promoted.

        Raises:
            NotFound: stream not placed
        """
        slot = self._registry.get(stream_id)
        if slot is not None:
            self._placement.check(stream_id, "remove")
            remaining = [s for s in self._registry.slots if s.stream_id != stream_id]
            remaining = compact_z(self._layout(self._template, self._container, remaining))

            self._registry.replace_all(remaining)
            self._drop_stream_refs(stream_id)
            self._placement.apply(stream_id, "remove")
            removed: Slot | PiPStream = slot
        else:
            pane = self._pip.get(stream_id)
            if pane is None or pane.stream_id != stream_id:
                raise NotFound(f"Stream not placed: {stream_id}", stream_id)
            self._placement.check(stream_id, "remove")

            self._pip.commit(self._remove_pane(pane.pip_id))
            self._drop_stream_refs(stream_id)
            self._placement.apply(stream_id, "remove")
            removed = pane

        logger.debug(format_stream_log("LayoutManager", stream_id, "Removed"))
        self._publish()
        return removed

    # === Manual geometry (custom template) ===

    @_operation("move_slot")
    def move_slot(self, stream_id: str, origin: Point) -> Slot:
        """Move a slot; the full rectangle is clamped inside the container.

        Raises:
            NotFound / TemplateLocked / InvalidGeometry
        """
        return self._move_slot(stream_id, origin)

    @_operation("resize_slot")
    def resize_slot(self, stream_id: str, size: Size) -> Slot:
        """Resize a slot, enforcing the minimum slot size.

        Raises:
            NotFound / TemplateLocked / InvalidGeometry
        """
        return self._resize_slot(stream_id, size)

    def _check_manual(self, stream_id: str) -> Slot:
        slot = self._registry.require(stream_id)
        if not self._template.allows_manual_placement:
            raise TemplateLocked(
                f"Template {self._template.id} does not allow manual placement", stream_id
            )
        return slot

    def _move_slot(self, stream_id: str, origin: Point) -> Slot:
        slot = self._check_manual(stream_id)
        if not origin.is_finite:
            raise InvalidGeometry(f"Origin must be finite: {origin}", stream_id)

        frame = Rect.from_origin_size(
            clamp_origin(origin, slot.frame.size, self._container), slot.frame.size
        )
        return self._commit_frame(slot, frame)

    def _resize_slot(self, stream_id: str, size: Size) -> Slot:
        slot = self._check_manual(stream_id)
        if not size.is_positive:
            raise InvalidGeometry(f"Size must be positive: {size}", stream_id)

        width = min(max(size.width, MIN_SLOT_WIDTH), self._container.width)
        height = min(max(size.height, MIN_SLOT_HEIGHT), self._container.height)
        fitted = Size(width, height)
        frame = Rect.from_origin_size(
            clamp_origin(slot.frame.origin, fitted, self._container), fitted
        )
        return self._commit_frame(slot, frame)

    def _commit_frame(self, slot: Slot, frame: Rect) -> Slot:
        updated = replace(slot, frame=frame, manual_frame=frame)
        self._registry.replace_all(
            [updated if s.stream_id == slot.stream_id else s for s in self._registry]
        )
        self._previews.pop(slot.stream_id, None)
        logger.debug(format_stream_log(
            "LayoutManager", slot.stream_id,
            f"Frame -> ({frame.x:.0f},{frame.y:.0f} {frame.width:.0f}x{frame.height:.0f})",
        ))
        self._publish()
        return updated

    def snap_origin(self, stream_id: str, origin: Point) -> Point:
        """Snap an origin to container edges and neighbour edges.

        Each axis snaps independently to the nearest candidate within
        SNAP_DISTANCE; the result is clamped to the container.

        Raises:
            NotFound: stream not placed
        """
        slot = self._registry.get(stream_id)
        if slot is not None:
            size = slot.frame.size
            neighbours = [s.frame for s in self._registry if s.stream_id != stream_id]
        else:
            pane = self._pip.require(stream_id)
            size = pane.size
            neighbours = [p.frame for p in self._pip.panes if p.pip_id != pane.pip_id]

        xs = [0.0, self._container.width - size.width]
        ys = [0.0, self._container.height - size.height]
        for other in neighbours:
            xs += [other.x, other.max_x, other.x - size.width, other.max_x - size.width]
            ys += [other.y, other.max_y, other.y - size.height, other.max_y - size.height]

        snapped = Point(_nearest(origin.x, xs), _nearest(origin.y, ys))
        return clamp_origin(snapped, size, self._container)

    # === Z order ===

    @_operation("bring_to_front")
    def bring_to_front(self, stream_id: str) -> Slot:
        slot = self._registry.require(stream_id)
        return self._restack(slot, self._registry.max_z + 1)

    @_operation("send_to_back")
    def send_to_back(self, stream_id: str) -> Slot:
        slot = self._registry.require(stream_id)
        return self._restack(slot, self._registry.min_z - 1)

    def _restack(self, slot: Slot, z_index: int) -> Slot:
        slots = [
            replace(s, z_index=z_index) if s.stream_id == slot.stream_id else s
            for s in self._registry
        ]
        self._registry.replace_all(compact_z(slots))
        self._publish()
        return self._registry.require(slot.stream_id)

    # === Focus / fullscreen ===

    @_operation("set_focus")
    def set_focus(self, stream_id: str) -> Slot:
        """Focus one grid slot, unfocusing any other.

        Focusing another slot while in fullscreen exits fullscreen.

        Raises:
            NotFound: stream not in the grid
        """
        self._registry.require(stream_id)
        if self.focused_stream_id == stream_id:
            return self._registry.require(stream_id)

        fullscreen = self._fullscreen if self._fullscreen == stream_id else None
        slots = [
            replace(
                s,
                is_focused=s.stream_id == stream_id,
                is_maximized=s.stream_id == fullscreen,
            )
            for s in self._registry
        ]
        self._registry.replace_all(slots)
        self._fullscreen = fullscreen
        self._publish()
        return self._registry.require(stream_id)

    @_operation("clear_focus")
    def clear_focus(self) -> None:
        """Unset focus (and leave fullscreen)."""
        if self.focused_stream_id is None and self._fullscreen is None:
            return
        self._registry.replace_all([
            replace(s, is_focused=False, is_maximized=False) for s in self._registry
        ])
        self._fullscreen = None
        self._publish()

    @_operation("toggle_fullscreen")
    def toggle_fullscreen(self, stream_id: str) -> bool:
        """Enter fullscreen on a slot, or exit if it already is fullscreen.

        Entering focuses the slot.

        Returns:
            True if the layout is now in fullscreen

        Raises:
            NotFound: stream not in the grid
        """
        self._registry.require(stream_id)
        if self._fullscreen == stream_id:
            self._set_fullscreen(None)
            return False
        self._set_fullscreen(stream_id)
        return True

    @_operation("exit_fullscreen")
    def exit_fullscreen(self) -> None:
        if self._fullscreen is not None:
            self._set_fullscreen(None)

    def _set_fullscreen(self, stream_id: str | None) -> None:
        slots = []
        for s in self._registry:
            if stream_id is None:
                slots.append(replace(s, is_maximized=False))
            else:
                target = s.stream_id == stream_id
                slots.append(replace(
                    s, is_focused=target, is_maximized=target,
                    is_minimized=False if target else s.is_minimized,
                ))
        self._registry.replace_all(slots)
        self._fullscreen = stream_id
        logger.debug(f"[LayoutManager] Fullscreen -> {stream_id}")
        self._publish()

    # === Audio ===

    @_operation("set_audio_active")
    def set_audio_active(self, stream_id: str) -> None:
        """Make one stream (grid or PiP) the only audio-active stream.

        Raises:
            NotFound: stream not placed
        """
        in_grid = stream_id in self._registry
        pane = None if in_grid else self._pip.get(stream_id)
        if not in_grid and (pane is None or pane.stream_id != stream_id):
            raise NotFound(f"Stream not placed: {stream_id}", stream_id)
        self._set_audio(stream_id)

    @_operation("mute_all")
    def mute_all(self) -> None:
        self._set_audio(None)

    def _set_audio(self, stream_id: str | None) -> None:
        self._registry.replace_all([
            replace(s, is_audio_active=s.stream_id == stream_id) for s in self._registry
        ])
        self._pip.commit([
            replace(p, is_audio_active=p.stream_id == stream_id) for p in self._pip.panes
        ])
        logger.debug(f"[LayoutManager] Audio -> {stream_id}")
        self._publish()

    # === Auto-arrange ===

    @_operation("auto_arrange")
    def auto_arrange(self, style: ArrangeStyle | str) -> list[Slot]:
        """Re-derive every slot's position with a heuristic.

        Switches the template to custom since positions become manual.

        Raises:
            NotFound: unknown style
            CapacityExceeded: more slots than the custom template holds
        """
        try:
            style = ArrangeStyle(style)
        except ValueError:
            raise NotFound(f"Unknown arrange style: {style}") from None
        if len(self._registry) > CUSTOM.max_slots:
            raise CapacityExceeded(f"Custom template holds {CUSTOM.max_slots} slots")

        rects = arrange(style, self._container, len(self._registry))
        slots = []
        for index, (slot, rect) in enumerate(zip(self._registry.slots, rects)):
            z_index = index + 1 if style.restacks else slot.z_index
            slots.append(replace(
                slot, frame=rect, manual_frame=rect, z_index=z_index, is_maximized=False,
            ))

        self._template = CUSTOM
        self._registry.replace_all(compact_z(slots))
        self._fullscreen = None
        self._previews.clear()

        logger.info(f"[LayoutManager] Auto-arranged {len(slots)} slots ({style.value})")
        self._publish()
        return self._registry.slots

    # === PiP ===

    @_operation("detach_to_pip")
    def detach_to_pip(
        self,
        stream_id: str,
        position: Point | None = None,
        size: Size | None = None,
    ) -> PiPStream:
        """Move a grid slot into the PiP layer, keeping its audio flag.

        Raises:
            NotFound: stream not in the grid
            InvalidGeometry: bad position/size
        """
        slot = self._registry.require(stream_id)
        self._placement.check(stream_id, "detach")
        pane = self._pip.create(
            stream_id, self._container, position, size, is_audio_active=slot.is_audio_active
        )
        remaining = [s for s in self._registry.slots if s.stream_id != stream_id]
        remaining = compact_z(self._layout(self._template, self._container, remaining))

        self._registry.replace_all(remaining)
        self._pip.commit([*self._pip.panes, pane])
        if self._fullscreen == stream_id:
            self._fullscreen = None
        self._previews.pop(stream_id, None)
        self._placement.apply(stream_id, "detach")

        logger.debug(format_stream_log("LayoutManager", stream_id, f"Detached as {pane.pip_id}"))
        self._publish()
        return pane

    @_operation("reattach_from_pip")
    def reattach_from_pip(self, key: str) -> Slot:
        """Return a PiP pane (pip id or stream id) to the grid.

        Raises:
            NotFound: no such pane
            CapacityExceeded: the template is full
        """
        pane = self._pip.require(key)
        stream_id = pane.stream_id
        if len(self._registry) >= self._template.max_slots:
            raise CapacityExceeded(
                f"Template {self._template.id} is full ({self._template.max_slots})", stream_id
            )
        self._placement.check(stream_id, "reattach")

        new_slot = Slot(
            stream_id=stream_id,
            frame=Rect.container(self._container),
            z_index=self._registry.max_z + 1,
            is_audio_active=pane.is_audio_active,
        )
        slots = self._layout(self._template, self._container, [*self._registry.slots, new_slot])

        self._registry.replace_all(slots)
        self._pip.commit(self._remove_pane(pane.pip_id))
        self._previews.pop(stream_id, None)
        self._placement.apply(stream_id, "reattach")

        logger.debug(format_stream_log("LayoutManager", stream_id, f"Reattached from {pane.pip_id}"))
        self._publish()
        return self._registry.require(stream_id)

    @_operation("move_pip")
    def move_pip(self, key: str, position: Point) -> PiPStream:
        pane = self._pip.require(key)
        return self._commit_pane(self._pip.moved(pane, position, self._container))

    @_operation("resize_pip")
    def resize_pip(self, key: str, size: Size) -> PiPStream:
        pane = self._pip.require(key)
        return self._commit_pane(self._pip.resized(pane, size, self._container))

    @_operation("minimize_pip")
    def minimize_pip(self, key: str) -> PiPStream:
        """Collapse to the bubble footprint; the stored size is kept."""
        pane = self._pip.require(key)
        return self._commit_pane(self._pip.minimized(pane))

    @_operation("maximize_pip")
    def maximize_pip(self, key: str) -> PiPStream:
        pane = self._pip.require(key)
        return self._commit_pane(self._pip.maximized(pane))

    @_operation("restore_pip")
    def restore_pip(self, key: str) -> PiPStream:
        pane = self._pip.require(key)
        return self._commit_pane(self._pip.restored(pane, self._container))

    @_operation("bring_pip_to_front")
    def bring_pip_to_front(self, key: str) -> PiPStream:
        pane = self._pip.require(key)
        self._pip.commit(self._pip.raised(self._pip.panes, pane.pip_id))
        self._publish()
        return self._pip.require(pane.pip_id)

    @_operation("close_pip")
    def close_pip(self, key: str) -> PiPStream:
        """Close a PiP pane; the stream leaves the layout."""
        pane = self._pip.require(key)
        self._placement.check(pane.stream_id, "close")

        self._pip.commit(self._remove_pane(pane.pip_id))
        self._drop_stream_refs(pane.stream_id)
        self._placement.apply(pane.stream_id, "close")

        logger.debug(format_stream_log("LayoutManager", pane.stream_id, f"Closed {pane.pip_id}"))
        self._publish()
        return pane

    def _commit_pane(self, pane: PiPStream) -> PiPStream:
        self._pip.commit([pane if p.pip_id == pane.pip_id else p for p in self._pip.panes])
        self._previews.pop(pane.stream_id, None)
        self._publish()
        return pane

    def _remove_pane(self, pip_id: str) -> list[PiPStream]:
        return PiPLayer.compacted([p for p in self._pip.panes if p.pip_id != pip_id])

    # === Drag / resize previews ===

    @_operation("preview_move")
    def preview_move(self, stream_id: str, translation: Point) -> Rect:
        """Record a non-authoritative drag preview.

        Raises:
            NotFound / TemplateLocked / InvalidGeometry
        """
        if not translation.is_finite:
            raise InvalidGeometry(f"Translation must be finite: {translation}", stream_id)
        base = self._draggable_frame(stream_id)
        preview = clamp_rect(base.translated(translation), self._container)
        self._set_preview(stream_id, preview)
        return preview

    @_operation("preview_resize")
    def preview_resize(self, stream_id: str, scale: float) -> Rect:
        """Record a non-authoritative resize preview (scale clamped)."""
        base = self._draggable_frame(stream_id)
        size = base.size.scaled(clamp_scale(scale))
        preview = clamp_rect(base.resized(size), self._container)
        self._set_preview(stream_id, preview)
        return preview

    @_operation("discard_preview")
    def discard_preview(self, stream_id: str) -> bool:
        """Drop a preview; committed state is untouched.

        Returns:
            True if a preview existed
        """
        if self._previews.pop(stream_id, None) is None:
            return False
        logger.debug(format_stream_log("LayoutManager", stream_id, "Preview discarded"))
        self._publish(committed=False)
        return True

    @_operation("commit_drag")
    def commit_drag(self, stream_id: str, translation: Point, snap: bool = False) -> Slot | PiPStream:
        """Commit a finished drag: one move per gesture.

        The preview is dropped whether or not the move succeeds.
        """
        try:
            if not translation.is_finite:
                raise InvalidGeometry(f"Translation must be finite: {translation}", stream_id)
            if stream_id in self._registry:
                slot = self._check_manual(stream_id)
                origin = slot.frame.origin + translation
                if snap:
                    origin = self.snap_origin(stream_id, origin)
                return self._move_slot(stream_id, origin)

            pane = self._pip.require(stream_id)
            origin = pane.position + translation
            if snap:
                origin = self.snap_origin(stream_id, origin)
            return self._commit_pane(self._pip.moved(pane, origin, self._container))
        finally:
            self._drop_preview(stream_id)

    @_operation("commit_resize")
    def commit_resize(self, stream_id: str, scale: float) -> Slot | PiPStream:
        """Commit a finished pinch with the clamped scale factor."""
        try:
            factor = clamp_scale(scale)
            if stream_id in self._registry:
                slot = self._check_manual(stream_id)
                return self._resize_slot(stream_id, slot.frame.size.scaled(factor))

            pane = self._pip.require(stream_id)
            resized = self._pip.resized(pane, pane.size.scaled(factor), self._container)
            return self._commit_pane(resized)
        finally:
            self._drop_preview(stream_id)

    def _draggable_frame(self, stream_id: str) -> Rect:
        if stream_id in self._registry:
            return self._check_manual(stream_id).frame
        pane = self._pip.get(stream_id)
        if pane is None or pane.stream_id != stream_id:
            raise NotFound(f"Stream not placed: {stream_id}", stream_id)
        return pane.footprint(self._container)

    def _set_preview(self, stream_id: str, rect: Rect) -> None:
        self._previews[stream_id] = rect
        self._publish(committed=False)

    def _drop_preview(self, stream_id: str) -> None:
        if self._previews.pop(stream_id, None) is not None:
            self._publish(committed=False)

    # === Validation ===

    def validate(self) -> list[LayoutIssue]:
        """Report problems in the committed grid layout.

        Overlap is not reported for the stack template, where it is the point.
        """
        issues: list[LayoutIssue] = []
        slots = self._registry.slots

        for slot in slots:
            if not slot.frame.within(self._container):
                issues.append(LayoutIssue("out_of_bounds", (slot.stream_id,),
                                          f"frame {slot.frame.to_dict()}"))
            if slot.frame.width < MIN_SLOT_WIDTH or slot.frame.height < MIN_SLOT_HEIGHT:
                issues.append(LayoutIssue(
                    "too_small", (slot.stream_id,),
                    f"{slot.frame.width:.0f}x{slot.frame.height:.0f}",
                ))

        if self._template is not STACK:
            for i, first in enumerate(slots):
                for second in slots[i + 1:]:
                    if first.frame.intersects(second.frame):
                        issues.append(LayoutIssue(
                            "overlap", (first.stream_id, second.stream_id)
                        ))
        return issues

    # === Persistence ===

    @_operation("restore")
    def restore(self, snapshot: LayoutSnapshot | dict) -> LayoutSnapshot:
        """Replace the whole layout with a saved snapshot.

        Frames are recomputed for the current container: template frames are
        derived again, custom frames and PiP panes are clamped inside it.

        Raises:
            InvalidSnapshot: malformed or inconsistent snapshot
            CapacityExceeded: more slots than the snapshot's template allows
            DuplicateStream: a stream appears twice
        """
        if isinstance(snapshot, dict):
            snapshot = LayoutSnapshot.from_dict(snapshot)
        template = TEMPLATES.get(snapshot.template_id)
        if template is None:
            raise InvalidSnapshot(f"Unknown template: {snapshot.template_id}")
        self._check_snapshot(snapshot, template)

        slots = list(snapshot.slots)
        panes = list(snapshot.pip_slots)
        if template.is_custom:
            slots = [
                replace(s, manual_frame=clamp_rect(s.manual_frame or s.frame, self._container))
                for s in slots
            ]
        slots = self._layout(template, self._container, slots)
        panes = [self._pip.clamped(p, self._container) for p in panes]

        self._template = template
        self._registry.replace_all(compact_z(slots))
        self._pip.commit(PiPLayer.compacted(panes))
        self._fullscreen = snapshot.fullscreen_stream_id
        self._previews.clear()
        self._placement.reset([s.stream_id for s in slots], [p.stream_id for p in panes])

        logger.info(
            f"[LayoutManager] Restored {template.id}: {len(slots)} slots, {len(panes)} pip"
        )
        self._publish()
        return self.serialize()

    def _check_snapshot(self, snapshot: LayoutSnapshot, template: Template) -> None:
        if len(snapshot.slots) > template.max_slots:
            raise CapacityExceeded(
                f"Snapshot has {len(snapshot.slots)} slots, {template.id} holds {template.max_slots}"
            )

        seen: set[str] = set()
        for stream_id in snapshot.stream_ids:
            if stream_id in seen:
                raise DuplicateStream(f"Stream appears twice in snapshot: {stream_id}", stream_id)
            seen.add(stream_id)

        pip_ids = [p.pip_id for p in snapshot.pip_slots]
        if len(set(pip_ids)) != len(pip_ids):
            raise InvalidSnapshot("Duplicate pip id in snapshot")
        if sum(s.is_focused for s in snapshot.slots) > 1:
            raise InvalidSnapshot("More than one focused slot")
        audio = sum(s.is_audio_active for s in snapshot.slots)
        audio += sum(p.is_audio_active for p in snapshot.pip_slots)
        if audio > 1:
            raise InvalidSnapshot("More than one audio-active stream")

        maximized = {s.stream_id for s in snapshot.slots if s.is_maximized}
        expected = {snapshot.fullscreen_stream_id} if snapshot.fullscreen_stream_id else set()
        if maximized != expected:
            raise InvalidSnapshot(
                f"Fullscreen mismatch: {snapshot.fullscreen_stream_id} vs maximized {sorted(maximized)}"
            )

    # === Internals ===

    @staticmethod
    def _layout(template: Template, container: Size, slots: list[Slot]) -> list[Slot]:
        """Recompute frames for `slots` in insertion order.

        For the custom template a slot without a manual frame gets its
        default cell, which is then remembered as its manual frame.
        """
        manual = [s.manual_frame for s in slots] if template.is_custom else []
        rects = template.rectangles(container, len(slots), manual)

        laid_out = []
        for index, slot in enumerate(slots):
            frame = rects[index] if index < len(rects) else Rect.container(container)
            if template.is_custom:
                laid_out.append(replace(slot, frame=frame, manual_frame=frame))
            else:
                laid_out.append(replace(slot, frame=frame))
        return laid_out

    def _drop_stream_refs(self, stream_id: str) -> None:
        if self._fullscreen == stream_id:
            self._fullscreen = None
        self._previews.pop(stream_id, None)


def _nearest(value: float, candidates: list[float]) -> float:
    best = value
    best_distance = SNAP_DISTANCE
    for candidate in candidates:
        distance = abs(candidate - value)
        if distance <= best_distance:
            best, best_distance = candidate, distance
    return best
