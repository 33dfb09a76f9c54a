"""PiP sub-layout

Free-floating layer drawn above the grid. Panes are only constrained by the
container bounds, and their z space starts at PIP_Z_INDEX_BASE so every PiP
pane renders above every grid slot.

PiPLayer computes new PiPStream values; PiPLayer.commit() is the only write.
"""

import itertools
from dataclasses import replace

from ..config import (
    PIP_BUBBLE_SIZE,
    PIP_CASCADE_OFFSET,
    PIP_DEFAULT_HEIGHT,
    PIP_DEFAULT_WIDTH,
    PIP_MARGIN,
    PIP_MIN_HEIGHT,
    PIP_MIN_WIDTH,
    PIP_Z_INDEX_BASE,
)
from ..errors import InvalidGeometry, NotFound
from .geometry import Point, Size, clamp_origin
from .types import PiPStream


class PiPLayer:
    """Ordered collection of detached panes."""

    def __init__(self):
        self._panes: dict[str, PiPStream] = {}
        self._ids = itertools.count(1)

    # === Queries ===

    def __len__(self) -> int:
        return len(self._panes)

    @property
    def panes(self) -> list[PiPStream]:
        return list(self._panes.values())

    @property
    def stream_ids(self) -> list[str]:
        return [p.stream_id for p in self._panes.values()]

    def contains_stream(self, stream_id: str) -> bool:
        return any(p.stream_id == stream_id for p in self._panes.values())

    def get(self, key: str) -> PiPStream | None:
        """Look up by pip id, falling back to stream id."""
        pane = self._panes.get(key)
        if pane is not None:
            return pane
        for pane in self._panes.values():
            if pane.stream_id == key:
                return pane
        return None

    def require(self, key: str) -> PiPStream:
        pane = self.get(key)
        if pane is None:
            raise NotFound(f"Stream not in PiP layer: {key}", key)
        return pane

    @property
    def audio_active(self) -> PiPStream | None:
        for pane in self._panes.values():
            if pane.is_audio_active:
                return pane
        return None

    # === Value builders (no mutation) ===

    def create(
        self,
        stream_id: str,
        container: Size,
        position: Point | None = None,
        size: Size | None = None,
        is_audio_active: bool = False,
    ) -> PiPStream:
        """Build a new pane for `stream_id` (not yet committed).

        Raises:
            InvalidGeometry: non-positive size or non-finite position
        """
        size = size or Size(PIP_DEFAULT_WIDTH, PIP_DEFAULT_HEIGHT)
        if not size.is_positive:
            raise InvalidGeometry(f"PiP size must be positive: {size}", stream_id)
        if position is not None and not position.is_finite:
            raise InvalidGeometry(f"PiP position must be finite: {position}", stream_id)

        size = self._fit_size(size, container)
        if position is None:
            position = self._default_position(size, container)

        return PiPStream(
            pip_id=f"pip-{next(self._ids)}",
            stream_id=stream_id,
            position=clamp_origin(position, size, container),
            size=size,
            z_index=self._next_z(),
            is_audio_active=is_audio_active,
        )

    def moved(self, pane: PiPStream, position: Point, container: Size) -> PiPStream:
        if not position.is_finite:
            raise InvalidGeometry(f"PiP position must be finite: {position}", pane.stream_id)
        extent = self._extent(pane)
        return replace(pane, position=clamp_origin(position, extent, container))

    def resized(self, pane: PiPStream, size: Size, container: Size) -> PiPStream:
        if not size.is_positive:
            raise InvalidGeometry(f"PiP size must be positive: {size}", pane.stream_id)
        size = self._fit_size(size, container)
        return replace(pane, size=size, position=clamp_origin(pane.position, size, container))

    def minimized(self, pane: PiPStream) -> PiPStream:
        return replace(pane, is_minimized=True, is_maximized=False)

    def maximized(self, pane: PiPStream) -> PiPStream:
        return replace(pane, is_minimized=False, is_maximized=True)

    def restored(self, pane: PiPStream, container: Size) -> PiPStream:
        pane = replace(pane, is_minimized=False, is_maximized=False)
        return replace(pane, position=clamp_origin(pane.position, pane.size, container))

    def clamped(self, pane: PiPStream, container: Size) -> PiPStream:
        """Refit a pane after a container resize."""
        size = self._fit_size(pane.size, container)
        pane = replace(pane, size=size)
        return replace(pane, position=clamp_origin(pane.position, self._extent(pane), container))

    def raised(self, panes: list[PiPStream], pip_id: str) -> list[PiPStream]:
        """Move one pane to the top of the PiP z space, renumbering densely."""
        top = max((p.z_index for p in panes), default=PIP_Z_INDEX_BASE) + 1
        raised = [replace(p, z_index=top) if p.pip_id == pip_id else p for p in panes]
        return self.compacted(raised)

    @staticmethod
    def compacted(panes: list[PiPStream]) -> list[PiPStream]:
        order = sorted(range(len(panes)), key=lambda i: (panes[i].z_index, i))
        new_z = {index: PIP_Z_INDEX_BASE + rank for rank, index in enumerate(order)}
        return [replace(p, z_index=new_z[i]) for i, p in enumerate(panes)]

    # === Writes ===

    def commit(self, panes: list[PiPStream]) -> None:
        """Replace the whole layer."""
        self._panes = {p.pip_id: p for p in panes}
        self._sync_counter()

    def clear(self) -> None:
        self._panes = {}

    # === Internals ===

    def _next_z(self) -> int:
        return max((p.z_index for p in self._panes.values()), default=PIP_Z_INDEX_BASE - 1) + 1

    def _default_position(self, size: Size, container: Size) -> Point:
        offset = len(self._panes) * PIP_CASCADE_OFFSET
        return Point(
            container.width - size.width - PIP_MARGIN - offset,
            container.height - size.height - PIP_MARGIN - offset,
        )

    @staticmethod
    def _fit_size(size: Size, container: Size) -> Size:
        width = min(max(size.width, PIP_MIN_WIDTH), container.width)
        height = min(max(size.height, PIP_MIN_HEIGHT), container.height)
        return Size(width, height)

    @staticmethod
    def _extent(pane: PiPStream) -> Size:
        """Size used for bounds clamping of the pane's position."""
        if pane.is_minimized:
            return Size(PIP_BUBBLE_SIZE, PIP_BUBBLE_SIZE)
        return pane.size

    def _sync_counter(self) -> None:
        # Keep generated ids unique after a restore.
        highest = 0
        for pip_id in self._panes:
            suffix = pip_id.rsplit("-", 1)[-1]
            if suffix.isdigit():
                highest = max(highest, int(suffix))
        current = next(self._ids)
        self._ids = itertools.count(max(current, highest + 1))
