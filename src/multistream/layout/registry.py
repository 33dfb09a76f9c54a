"""Slot Registry

Ordered mapping stream_id -> Slot in insertion order. Slots are frozen; all
writes go through replace_all() so readers holding a previous list are never
affected.
"""

from collections.abc import Iterator
from dataclasses import replace

from ..errors import NotFound
from .types import Slot


class SlotRegistry:
    """Ordered slot collection of the main layout."""

    def __init__(self, slots: list[Slot] | None = None):
        self._slots: dict[str, Slot] = {}
        if slots:
            self.replace_all(slots)

    # === Queries ===

    def __len__(self) -> int:
        return len(self._slots)

    def __contains__(self, stream_id: object) -> bool:
        return stream_id in self._slots

    def __iter__(self) -> Iterator[Slot]:
        return iter(list(self._slots.values()))

    def get(self, stream_id: str) -> Slot | None:
        return self._slots.get(stream_id)

    def require(self, stream_id: str) -> Slot:
        """Return the slot or raise NotFound."""
        slot = self._slots.get(stream_id)
        if slot is None:
            raise NotFound(f"Stream not in layout: {stream_id}", stream_id)
        return slot

    def index_of(self, stream_id: str) -> int:
        return list(self._slots).index(stream_id)

    @property
    def slots(self) -> list[Slot]:
        return list(self._slots.values())

    @property
    def stream_ids(self) -> list[str]:
        return list(self._slots.keys())

    @property
    def max_z(self) -> int:
        return max((s.z_index for s in self._slots.values()), default=0)

    @property
    def min_z(self) -> int:
        return min((s.z_index for s in self._slots.values()), default=0)

    @property
    def focused(self) -> Slot | None:
        for slot in self._slots.values():
            if slot.is_focused:
                return slot
        return None

    @property
    def audio_active(self) -> Slot | None:
        for slot in self._slots.values():
            if slot.is_audio_active:
                return slot
        return None

    # === Writes ===

    def replace_all(self, slots: list[Slot]) -> None:
        """Swap in a new ordered slot list."""
        self._slots = {slot.stream_id: slot for slot in slots}

    def clear(self) -> None:
        self._slots = {}


def compact_z(slots: list[Slot], start: int = 1) -> list[Slot]:
    """Renumber z_index densely from `start`, keeping relative order.

    Ties are broken by insertion order. The returned list keeps insertion order.
    """
    order = sorted(range(len(slots)), key=lambda i: (slots[i].z_index, i))
    new_z = {index: start + rank for rank, index in enumerate(order)}
    return [
        slot if slot.z_index == new_z[i] else replace(slot, z_index=new_z[i])
        for i, slot in enumerate(slots)
    ]
