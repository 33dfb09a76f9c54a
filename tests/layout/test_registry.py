"""Tests for the slot registry"""

import pytest

from multistream.errors import NotFound
from multistream.layout.geometry import Rect
from multistream.layout.registry import SlotRegistry, compact_z
from multistream.layout.types import Slot


def _slot(stream_id: str, z: int, **flags) -> Slot:
    return Slot(stream_id, Rect(0, 0, 10, 10), z, **flags)


class TestSlotRegistry:
    """SlotRegistry"""

    def test_insertion_order(self):
        registry = SlotRegistry([_slot("b", 1), _slot("a", 2)])
        assert registry.stream_ids == ["b", "a"]
        assert registry.index_of("a") == 1
        assert "a" in registry
        assert len(registry) == 2

    def test_require(self):
        with pytest.raises(NotFound):
            SlotRegistry().require("x")

    def test_z_bounds(self):
        registry = SlotRegistry([_slot("a", 3), _slot("b", 7)])
        assert (registry.min_z, registry.max_z) == (3, 7)
        assert (SlotRegistry().min_z, SlotRegistry().max_z) == (0, 0)

    def test_flag_lookups(self):
        registry = SlotRegistry([_slot("a", 1), _slot("b", 2, is_focused=True, is_audio_active=True)])
        assert registry.focused.stream_id == "b"
        assert registry.audio_active.stream_id == "b"

    def test_iteration_is_a_copy(self):
        registry = SlotRegistry([_slot("a", 1)])
        iterator = iter(registry)
        registry.replace_all([])
        assert [s.stream_id for s in iterator] == ["a"]


def test_compact_z_keeps_order_and_breaks_ties_by_insertion():
    slots = compact_z([_slot("a", 5), _slot("b", 2), _slot("c", 5), _slot("d", -1)])
    assert [(s.stream_id, s.z_index) for s in slots] == [("a", 3), ("b", 2), ("c", 4), ("d", 1)]
