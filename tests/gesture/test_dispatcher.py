"""Tests for IntentDispatcher"""

import pytest

from multistream.errors import NotFound, TemplateLocked
from multistream.gesture.dispatcher import IntentDispatcher
from multistream.gesture.types import Intent, IntentKind
from multistream.layout.geometry import Point, Rect, Size
from multistream.layout.manager import LayoutManager


@pytest.fixture
def grid(container):
    manager = LayoutManager("grid2x2", container)
    for stream_id in ("a", "b", "c"):
        manager.add_stream(stream_id)
    return manager


@pytest.fixture
def dispatcher(grid):
    return IntentDispatcher(grid)


class TestGeometryIntents:
    """Drag / resize"""

    def test_drag_preview_then_commit(self, custom_manager):
        custom_manager.resize_slot("a", Size(200, 100))
        dispatcher = IntentDispatcher(custom_manager)

        result = dispatcher.dispatch(Intent(IntentKind.DRAG_MOVE, "a", Point(100, 100)))
        assert result.ok
        assert custom_manager.previews == {"a": Rect(100, 100, 200, 100)}

        result = dispatcher.dispatch(Intent(IntentKind.DRAG_END, "a", Point(100, 100)))
        assert result.ok
        assert custom_manager.get_slot("a").frame == Rect(100, 100, 200, 100)
        assert custom_manager.previews == {}

    def test_drag_end_snaps(self, custom_manager):
        custom_manager.resize_slot("a", Size(200, 100))
        IntentDispatcher(custom_manager).dispatch(Intent(IntentKind.DRAG_END, "a", Point(8, 8)))
        assert custom_manager.get_slot("a").frame.origin == Point(0, 0)

    def test_drag_without_snap(self, custom_manager):
        custom_manager.resize_slot("a", Size(200, 100))
        dispatcher = IntentDispatcher(custom_manager, snap=False)
        dispatcher.dispatch(Intent(IntentKind.DRAG_END, "a", Point(8, 8)))
        assert custom_manager.get_slot("a").frame.origin == Point(8, 8)

    def test_resize_preview_and_cancel(self, custom_manager):
        dispatcher = IntentDispatcher(custom_manager)
        dispatcher.dispatch(Intent(IntentKind.RESIZE, "a", scale=0.5))
        assert "a" in custom_manager.previews

        result = dispatcher.dispatch(Intent(IntentKind.RESIZE_CANCELLED, "a", scale=0.5))
        assert result.ok and result.result is True
        assert custom_manager.previews == {}

    def test_resize_end(self, custom_manager):
        custom_manager.resize_slot("a", Size(200, 100))
        IntentDispatcher(custom_manager).dispatch(Intent(IntentKind.RESIZE_END, "a", scale=1.5))
        assert custom_manager.get_slot("a").frame.size == Size(300, 150)

    def test_layout_error_is_returned(self, dispatcher, grid):
        before = grid.serialize()
        result = dispatcher.dispatch(Intent(IntentKind.DRAG_END, "a", Point(50, 50)))

        assert not result.ok
        assert isinstance(result.error, TemplateLocked)
        assert result.to_dict()["error"]["reason"] == "template_locked"
        assert grid.serialize() == before


class TestDiscreteIntents:
    """Focus / fullscreen / dismiss"""

    def test_focus(self, dispatcher, grid):
        dispatcher.dispatch(Intent(IntentKind.FOCUS, "b"))
        assert grid.focused_stream_id == "b"

    def test_focus_on_pip_raises_pane(self, dispatcher, grid):
        grid.detach_to_pip("a")
        grid.detach_to_pip("b")
        dispatcher.dispatch(Intent(IntentKind.FOCUS, "a"))
        assert grid.get_pip("a").z_index > grid.get_pip("b").z_index

    def test_focus_unknown(self, dispatcher):
        result = dispatcher.dispatch(Intent(IntentKind.FOCUS, "ghost"))
        assert isinstance(result.error, NotFound)

    def test_clear_focus(self, dispatcher, grid):
        grid.set_focus("a")
        dispatcher.dispatch(Intent(IntentKind.CLEAR_FOCUS))
        assert grid.focused_stream_id is None

    def test_toggle_fullscreen(self, dispatcher, grid):
        dispatcher.dispatch(Intent(IntentKind.TOGGLE_FULLSCREEN, "c"))
        assert grid.fullscreen_stream_id == "c"
        dispatcher.dispatch(Intent(IntentKind.TOGGLE_FULLSCREEN, "c"))
        assert grid.fullscreen_stream_id is None

    def test_toggle_fullscreen_on_pip(self, dispatcher, grid):
        grid.detach_to_pip("a")
        dispatcher.dispatch(Intent(IntentKind.TOGGLE_FULLSCREEN, "a"))
        assert grid.get_pip("a").is_maximized
        dispatcher.dispatch(Intent(IntentKind.TOGGLE_FULLSCREEN, "a"))
        assert not grid.get_pip("a").is_maximized

    def test_dismiss_exits_fullscreen_first(self, dispatcher, grid):
        grid.toggle_fullscreen("a")
        dispatcher.dispatch(Intent(IntentKind.DISMISS))
        assert grid.fullscreen_stream_id is None
        assert grid.contains("a")

    def test_dismiss_closes_pip(self, dispatcher, grid):
        grid.detach_to_pip("a")
        dispatcher.dispatch(Intent(IntentKind.DISMISS, "a"))
        assert not grid.contains("a")

    def test_dismiss_removes_grid_slot(self, dispatcher, grid):
        dispatcher.dispatch(Intent(IntentKind.DISMISS, "b"))
        assert grid.stream_ids == ["a", "c"]


class TestSelectionMode:
    """Long-press selection and batch operations"""

    def test_enter_and_toggle(self, dispatcher):
        dispatcher.dispatch(Intent(IntentKind.ENTER_SELECTION, "a"))
        assert dispatcher.selection_mode
        assert dispatcher.selection == ["a"]

        dispatcher.dispatch(Intent(IntentKind.FOCUS, "b"))
        dispatcher.dispatch(Intent(IntentKind.FOCUS, "a"))
        dispatcher.dispatch(Intent(IntentKind.FOCUS, "ghost"))
        assert dispatcher.selection == ["b"]

    def test_taps_do_not_focus_in_selection_mode(self, dispatcher, grid):
        dispatcher.dispatch(Intent(IntentKind.ENTER_SELECTION, "a"))
        dispatcher.dispatch(Intent(IntentKind.FOCUS, "b"))
        assert grid.focused_stream_id is None

    def test_clear_focus_exits_selection(self, dispatcher):
        dispatcher.dispatch(Intent(IntentKind.ENTER_SELECTION, "a"))
        dispatcher.dispatch(Intent(IntentKind.CLEAR_FOCUS))
        assert not dispatcher.selection_mode
        assert dispatcher.selection == []

    def test_remove_selected(self, dispatcher, grid):
        dispatcher.dispatch(Intent(IntentKind.ENTER_SELECTION, "a"))
        dispatcher.dispatch(Intent(IntentKind.FOCUS, "c"))

        results = dispatcher.remove_selected()

        assert [r.stream_id for r in results] == ["a", "c"]
        assert all(r.ok for r in results)
        assert grid.stream_ids == ["b"]
        assert not dispatcher.selection_mode

    def test_detach_selected_reports_partial_failure(self, dispatcher, grid):
        grid.detach_to_pip("b")
        dispatcher.dispatch(Intent(IntentKind.ENTER_SELECTION, "a"))
        dispatcher.dispatch(Intent(IntentKind.FOCUS, "b"))

        results = dispatcher.detach_selected()

        assert [r.ok for r in results] == [True, False]
        assert isinstance(results[1].error, NotFound)
        assert [p.stream_id for p in grid.pip_panes] == ["b", "a"]
