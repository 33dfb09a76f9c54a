"""IntentDispatcher - applies intents to the LayoutManager

Maps each Intent to one manager operation and reports the outcome as a
DispatchResult. Layout errors are returned, not raised; anything else
propagates.

Selection mode (entered by long press) turns taps into membership toggles;
batch operations over the selection are sequential single-slot calls.
"""

from dataclasses import dataclass
from typing import Any

from ..errors import LayoutError
from ..layout.manager import LayoutManager
from ..telemetry import get_logger
from .types import Intent, IntentKind

logger = get_logger(__name__)


@dataclass
class DispatchResult:
    """Outcome of one dispatched intent (or one batch step)."""
    intent: Intent | None
    ok: bool
    error: LayoutError | None = None
    result: Any = None
    stream_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "intent": self.intent.to_dict() if self.intent else None,
            "ok": self.ok,
            "error": self.error.to_dict() if self.error else None,
            "stream_id": self.stream_id,
        }


class IntentDispatcher:
    """Intent -> LayoutManager bridge with selection-mode state."""

    def __init__(self, manager: LayoutManager, snap: bool = True):
        """
        Args:
            manager: layout owner
            snap: snap committed drags to neighbour and container edges
        """
        self._manager = manager
        self._snap = snap
        self._selection_mode = False
        self._selection: list[str] = []

    @property
    def selection_mode(self) -> bool:
        return self._selection_mode

    @property
    def selection(self) -> list[str]:
        return list(self._selection)

    def dispatch(self, intent: Intent) -> DispatchResult:
        try:
            result = self._apply(intent)
        except LayoutError as e:
            logger.debug(f"[Dispatcher] {intent.kind.value} on {intent.stream_id} failed: {e}")
            return DispatchResult(intent, ok=False, error=e, stream_id=intent.stream_id)
        return DispatchResult(intent, ok=True, result=result, stream_id=intent.stream_id)

    def dispatch_all(self, intents: list[Intent]) -> list[DispatchResult]:
        return [self.dispatch(intent) for intent in intents]

    def _apply(self, intent: Intent) -> Any:
        manager = self._manager
        sid = intent.stream_id
        kind = intent.kind

        if kind == IntentKind.DRAG_MOVE:
            return manager.preview_move(sid, intent.translation)
        if kind == IntentKind.DRAG_END:
            return manager.commit_drag(sid, intent.translation, snap=self._snap)
        if kind == IntentKind.RESIZE:
            return manager.preview_resize(sid, intent.scale)
        if kind == IntentKind.RESIZE_END:
            return manager.commit_resize(sid, intent.scale)
        if kind in (IntentKind.DRAG_CANCELLED, IntentKind.RESIZE_CANCELLED):
            return manager.discard_preview(sid)

        if kind == IntentKind.FOCUS:
            if self._selection_mode:
                return self._toggle_selected(sid)
            if manager.get_slot(sid) is None and manager.get_pip(sid) is not None:
                return manager.bring_pip_to_front(sid)
            return manager.set_focus(sid)

        if kind == IntentKind.CLEAR_FOCUS:
            if self._selection_mode:
                return self.exit_selection()
            return manager.clear_focus()

        if kind == IntentKind.TOGGLE_FULLSCREEN:
            pane = manager.get_pip(sid) if manager.get_slot(sid) is None else None
            if pane is not None:
                if pane.is_maximized:
                    return manager.restore_pip(sid)
                return manager.maximize_pip(sid)
            return manager.toggle_fullscreen(sid)

        if kind == IntentKind.ENTER_SELECTION:
            self._selection_mode = True
            self._selection = [sid] if sid and manager.contains(sid) else []
            logger.debug(f"[Dispatcher] Selection mode on ({self._selection})")
            return self.selection

        # DISMISS
        if manager.fullscreen_stream_id is not None and sid in (None, manager.fullscreen_stream_id):
            return manager.exit_fullscreen()
        if sid is not None and manager.get_slot(sid) is None and manager.get_pip(sid) is not None:
            return manager.close_pip(sid)
        return manager.remove_stream(sid)

    # === Selection mode ===

    def _toggle_selected(self, stream_id: str) -> list[str]:
        if stream_id in self._selection:
            self._selection.remove(stream_id)
        elif self._manager.contains(stream_id):
            self._selection.append(stream_id)
        return self.selection

    def exit_selection(self) -> list[str]:
        """Leave selection mode.

        Returns:
            the selection at exit
        """
        selected = self.selection
        self._selection_mode = False
        self._selection = []
        return selected

    def remove_selected(self) -> list[DispatchResult]:
        """Remove every selected stream, then leave selection mode."""
        return self._batch(self._manager.remove_stream)

    def detach_selected(self) -> list[DispatchResult]:
        """Detach every selected grid stream to PiP, then leave selection mode."""
        return self._batch(self._manager.detach_to_pip)

    def _batch(self, operation) -> list[DispatchResult]:
        results = []
        for stream_id in self.exit_selection():
            try:
                value = operation(stream_id)
            except LayoutError as e:
                results.append(DispatchResult(None, ok=False, error=e, stream_id=stream_id))
            else:
                results.append(DispatchResult(None, ok=True, result=value, stream_id=stream_id))
        return results
