"""Placement state machine

Tracks where each stream lives:

    UNPLACED --add--> IN_GRID --detach--> IN_PIP
    IN_PIP --reattach--> IN_GRID
    IN_GRID / IN_PIP --remove--> REMOVED
    IN_PIP --close--> REMOVED
    REMOVED --add--> IN_GRID (new generation)

The LayoutManager checks a transition before validating anything else it
needs, and applies it only when the whole operation commits.
"""

from collections import deque
from dataclasses import dataclass, field

from ..config import PLACEMENT_HISTORY_MAX_LENGTH
from ..errors import InvalidTransition
from ..telemetry import get_logger
from .types import PlacementHistoryEntry, PlacementState

logger = get_logger(__name__)

TRANSITIONS: dict[tuple[PlacementState, str], PlacementState] = {
    (PlacementState.UNPLACED, "add"): PlacementState.IN_GRID,
    (PlacementState.REMOVED, "add"): PlacementState.IN_GRID,
    (PlacementState.IN_GRID, "detach"): PlacementState.IN_PIP,
    (PlacementState.IN_PIP, "reattach"): PlacementState.IN_GRID,
    (PlacementState.IN_GRID, "remove"): PlacementState.REMOVED,
    (PlacementState.IN_PIP, "remove"): PlacementState.REMOVED,
    (PlacementState.IN_PIP, "close"): PlacementState.REMOVED,
}


@dataclass
class PlacementRecord:
    """Placement state of one stream."""
    state: PlacementState = PlacementState.UNPLACED
    generation: int = 0
    history: deque[PlacementHistoryEntry] = field(
        default_factory=lambda: deque(maxlen=PLACEMENT_HISTORY_MAX_LENGTH)
    )


class PlacementTracker:
    """Per-stream placement records with bounded history."""

    def __init__(self):
        self._records: dict[str, PlacementRecord] = {}

    def state(self, stream_id: str) -> PlacementState:
        record = self._records.get(stream_id)
        return record.state if record else PlacementState.UNPLACED

    def generation(self, stream_id: str) -> int:
        record = self._records.get(stream_id)
        return record.generation if record else 0

    def history(self, stream_id: str) -> list[PlacementHistoryEntry]:
        record = self._records.get(stream_id)
        return list(record.history) if record else []

    def check(self, stream_id: str, operation: str) -> PlacementState:
        """Return the target state of `operation` without applying it.

        Raises:
            InvalidTransition: no rule for (current state, operation)
        """
        current = self.state(stream_id)
        target = TRANSITIONS.get((current, operation))
        if target is None:
            raise InvalidTransition(
                f"Cannot {operation} stream in state {current.value}: {stream_id}",
                stream_id,
            )
        return target

    def apply(self, stream_id: str, operation: str) -> PlacementState:
        """Apply a checked transition and record it."""
        target = self.check(stream_id, operation)
        record = self._records.setdefault(stream_id, PlacementRecord())
        if operation == "add":
            record.generation += 1
        self._record(stream_id, record, operation, target)
        return target

    def reset(self, grid_ids: list[str], pip_ids: list[str]) -> None:
        """Re-seed states after a restore.

        Streams not in either list that were placed become REMOVED.
        """
        placed = {sid: PlacementState.IN_GRID for sid in grid_ids}
        placed.update({sid: PlacementState.IN_PIP for sid in pip_ids})

        for stream_id, record in self._records.items():
            if stream_id not in placed and record.state.is_placed:
                self._record(stream_id, record, "restore", PlacementState.REMOVED)

        for stream_id, target in placed.items():
            record = self._records.setdefault(stream_id, PlacementRecord())
            if not record.state.is_placed:
                record.generation += 1
            if record.state != target:
                self._record(stream_id, record, "restore", target)

    def _record(
        self,
        stream_id: str,
        record: PlacementRecord,
        operation: str,
        target: PlacementState,
    ) -> None:
        entry = PlacementHistoryEntry(
            operation=operation,
            from_state=record.state,
            to_state=target,
            generation=record.generation,
        )
        record.history.append(entry)
        record.state = target
        logger.debug(f"[Placement:{stream_id}] {entry}")
