"""Layout errors

All layout operations validate before committing: when one of these is raised
the layout state is exactly what it was before the call.
"""


class LayoutError(Exception):
    """Base class for synchronous layout validation failures.

    Attributes:
        stream_id: stream the failed operation targeted (if any)
        reason: short label used in logs and metrics
    """

    reason = "layout_error"

    def __init__(self, message: str, stream_id: str | None = None):
        super().__init__(message)
        self.stream_id = stream_id

    def to_dict(self) -> dict:
        return {
            "error": type(self).__name__,
            "reason": self.reason,
            "message": str(self),
            "stream_id": self.stream_id,
        }


class CapacityExceeded(LayoutError):
    """The operation would exceed the active template's slot limit."""

    reason = "capacity_exceeded"


class DuplicateStream(LayoutError):
    """The stream is already placed in the grid or the PiP layer."""

    reason = "duplicate_stream"


class NotFound(LayoutError):
    """The stream (or PiP pane) is not in the expected collection."""

    reason = "not_found"


class TemplateLocked(LayoutError):
    """Manual move/resize attempted while a non-custom template is active."""

    reason = "template_locked"


class InvalidGeometry(LayoutError):
    """The requested geometry has a non-positive area or non-finite values."""

    reason = "invalid_geometry"


class InvalidSnapshot(LayoutError):
    """A snapshot payload failed validation on restore."""

    reason = "invalid_snapshot"


class InvalidTransition(LayoutError):
    """The placement state machine has no transition for the operation."""

    reason = "invalid_transition"
