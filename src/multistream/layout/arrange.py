"""Auto-arrange heuristics

Each heuristic derives one rectangle per slot (insertion order) for a
container, independent of the active template. Results are clamped to the
container.
"""

import math
from enum import Enum

from ..config import (
    CASCADE_MAX_HEIGHT,
    CASCADE_MAX_WIDTH,
    CASCADE_OFFSET,
    CASCADE_SIZE_RATIO,
    CIRCLE_PANE_HEIGHT,
    CIRCLE_PANE_WIDTH,
    CIRCLE_RADIUS_RATIO,
)
from .geometry import Rect, Size, clamp_rect
from .templates import auto_grid_shape, grid_cells


class ArrangeStyle(Enum):
    GRID = "grid"        # near-square grid sized to the slot count
    CASCADE = "cascade"  # diagonally offset overlapping panes
    STACK = "stack"      # exact overlap, full container
    CIRCLE = "circle"    # evenly spaced on a ring

    @property
    def restacks(self) -> bool:
        """Whether the heuristic also dictates z order (insertion order)."""
        return self == ArrangeStyle.CASCADE


def arrange(style: ArrangeStyle | str, container: Size, count: int) -> list[Rect]:
    """Compute rectangles for `count` slots.

    Args:
        style: heuristic name or enum
        container: canvas size
        count: slot count

    Returns:
        rectangles in slot order (empty for count == 0)
    """
    style = ArrangeStyle(style)
    if count <= 0:
        return []

    if style == ArrangeStyle.GRID:
        columns, rows = auto_grid_shape(count)
        return grid_cells(container, columns, rows, count)
    if style == ArrangeStyle.CASCADE:
        return _cascade(container, count)
    if style == ArrangeStyle.STACK:
        return [Rect.container(container) for _ in range(count)]
    return _circle(container, count)


def _cascade(container: Size, count: int) -> list[Rect]:
    width = min(container.width * CASCADE_SIZE_RATIO, CASCADE_MAX_WIDTH)
    height = min(container.height * CASCADE_SIZE_RATIO, CASCADE_MAX_HEIGHT)

    rects = []
    for index in range(count):
        offset = index * CASCADE_OFFSET
        rects.append(clamp_rect(Rect(offset, offset, width, height), container))
    return rects


def _circle(container: Size, count: int) -> list[Rect]:
    center_x = container.width / 2
    center_y = container.height / 2
    radius = min(container.width, container.height) * CIRCLE_RADIUS_RATIO
    width = min(CIRCLE_PANE_WIDTH, container.width)
    height = min(CIRCLE_PANE_HEIGHT, container.height)
    angle_step = 2.0 * math.pi / count

    rects = []
    for index in range(count):
        angle = index * angle_step
        x = center_x + radius * math.cos(angle) - width / 2
        y = center_y + radius * math.sin(angle) - height / 2
        rects.append(clamp_rect(Rect(x, y, width, height), container))
    return rects
