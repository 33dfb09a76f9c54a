"""Layout template catalog

A template maps (container size, slot count) to an ordered list of
rectangles, one per slot in insertion order. Built-in rectangle functions are
pure: the same inputs always produce the same list.

Catalog:
- single: one full-container rectangle
- grid2x2 / grid3x3 / grid4x4: n×n equal cells, row-major, fixed spacing
- stack: every slot covers the whole container, z order decides visibility
- custom: manual positions from the slot registry, default grid cell otherwise
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Callable

from ..config import GRID_SPACING, TEMPLATE_MAX_SLOTS
from .geometry import Rect, Size, clamp_rect

# (container, slot_count, manual_frames) -> rectangles
RectangleFn = Callable[[Size, int, Sequence[Rect | None]], list[Rect]]


@dataclass(frozen=True)
class Template:
    """Immutable template descriptor.

    Attributes:
        id: catalog key ("grid2x2", ...)
        display_name: human readable name
        max_slots: capacity, adds beyond it are rejected
        column_count: grid columns (1 for non-grid templates)
        rectangle_fn: pure rectangle function
    """
    id: str
    display_name: str
    max_slots: int
    column_count: int
    rectangle_fn: RectangleFn

    @property
    def is_custom(self) -> bool:
        return self.id == "custom"

    @property
    def allows_manual_placement(self) -> bool:
        return self.is_custom

    def rectangles(
        self,
        container: Size,
        slot_count: int,
        manual_frames: Sequence[Rect | None] = (),
    ) -> list[Rect]:
        """Rectangles for the first `slot_count` slots.

        Args:
            container: canvas size
            slot_count: number of slots
            manual_frames: per-slot manual rectangles (custom template only)

        Returns:
            list in slot insertion order; empty when slot_count == 0
        """
        if slot_count <= 0:
            return []
        return self.rectangle_fn(container, slot_count, manual_frames)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "max_slots": self.max_slots,
            "column_count": self.column_count,
        }


def grid_cells(container: Size, columns: int, rows: int, count: int,
               spacing: float = GRID_SPACING) -> list[Rect]:
    """Equal cells in row-major order, first `count` populated.

    Spacing is dropped if it would leave no room for the cells.
    """
    if columns * spacing >= container.width or rows * spacing >= container.height:
        spacing = 0.0

    cell_width = (container.width - (columns - 1) * spacing) / columns
    cell_height = (container.height - (rows - 1) * spacing) / rows

    rects = []
    for index in range(min(count, columns * rows)):
        col = index % columns
        row = index // columns
        rects.append(Rect(
            x=col * (cell_width + spacing),
            y=row * (cell_height + spacing),
            width=cell_width,
            height=cell_height,
        ))
    return rects


def auto_grid_shape(count: int) -> tuple[int, int]:
    """(columns, rows) of the smallest near-square grid holding `count` cells."""
    columns = max(1, math.ceil(math.sqrt(count)))
    rows = max(1, math.ceil(count / columns))
    return columns, rows


def _single_rects(container: Size, count: int, manual: Sequence[Rect | None]) -> list[Rect]:
    # Extra slots get no screen space.
    return [Rect.container(container)]


def _make_grid_fn(n: int) -> RectangleFn:
    def _grid_rects(container: Size, count: int, manual: Sequence[Rect | None]) -> list[Rect]:
        return grid_cells(container, n, n, count)
    return _grid_rects


def _stack_rects(container: Size, count: int, manual: Sequence[Rect | None]) -> list[Rect]:
    return [Rect.container(container) for _ in range(count)]


def _custom_rects(container: Size, count: int, manual: Sequence[Rect | None]) -> list[Rect]:
    columns, rows = auto_grid_shape(count)
    defaults = grid_cells(container, columns, rows, count)

    rects = []
    for index in range(count):
        frame = manual[index] if index < len(manual) else None
        if frame is None:
            rects.append(defaults[index])
        else:
            rects.append(clamp_rect(frame, container))
    return rects


SINGLE = Template("single", "Single", TEMPLATE_MAX_SLOTS["single"], 1, _single_rects)
GRID_2X2 = Template("grid2x2", "2x2 Grid", TEMPLATE_MAX_SLOTS["grid2x2"], 2, _make_grid_fn(2))
GRID_3X3 = Template("grid3x3", "3x3 Grid", TEMPLATE_MAX_SLOTS["grid3x3"], 3, _make_grid_fn(3))
GRID_4X4 = Template("grid4x4", "4x4 Grid", TEMPLATE_MAX_SLOTS["grid4x4"], 4, _make_grid_fn(4))
STACK = Template("stack", "Stack", TEMPLATE_MAX_SLOTS["stack"], 1, _stack_rects)
CUSTOM = Template("custom", "Custom", TEMPLATE_MAX_SLOTS["custom"], 1, _custom_rects)

TEMPLATES: dict[str, Template] = {
    t.id: t for t in (SINGLE, GRID_2X2, GRID_3X3, GRID_4X4, STACK, CUSTOM)
}


def get_template(template: "Template | str") -> Template:
    """Resolve a template id (or pass a Template through).

    Raises:
        KeyError: unknown template id
    """
    if isinstance(template, Template):
        return template
    try:
        return TEMPLATES[template]
    except KeyError:
        raise KeyError(f"Unknown template: {template}") from None


def list_templates() -> list[Template]:
    return list(TEMPLATES.values())
