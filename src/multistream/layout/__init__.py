"""Layout module

Core layout components:
- geometry: Point / Size / Rect value types
- types: Slot, PiPStream, LayoutSnapshot, placement states
- templates: template catalog
- arrange: auto-arrange heuristics
- registry / pip: grid slots and the floating PiP layer
- placement: per-stream placement state machine
- manager: LayoutManager (single source of truth)
- queue: single-writer command queue
- persistence: named layout store
"""

from .arrange import ArrangeStyle, arrange
from .geometry import Point, Rect, Size
from .manager import LayoutManager
from .placement import PlacementTracker
from .queue import ActorQueue, CommandQueue, LayoutCommand
from .templates import TEMPLATES, Template, get_template, list_templates
from .types import (
    GridSubState,
    LayoutIssue,
    LayoutSnapshot,
    PiPStream,
    PiPSubState,
    PlacementState,
    Slot,
)
from . import persistence

__all__ = [
    # Geometry
    "Point",
    "Size",
    "Rect",
    # Types
    "Slot",
    "PiPStream",
    "LayoutSnapshot",
    "LayoutIssue",
    "PlacementState",
    "GridSubState",
    "PiPSubState",
    # Templates
    "Template",
    "TEMPLATES",
    "get_template",
    "list_templates",
    "ArrangeStyle",
    "arrange",
    # Manager
    "LayoutManager",
    "PlacementTracker",
    "ActorQueue",
    "CommandQueue",
    "LayoutCommand",
    "persistence",
]
