"""MultiStream configuration

Settings are grouped as:
- Geometry: canvas defaults, grid spacing, minimum slot size
- Capacity: per-template slot limits
- Auto-arrange: heuristic parameters
- PiP: floating layer sizes and z-space
- Gesture: thresholds and timeouts
- Queue: single-writer command queue
- Persistence / logging / web
"""

import os
from pathlib import Path

# === Geometry ===
DEFAULT_CONTAINER_WIDTH = 1280.0  # px
DEFAULT_CONTAINER_HEIGHT = 720.0  # px
GRID_SPACING = 8.0  # gap between grid panes (px)
MIN_SLOT_WIDTH = 120.0  # resize floor (px)
MIN_SLOT_HEIGHT = 68.0  # resize floor (px)
SNAP_DISTANCE = 20.0  # edge snapping distance (px)

# === Capacity ===
TEMPLATE_MAX_SLOTS = {
    "single": 1,
    "grid2x2": 4,
    "grid3x3": 9,
    "grid4x4": 16,
    "stack": 10,
    "custom": 50,
}
DEFAULT_TEMPLATE_ID = "grid2x2"

# === Auto-arrange ===
CASCADE_OFFSET = 30.0  # diagonal offset per pane (px)
CASCADE_SIZE_RATIO = 0.6  # cascade pane size relative to the canvas
CASCADE_MAX_WIDTH = 400.0
CASCADE_MAX_HEIGHT = 300.0
CIRCLE_RADIUS_RATIO = 0.3  # ring radius relative to the shorter canvas side
CIRCLE_PANE_WIDTH = 150.0
CIRCLE_PANE_HEIGHT = 112.0

# === PiP ===
PIP_DEFAULT_WIDTH = 160.0
PIP_DEFAULT_HEIGHT = 90.0
PIP_MIN_WIDTH = 160.0
PIP_MIN_HEIGHT = 90.0
PIP_BUBBLE_SIZE = 60.0  # minimized footprint (px, square)
PIP_MARGIN = 16.0  # default distance from the container edge (px)
PIP_CASCADE_OFFSET = 24.0  # offset between consecutively detached panes (px)
PIP_Z_INDEX_BASE = 100  # PiP z space starts here, grid z space stays below it

# === Gesture ===
DOUBLE_TAP_INTERVAL_SECONDS = 0.5
LONG_PRESS_SECONDS = 0.5
MIN_DRAG_DISTANCE = 10.0  # px before a pan becomes a drag
MIN_RESIZE_SCALE = 0.5
MAX_RESIZE_SCALE = 2.0
GESTURE_TIMEOUT_SECONDS = 1.0  # silence before an open drag/resize is force-ended
GESTURE_POLL_INTERVAL = 0.1  # timer poll interval (s)

# === Command queue ===
QUEUE_MAX_SIZE = 256
QUEUE_HIGH_WATERMARK = 0.75  # debug log above this fill ratio
QUEUE_LOW_PRIORITY_DROP_WATERMARK = 0.80  # previews dropped above this fill ratio
LOW_PRIORITY_COMMANDS = {"preview_move", "preview_resize"}
PROTECTED_COMMANDS = {
    "set_container_size",
    "remove_stream",
    "commit_drag",
    "commit_resize",
    "discard_preview",
}

# === Timer ===
TIMER_TICK_INTERVAL = 0.05  # s

# === Placement history ===
PLACEMENT_HISTORY_MAX_LENGTH = 30

# === Persistence ===
PERSIST_DIR = Path(os.environ.get("MULTISTREAM_PERSIST_DIR", Path.home() / ".multistream"))
PERSIST_FILE = PERSIST_DIR / "layouts.json"
PERSIST_VERSION = 1

# === Logging ===
LOG_LEVEL = os.environ.get("MULTISTREAM_LOG_LEVEL", "INFO")

# === Metrics ===
METRICS_ENABLED = True

# === Web ===
WEB_HOST = "0.0.0.0"
WEB_PORT = 8766
