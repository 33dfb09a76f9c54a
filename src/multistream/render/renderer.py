"""Layout snapshot renderer using Rich.

Draws a LayoutSnapshot on a character canvas (one box per visible pane) and
exports it as plain text or SVG.
"""

import io
import re
from dataclasses import dataclass

from rich.console import Console
from rich.style import Style
from rich.text import Text

from ..core.ids import short_id
from ..layout.geometry import Rect, Size
from ..layout.types import LayoutSnapshot
from ..telemetry import get_logger

logger = get_logger(__name__)

# XML 1.0 excludes these code points
_INVALID_XML_CHARS_RE = re.compile(
    r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f\ud800-\udfff\ufffe\uffff]"
)

# Terminal cells are roughly twice as tall as they are wide
CELL_ASPECT = 0.5

STYLE_NORMAL = Style(color="white")
STYLE_FOCUSED = Style(color="yellow", bold=True)
STYLE_AUDIO = Style(color="green", bold=True)
STYLE_PIP = Style(color="cyan")
STYLE_PREVIEW = Style(color="magenta", dim=True)

AUDIO_MARK = "♪"
FOCUS_MARK = "*"


def _sanitize_for_xml(text: str) -> str:
    return _INVALID_XML_CHARS_RE.sub("", text)


@dataclass
class _Box:
    rect: Rect
    label: str
    style: Style
    border: str = "box"  # "box" | "dashed"


class LayoutRenderer:
    """Character-canvas renderer for layout snapshots."""

    def __init__(self, width: int = 80):
        """
        Args:
            width: canvas width in characters
        """
        self.width = max(width, 10)

    def canvas_height(self, container: Size) -> int:
        return max(3, round(self.width * container.height / container.width * CELL_ASPECT))

    def render_text(self, snapshot: LayoutSnapshot, titles: dict[str, str] | None = None) -> str:
        """Plain-text diagram of the snapshot."""
        console = self._console(snapshot)
        console.print(self._build(snapshot, titles or {}), end="")
        return console.export_text()

    def render_svg(
        self,
        snapshot: LayoutSnapshot,
        titles: dict[str, str] | None = None,
        title: str = "MultiStream layout",
    ) -> str:
        """SVG diagram of the snapshot."""
        console = self._console(snapshot)
        console.print(self._build(snapshot, titles or {}), end="")
        return console.export_svg(title=_sanitize_for_xml(title))

    def _console(self, snapshot: LayoutSnapshot) -> Console:
        return Console(
            record=True,
            width=self.width,
            height=self.canvas_height(snapshot.container_size),
            file=io.StringIO(),
            force_terminal=True,
            color_system="truecolor",
        )

    # === Canvas ===

    def _boxes(self, snapshot: LayoutSnapshot, titles: dict[str, str]) -> list[_Box]:
        """Boxes in paint order (bottom first)."""
        container = snapshot.container_size

        def label(stream_id: str, focused: bool = False, audio: bool = False) -> str:
            text = titles.get(stream_id) or short_id(stream_id, 16)
            marks = (FOCUS_MARK if focused else "") + (AUDIO_MARK if audio else "")
            return f"{marks} {text}".strip()

        if snapshot.fullscreen_stream_id is not None:
            slot = snapshot.get_slot(snapshot.fullscreen_stream_id)
            audio = slot.is_audio_active if slot else False
            return [_Box(
                Rect.container(container),
                label(snapshot.fullscreen_stream_id, True, audio) + " [fullscreen]",
                STYLE_AUDIO if audio else STYLE_FOCUSED,
            )]

        boxes = []
        for slot in sorted(snapshot.slots, key=lambda s: s.z_index):
            if slot.is_audio_active:
                style = STYLE_AUDIO
            elif slot.is_focused:
                style = STYLE_FOCUSED
            else:
                style = STYLE_NORMAL
            boxes.append(_Box(
                slot.frame, label(slot.stream_id, slot.is_focused, slot.is_audio_active), style
            ))

        for pane in sorted(snapshot.pip_slots, key=lambda p: p.z_index):
            text = label(pane.stream_id, audio=pane.is_audio_active)
            if pane.is_minimized:
                text = AUDIO_MARK if pane.is_audio_active else "o"
            boxes.append(_Box(
                pane.footprint(container), text, STYLE_AUDIO if pane.is_audio_active else STYLE_PIP
            ))

        for stream_id, rect in snapshot.previews.items():
            boxes.append(_Box(rect, "", STYLE_PREVIEW, border="dashed"))
        return boxes

    def _build(self, snapshot: LayoutSnapshot, titles: dict[str, str]) -> Text:
        container = snapshot.container_size
        rows = self.canvas_height(container)
        cols = self.width
        chars = [[" "] * cols for _ in range(rows)]
        styles: list[list[Style | None]] = [[None] * cols for _ in range(rows)]

        sx = cols / container.width
        sy = rows / container.height

        for box in self._boxes(snapshot, titles):
            x0 = min(cols - 1, max(0, int(box.rect.x * sx)))
            y0 = min(rows - 1, max(0, int(box.rect.y * sy)))
            x1 = min(cols - 1, max(x0 + 1, int(box.rect.max_x * sx) - 1))
            y1 = min(rows - 1, max(y0 + 1, int(box.rect.max_y * sy) - 1))
            self._paint_box(chars, styles, box, x0, y0, x1, y1)

        text = Text()
        for row_chars, row_styles in zip(chars, styles):
            for char, style in zip(row_chars, row_styles):
                text.append(char, style=style)
            text.append("\n")
        return text

    @staticmethod
    def _paint_box(chars, styles, box: _Box, x0: int, y0: int, x1: int, y1: int) -> None:
        if box.border == "dashed":
            horizontal, vertical, corner = "-", ":", "+"
        else:
            horizontal, vertical, corner = "─", "│", "+"

        for y in range(y0, y1 + 1):
            for x in range(x0, x1 + 1):
                on_edge_y = y in (y0, y1)
                on_edge_x = x in (x0, x1)
                if on_edge_x and on_edge_y:
                    char = corner
                elif on_edge_y:
                    char = horizontal
                elif on_edge_x:
                    char = vertical
                elif box.border == "dashed":
                    # Previews are outlines only
                    continue
                else:
                    char = " "
                chars[y][x] = char
                styles[y][x] = box.style

        inner = x1 - x0 - 1
        if box.label and inner > 0 and y1 - y0 >= 2:
            label = box.label[:inner]
            row = y0 + (y1 - y0) // 2
            start = x0 + 1 + (inner - len(label)) // 2
            for offset, char in enumerate(label):
                chars[row][start + offset] = char
                styles[row][start + offset] = box.style
