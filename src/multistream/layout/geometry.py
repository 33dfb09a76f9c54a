"""Geometry value types

Container-local coordinates, origin at the top-left, floating point.
"""

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class Point:
    """A 2D point or translation vector."""

    x: float
    y: float

    def __add__(self, other: "Point") -> "Point":
        return Point(self.x + other.x, self.y + other.y)

    @property
    def magnitude(self) -> float:
        return math.hypot(self.x, self.y)

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y)

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class Size:
    """Width/height pair."""

    width: float
    height: float

    @property
    def is_positive(self) -> bool:
        """Both dimensions finite and > 0."""
        return (
            math.isfinite(self.width)
            and math.isfinite(self.height)
            and self.width > 0
            and self.height > 0
        )

    def scaled(self, factor: float) -> "Size":
        return Size(self.width * factor, self.height * factor)

    def to_dict(self) -> dict:
        return {"width": self.width, "height": self.height}


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle.

    Attributes:
        x, y: origin (top-left)
        width, height: extent, > 0 for any rectangle assigned to a slot
    """

    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_origin_size(cls, origin: Point, size: Size) -> "Rect":
        return cls(origin.x, origin.y, size.width, size.height)

    @classmethod
    def container(cls, size: Size) -> "Rect":
        """Rectangle covering the whole container."""
        return cls(0.0, 0.0, size.width, size.height)

    @property
    def origin(self) -> Point:
        return Point(self.x, self.y)

    @property
    def size(self) -> Size:
        return Size(self.width, self.height)

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def max_y(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Point:
        return Point(self.x + self.width / 2, self.y + self.height / 2)

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def is_valid(self) -> bool:
        return Point(self.x, self.y).is_finite and self.size.is_positive

    def resized(self, size: Size) -> "Rect":
        return Rect(self.x, self.y, size.width, size.height)

    def translated(self, delta: Point) -> "Rect":
        return Rect(self.x + delta.x, self.y + delta.y, self.width, self.height)

    def within(self, bounds: Size, tolerance: float = 1e-6) -> bool:
        """True if the rectangle lies fully inside [0, bounds]."""
        return (
            self.x >= -tolerance
            and self.y >= -tolerance
            and self.max_x <= bounds.width + tolerance
            and self.max_y <= bounds.height + tolerance
        )

    def intersects(self, other: "Rect", tolerance: float = 1e-6) -> bool:
        """True if the interiors overlap (shared edges do not count)."""
        return (
            self.x < other.max_x - tolerance
            and other.x < self.max_x - tolerance
            and self.y < other.max_y - tolerance
            and other.y < self.max_y - tolerance
        )

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, data: dict) -> "Rect":
        return cls(
            x=float(data["x"]),
            y=float(data["y"]),
            width=float(data["width"]),
            height=float(data["height"]),
        )


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def clamp_origin(origin: Point, size: Size, bounds: Size) -> Point:
    """Clamp an origin so a rectangle of `size` stays inside `bounds`.

    If the rectangle is larger than the bounds on an axis, it is pinned to 0.
    """
    max_x = max(0.0, bounds.width - size.width)
    max_y = max(0.0, bounds.height - size.height)
    return Point(clamp(origin.x, 0.0, max_x), clamp(origin.y, 0.0, max_y))


def clamp_rect(rect: Rect, bounds: Size) -> Rect:
    """Fit a rectangle inside `bounds`, shrinking it first if it is too large."""
    size = Size(min(rect.width, bounds.width), min(rect.height, bounds.height))
    origin = clamp_origin(rect.origin, size, bounds)
    return Rect.from_origin_size(origin, size)
