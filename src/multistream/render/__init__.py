"""Layout snapshot renderer module."""

from .renderer import LayoutRenderer

__all__ = ["LayoutRenderer"]
