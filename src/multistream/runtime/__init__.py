"""Runtime module - bootstrap and lifecycle management"""

from .bootstrap import (
    RuntimeComponents,
    bootstrap,
)

__all__ = [
    "bootstrap",
    "RuntimeComponents",
]
