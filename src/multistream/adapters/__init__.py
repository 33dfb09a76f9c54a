"""Collaborator adapters

- StreamRegistry / PlaybackEngine: interfaces the layout core drives
- InMemoryStreamRegistry / InMemoryPlaybackEngine: reference implementations
"""

from .base import PlaybackEngine, StreamInfo, StreamRegistry
from .memory import InMemoryPlaybackEngine, InMemoryStreamRegistry

__all__ = [
    "StreamInfo",
    "StreamRegistry",
    "PlaybackEngine",
    "InMemoryStreamRegistry",
    "InMemoryPlaybackEngine",
]
