"""External collaborator interfaces

The layout core never stores stream metadata and never plays media. It talks
to two collaborators:
- StreamRegistry: stream id -> display metadata lookups
- PlaybackEngine: receives audio routing and start/stop notifications, and
  reports back when a stream ends

Backends (platform APIs, player SDKs) implement these; the in-memory versions
in adapters.memory serve tests and the demo server.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ..core.ids import Platform, parse_stream_id

StreamEndedCallback = Callable[[str], Any]


@dataclass
class StreamInfo:
    """Display metadata for one stream.

    Attributes:
        stream_id: namespaced id ("twitch:shroud")
        title: stream title
        channel: channel / author display name
        platform: platform identity
        is_live: whether the stream is currently live
        viewer_count: last known viewer count
    """

    stream_id: str
    title: str
    channel: str = ""
    platform: Platform = Platform.OTHER
    is_live: bool = True
    viewer_count: int = 0

    @classmethod
    def from_id(cls, stream_id: str, title: str | None = None) -> "StreamInfo":
        parsed = parse_stream_id(stream_id)
        return cls(
            stream_id=stream_id,
            title=title or parsed.native_id,
            channel=parsed.native_id,
            platform=parsed.platform,
        )

    def to_dict(self) -> dict:
        return {
            "stream_id": self.stream_id,
            "title": self.title,
            "channel": self.channel,
            "platform": self.platform.value,
            "is_live": self.is_live,
            "viewer_count": self.viewer_count,
        }


class StreamRegistry(ABC):
    """Stream metadata source."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    async def get(self, stream_id: str) -> StreamInfo | None:
        """Look up one stream.

        Returns:
            metadata, or None if unknown
        """
        pass

    @abstractmethod
    async def list_streams(self) -> list[StreamInfo]:
        pass


class PlaybackEngine(ABC):
    """Player / audio router driven by the layout state.

    Usage:
        engine.set_on_stream_ended(supervisor.stream_ended)
        await engine.set_audio_active("twitch:shroud")
    """

    def __init__(self):
        self._on_stream_ended: StreamEndedCallback | None = None

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    async def set_audio_active(self, stream_id: str | None) -> None:
        """Route audio to one stream, or mute everything (None)."""
        pass

    async def start(self, stream_id: str) -> bool:
        """Start playback of a newly placed stream.

        Returns:
            whether playback started
        """
        return True

    async def stop(self, stream_id: str) -> None:
        """Stop playback of a stream that left the layout."""
        return None

    def set_on_stream_ended(self, callback: StreamEndedCallback | None) -> None:
        self._on_stream_ended = callback

    def _emit_stream_ended(self, stream_id: str) -> None:
        if self._on_stream_ended:
            self._on_stream_ended(stream_id)
