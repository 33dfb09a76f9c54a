"""In-memory collaborators for tests and the demo server."""

from ..telemetry import get_logger
from .base import PlaybackEngine, StreamInfo, StreamRegistry

logger = get_logger(__name__)


class InMemoryStreamRegistry(StreamRegistry):
    """Dict-backed metadata source."""

    def __init__(self, streams: list[StreamInfo] | None = None):
        self._streams: dict[str, StreamInfo] = {s.stream_id: s for s in streams or []}

    @property
    def name(self) -> str:
        return "memory"

    def add(self, info: StreamInfo) -> None:
        self._streams[info.stream_id] = info

    def remove(self, stream_id: str) -> None:
        self._streams.pop(stream_id, None)

    async def get(self, stream_id: str) -> StreamInfo | None:
        return self._streams.get(stream_id)

    async def list_streams(self) -> list[StreamInfo]:
        return list(self._streams.values())


class InMemoryPlaybackEngine(PlaybackEngine):
    """Records every notification it receives.

    Attributes:
        audio_history: every set_audio_active argument, in order
        playing: streams currently started
    """

    def __init__(self):
        super().__init__()
        self.audio_history: list[str | None] = []
        self.playing: set[str] = set()

    @property
    def name(self) -> str:
        return "memory"

    @property
    def audio_stream_id(self) -> str | None:
        return self.audio_history[-1] if self.audio_history else None

    async def set_audio_active(self, stream_id: str | None) -> None:
        self.audio_history.append(stream_id)
        logger.debug(f"[Playback] Audio -> {stream_id}")

    async def start(self, stream_id: str) -> bool:
        self.playing.add(stream_id)
        return True

    async def stop(self, stream_id: str) -> None:
        self.playing.discard(stream_id)

    def end_stream(self, stream_id: str) -> None:
        """Simulate the player reporting that a stream ended."""
        self.playing.discard(stream_id)
        self._emit_stream_ended(stream_id)
