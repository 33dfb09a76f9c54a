"""Stream identity utilities

The layout core treats stream ids as opaque strings. Ids coming from the
discovery feed are namespaced by platform:
- twitch:<channel>
- youtube:<video_id>
- rumble:<slug>
- kick:<channel>

Un-namespaced ids are accepted as-is and map to Platform.OTHER.
"""

from dataclasses import dataclass
from enum import Enum


class Platform(Enum):
    """Streaming platform identity (no presentation attributes)."""

    TWITCH = "twitch"
    YOUTUBE = "youtube"
    RUMBLE = "rumble"
    KICK = "kick"
    OTHER = "other"


@dataclass(frozen=True)
class ParsedStreamId:
    """Parsed namespaced stream id."""

    platform: Platform
    native_id: str

    def __str__(self) -> str:
        if self.platform == Platform.OTHER:
            return self.native_id
        return f"{self.platform.value}:{self.native_id}"


def make_stream_id(platform: Platform | str, native_id: str) -> str:
    """Create a namespaced stream id.

    Args:
        platform: Platform enum or its value ("twitch", "youtube", ...)
        native_id: the platform's own channel/video id

    Returns:
        Namespaced id like "twitch:shroud"
    """
    if isinstance(platform, str):
        platform = Platform(platform.lower())
    if platform == Platform.OTHER:
        return native_id
    return f"{platform.value}:{native_id}"


def parse_stream_id(stream_id: str) -> ParsedStreamId:
    """Split a stream id into platform and native id.

    Args:
        stream_id: "platform:native_id" or a bare id

    Returns:
        ParsedStreamId; unknown prefixes yield Platform.OTHER with the full id
    """
    if ":" in stream_id:
        prefix, native = stream_id.split(":", 1)
        try:
            platform = Platform(prefix.lower())
        except ValueError:
            platform = Platform.OTHER
        if platform != Platform.OTHER:
            return ParsedStreamId(platform=platform, native_id=native)
    return ParsedStreamId(platform=Platform.OTHER, native_id=stream_id)


def normalize_stream_id(stream_id: str) -> str:
    """Canonical form used as the layout key.

    Strips surrounding whitespace and lowercases a known platform prefix;
    the native part is kept verbatim.
    """
    stream_id = stream_id.strip()
    return str(parse_stream_id(stream_id))


def short_id(stream_id: str, length: int = 12) -> str:
    """Shortened id for log lines."""
    return stream_id if len(stream_id) <= length else stream_id[:length]
