"""Core utilities shared across layers."""

from .ids import Platform, ParsedStreamId, make_stream_id, parse_stream_id, normalize_stream_id, short_id

__all__ = [
    "Platform",
    "ParsedStreamId",
    "make_stream_id",
    "parse_stream_id",
    "normalize_stream_id",
    "short_id",
]
