"""Tests for core.ids - platform identity and namespaced stream ids"""

import pytest

from multistream.core.ids import (
    Platform,
    make_stream_id,
    normalize_stream_id,
    parse_stream_id,
    short_id,
)


class TestMakeStreamId:
    """Test make_stream_id"""

    def test_enum_platform(self):
        assert make_stream_id(Platform.TWITCH, "shroud") == "twitch:shroud"

    def test_string_platform_case_insensitive(self):
        assert make_stream_id("YouTube", "dQw4w9WgXcQ") == "youtube:dQw4w9WgXcQ"

    def test_other_platform_is_bare(self):
        assert make_stream_id(Platform.OTHER, "local-feed") == "local-feed"

    def test_unknown_platform_string_raises(self):
        with pytest.raises(ValueError):
            make_stream_id("myspace", "x")


class TestParseStreamId:
    """Test parse_stream_id"""

    def test_namespaced(self):
        parsed = parse_stream_id("kick:xqc")
        assert parsed.platform == Platform.KICK
        assert parsed.native_id == "xqc"

    def test_native_part_keeps_colons(self):
        parsed = parse_stream_id("rumble:a:b")
        assert parsed.platform == Platform.RUMBLE
        assert parsed.native_id == "a:b"

    def test_unknown_prefix_is_other(self):
        parsed = parse_stream_id("foo:bar")
        assert parsed.platform == Platform.OTHER
        assert parsed.native_id == "foo:bar"

    def test_bare_id(self):
        parsed = parse_stream_id("camera-1")
        assert parsed.platform == Platform.OTHER
        assert str(parsed) == "camera-1"


class TestNormalizeStreamId:
    """Test normalize_stream_id"""

    def test_lowercases_known_prefix_only(self):
        assert normalize_stream_id("  TWITCH:Shroud ") == "twitch:Shroud"

    def test_bare_id_unchanged(self):
        assert normalize_stream_id("Camera") == "Camera"


def test_short_id_truncates():
    assert short_id("twitch:averyveryverylongname", 10) == "twitch:ave"
    assert short_id("a:b", 10) == "a:b"
