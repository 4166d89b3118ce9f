"""Tests for config.py environment variable parsing and defaults."""

import logging
import os
from unittest import mock


class TestGetIntEnv:
    """Tests for get_int_env helper function."""

    def test_returns_default_when_env_not_set(self):
        """Should return default value when environment variable is not set."""
        from config import get_int_env

        with mock.patch.dict(os.environ, {}, clear=True):
            assert get_int_env("HLS_NONEXISTENT_VAR", 42) == 42

    def test_parses_valid_integer(self):
        """Should parse valid integer from environment variable."""
        from config import get_int_env

        with mock.patch.dict(os.environ, {"HLS_TEST_INT": "123"}):
            assert get_int_env("HLS_TEST_INT", 0) == 123

    def test_returns_default_on_invalid_value(self, caplog):
        """Should return default and log warning when value is not a valid integer."""
        from config import get_int_env

        with mock.patch.dict(os.environ, {"HLS_TEST_INT": "abc"}):
            with caplog.at_level(logging.WARNING):
                assert get_int_env("HLS_TEST_INT", 42) == 42
                assert "Invalid HLS_TEST_INT='abc'" in caplog.text
                assert "using default 42" in caplog.text

    def test_port_range_enforced(self, caplog):
        """Ports outside 1-65535 fall back to the default."""
        from config import get_int_env

        with mock.patch.dict(os.environ, {"HLS_PORT": "70000"}):
            with caplog.at_level(logging.WARNING):
                assert get_int_env("HLS_PORT", 8080, min_val=1, max_val=65535) == 8080
                assert "above maximum" in caplog.text

        with mock.patch.dict(os.environ, {"HLS_PORT": "0"}):
            assert get_int_env("HLS_PORT", 8080, min_val=1, max_val=65535) == 8080

    def test_value_within_range_accepted(self):
        """Should accept value that is within min/max range."""
        from config import get_int_env

        with mock.patch.dict(os.environ, {"HLS_TEST_INT": "9000"}):
            assert get_int_env("HLS_TEST_INT", 8080, min_val=1, max_val=65535) == 9000

    def test_no_warning_when_env_not_set_with_validation(self, caplog):
        """Should not log warning when env is not set, even if default would fail validation."""
        from config import get_int_env

        with mock.patch.dict(os.environ, {}, clear=True):
            with caplog.at_level(logging.WARNING):
                assert get_int_env("HLS_NONEXISTENT_VAR", 0, min_val=1) == 0
                assert caplog.text == ""


class TestDefaults:
    """Tests for the fixed conversion settings."""

    def test_variant_ladder(self):
        """Four variants, lowest quality first."""
        from config import HLS_VARIANTS

        assert [v["name"] for v in HLS_VARIANTS] == ["360p", "540p", "720p", "1080p"]
        assert [v["video_bitrate"] for v in HLS_VARIANTS] == ["800k", "1800k", "3500k", "6000k"]
        assert [(v["width"], v["height"]) for v in HLS_VARIANTS] == [
            (640, 360),
            (960, 540),
            (1280, 720),
            (1920, 1080),
        ]

    def test_segment_duration_and_manifest_name(self):
        from config import HLS_SEGMENT_DURATION, MASTER_PLAYLIST_NAME

        assert HLS_SEGMENT_DURATION == 10
        assert MASTER_PLAYLIST_NAME == "master.m3u8"

    def test_supported_extensions_are_lowercase_with_dot(self):
        from config import DEFAULT_VIDEO_EXTENSION, SUPPORTED_VIDEO_EXTENSIONS

        assert DEFAULT_VIDEO_EXTENSION in SUPPORTED_VIDEO_EXTENSIONS
        for ext in SUPPORTED_VIDEO_EXTENSIONS:
            assert ext.startswith(".")
            assert ext == ext.lower()
