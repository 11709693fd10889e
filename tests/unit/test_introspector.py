"""Unit tests for ffprobe output parsing and the ffprobe introspector."""

import json
import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from mediathumb.errors import MediaIntrospectionError
from mediathumb.introspector import FFprobeIntrospector
from mediathumb.introspector.models import MediaInfo, StreamInfo, pixel_format_has_alpha
from mediathumb.introspector.parsers import (
    find_tag,
    parse_duration,
    parse_ffprobe_output,
    parse_stream,
    sanitize_string,
    validate_positive_int,
)
from mediathumb.models import Dims

VIDEO_STREAM = {
    "index": 0,
    "codec_type": "video",
    "codec_name": "h264",
    "width": 1920,
    "height": 1080,
    "pix_fmt": "yuv420p",
    "duration": "12.5",
    "tags": {"title": "Stream title"},
}

AUDIO_STREAM = {
    "index": 1,
    "codec_type": "audio",
    "codec_name": "mp3",
    "duration": "200.0",
}

COVER_STREAM = {
    "index": 2,
    "codec_type": "video",
    "codec_name": "mjpeg",
    "width": 500,
    "height": 500,
    "pix_fmt": "yuvj420p",
    "disposition": {"attached_pic": 1},
}


class TestSanitizeString:
    """Tests for sanitize_string()."""

    def test_strips_control_characters(self):
        """Control characters should be removed."""
        assert sanitize_string("  Song\x00 Title\x1b  ") == "Song Title"

    def test_empty_becomes_none(self):
        """Blank values should become None."""
        assert sanitize_string(" \t\n") is None
        assert sanitize_string(None) is None

    def test_truncates(self):
        """Overlong values should be truncated."""
        assert len(sanitize_string("x" * 10000)) == 4096


class TestValueParsers:
    """Tests for scalar parsers."""

    def test_parse_duration(self):
        """Durations should parse as float seconds."""
        assert parse_duration("3600.000") == 3600.0
        assert parse_duration("N/A") is None
        assert parse_duration("-1") is None
        assert parse_duration(None) is None

    def test_validate_positive_int(self, caplog):
        """Only non-negative ints should be accepted."""
        assert validate_positive_int(10, "width") == 10
        assert validate_positive_int(True, "width") is None
        assert validate_positive_int(-5, "height", "/x.mkv") is None
        assert "Invalid negative height: -5 in /x.mkv" in caplog.text

    def test_find_tag_case_insensitive(self):
        """Tag lookup should ignore case and respect name order."""
        tags = {"TITLE": "Upper", "Album_Artist": "Band"}
        assert find_tag(tags, "title") == "Upper"
        assert find_tag(tags, "artist", "album_artist") == "Band"
        assert find_tag(tags, "genre") is None


class TestParseStream:
    """Tests for parse_stream()."""

    def test_video(self):
        """Video streams should carry dimensions."""
        stream = parse_stream(VIDEO_STREAM)
        assert stream.dims == Dims(1920, 1080)
        assert stream.codec == "h264"
        assert not stream.is_cover_art
        assert not stream.has_alpha

    def test_cover_art(self):
        """Attached pictures should be flagged as cover art."""
        assert parse_stream(COVER_STREAM).is_cover_art

    def test_audio_has_no_dims(self):
        """Audio streams should not report dimensions."""
        assert parse_stream(AUDIO_STREAM).dims == Dims()


class TestParseFFprobeOutput:
    """Tests for parse_ffprobe_output()."""

    def test_video_with_audio(self):
        """Stream roles should be resolved."""
        info = parse_ffprobe_output(
            {
                "format": {"format_name": "matroska,webm", "duration": "12.5"},
                "streams": [VIDEO_STREAM, AUDIO_STREAM],
            }
        )
        assert info.has_video
        assert info.has_audio
        assert info.best_codec == "h264"
        assert info.duration_seconds == 12.5
        assert info.title == "Stream title"

    def test_cover_art_is_not_video(self):
        """Cover art should not count as a video stream."""
        info = parse_ffprobe_output({"streams": [AUDIO_STREAM, COVER_STREAM]})
        assert not info.has_video
        assert info.cover_art_stream is not None
        assert info.cover_art_stream.index == 2
        assert info.best_codec == "mp3"

    def test_duration_fallback(self):
        """Missing container duration should fall back to the longest stream."""
        info = parse_ffprobe_output({"streams": [VIDEO_STREAM, AUDIO_STREAM]})
        assert info.duration_seconds == 200.0

    def test_container_tags_win(self):
        """Container tags should take precedence over stream tags."""
        info = parse_ffprobe_output(
            {
                "format": {"tags": {"title": "Album Track", "ARTIST": "Someone"}},
                "streams": [VIDEO_STREAM],
            }
        )
        assert info.title == "Album Track"
        assert info.artist == "Someone"

    def test_duplicate_index(self):
        """Duplicate stream indices should be skipped with a warning."""
        info = parse_ffprobe_output({"streams": [VIDEO_STREAM, VIDEO_STREAM]})
        assert len(info.streams) == 1
        assert "Duplicate stream index 0" in info.warnings[0]

    def test_no_streams(self):
        """Files without streams should carry a warning."""
        info = parse_ffprobe_output({"streams": []})
        assert info.streams == []
        assert "No streams found in file" in info.warnings


class TestPixelFormats:
    """Tests for alpha detection."""

    @pytest.mark.parametrize("fmt", ["rgba", "pal8", "yuva420p", "ya8"])
    def test_alpha(self, fmt):
        """Transparent pixel formats should be detected."""
        assert pixel_format_has_alpha(fmt)

    @pytest.mark.parametrize("fmt", ["rgb24", "yuv420p", "gray", None])
    def test_opaque(self, fmt):
        """Opaque pixel formats should not report alpha."""
        assert not pixel_format_has_alpha(fmt)

    def test_stream_property(self):
        """StreamInfo should expose alpha from its pixel format."""
        assert StreamInfo(index=0, codec_type="video", pix_fmt="rgba").has_alpha
        assert MediaInfo().video_stream is None


class TestFFprobeIntrospector:
    """Tests for FFprobeIntrospector.probe()."""

    @pytest.fixture
    def media_file(self, temp_dir: Path) -> Path:
        path = temp_dir / "clip.mkv"
        path.write_bytes(b"\x1a\x45\xdf\xa3")
        return path

    @pytest.fixture
    def introspector(self) -> FFprobeIntrospector:
        return FFprobeIntrospector(ffprobe_path=Path("/usr/bin/ffprobe"), timeout=5)

    def test_probe(self, introspector, media_file):
        """Successful ffprobe output should be parsed."""
        result = MagicMock(stdout=json.dumps({"streams": [VIDEO_STREAM]}))
        with patch("subprocess.run", return_value=result) as run:
            info = introspector.probe(media_file)

        assert info.video_stream.dims == Dims(1920, 1080)
        argv = run.call_args.args[0]
        assert argv[0] == "/usr/bin/ffprobe"
        assert argv[-1] == str(media_file)
        assert run.call_args.kwargs["timeout"] == 5

    def test_missing_file(self, introspector, temp_dir):
        """Missing files should raise MediaIntrospectionError."""
        with pytest.raises(MediaIntrospectionError, match="File not found"):
            introspector.probe(temp_dir / "missing.mkv")

    def test_ffprobe_failure(self, introspector, media_file):
        """Non-zero exit should be wrapped with stderr."""
        error = subprocess.CalledProcessError(1, "ffprobe", stderr="Invalid data\n")
        with patch("subprocess.run", side_effect=error):
            with pytest.raises(MediaIntrospectionError, match="Invalid data"):
                introspector.probe(media_file)

    def test_timeout(self, introspector, media_file):
        """Timeouts should be wrapped."""
        with patch("subprocess.run", side_effect=subprocess.TimeoutExpired("x", 5)):
            with pytest.raises(MediaIntrospectionError, match="timed out"):
                introspector.probe(media_file)

    def test_invalid_json(self, introspector, media_file):
        """Garbage output should be wrapped."""
        with patch("subprocess.run", return_value=MagicMock(stdout="not json")):
            with pytest.raises(MediaIntrospectionError, match="Invalid ffprobe output"):
                introspector.probe(media_file)

    def test_missing_streams_key(self, introspector, media_file):
        """Output without streams should be rejected."""
        with patch("subprocess.run", return_value=MagicMock(stdout="{}")):
            with pytest.raises(MediaIntrospectionError, match="Missing 'streams'"):
                introspector.probe(media_file)
