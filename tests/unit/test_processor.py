"""Unit tests for the MediaProcessor facade.

External programs are replaced by mocked introspectors, mocked pipeline
runners and override processors, so these tests need no media tools.
"""

import io
from unittest.mock import MagicMock

import pytest

from mediathumb.config.models import ArchiveConfig, MediathumbConfig
from mediathumb.errors import (
    ArchiveError,
    MimeNotAcceptedError,
    NoStreamsError,
    StageError,
    UnsupportedMimeError,
)
from mediathumb.introspector.models import MediaInfo, StreamInfo
from mediathumb.mime import BUILTIN_MATCHERS, ExactSignature, MatcherRegistry
from mediathumb.mime import types as mt
from mediathumb.models import Dims, Options, Thumbnail
from mediathumb.processor import MediaProcessor, ProcessorRegistry

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 40
JPEG = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00" + b"\x00" * 40
MP3 = b"ID3\x04\x00\x00\x00\x00\x00\x00" + b"\x00" * 40
MKV = b"\x1a\x45\xdf\xa3\x9f\x42\x86\x81\x01\x42\x82\x88matroska" + b"\x00" * 40

FAKE_THUMB = Thumbnail(data=b"thumb", is_png=False, dims=Dims(10, 10))


def audio_stream(index: int = 0) -> StreamInfo:
    return StreamInfo(index=index, codec_type="audio", codec="mp3")


def cover_stream(index: int = 1) -> StreamInfo:
    return StreamInfo(
        index=index,
        codec_type="video",
        codec="png",
        width=600,
        height=600,
        pix_fmt="rgb24",
        is_cover_art=True,
    )


def video_stream(index: int = 0) -> StreamInfo:
    return StreamInfo(
        index=index,
        codec_type="video",
        codec="h264",
        width=1280,
        height=720,
        pix_fmt="yuv420p",
    )


@pytest.fixture
def matchers() -> MatcherRegistry:
    """Built-in prefix matchers without the ffprobe fallback."""
    return MatcherRegistry(m for m in BUILTIN_MATCHERS if not m.fallback)


@pytest.fixture
def processors() -> ProcessorRegistry:
    """Private override registry thumbnailing PNG members without ffmpeg."""
    registry = ProcessorRegistry()
    registry.register(mt.MIME_PNG, MagicMock(return_value=FAKE_THUMB))
    return registry


@pytest.fixture
def introspector() -> MagicMock:
    return MagicMock()


@pytest.fixture
def mock_runner() -> MagicMock:
    return MagicMock()


@pytest.fixture
def processor(matchers, processors, introspector, mock_runner) -> MediaProcessor:
    return MediaProcessor(
        config=MediathumbConfig(),
        introspector=introspector,
        runner=mock_runner,
        matchers=matchers,
        processors=processors,
    )


class TestDispatch:
    """Tests for classification and processor dispatch."""

    def test_override_processor(self, processor, processors):
        """Override processors should take priority over built-in paths."""
        result = processor.process_bytes(PNG)

        assert result.has_thumbnail
        assert result.thumbnail is FAKE_THUMB
        assert result.source.mime == mt.MIME_PNG
        assert result.source.extension == "png"
        assert result.source.size == len(PNG)
        override = processors.get(mt.MIME_PNG)
        stream, source, options = override.call_args.args
        assert source is result.source

    def test_not_accepted(self, processor):
        """Types outside the accepted set should be rejected."""
        options = Options(accepted_mime_types={mt.MIME_JPEG})
        with pytest.raises(MimeNotAcceptedError):
            processor.process_bytes(PNG, options)

    def test_unknown_type(self, processor):
        """Unidentifiable input should be unsupported."""
        with pytest.raises(UnsupportedMimeError) as exc_info:
            processor.process_bytes(b"just some text")
        assert exc_info.value.mime == "application/octet-stream"

    def test_matched_type_without_processor(self, processor, matchers):
        """A registered matcher without any processor should be unsupported."""
        matchers.register(ExactSignature("foo", "application/x-foo", b"FOO!"))
        with pytest.raises(UnsupportedMimeError, match="application/x-foo"):
            processor.process_bytes(b"FOO!data")

    def test_registered_type_and_processor(self, processor, matchers, processors):
        """New types can be added with a matcher and a processor."""
        matchers.register(ExactSignature("foo", "application/x-foo", b"FOO!"))
        processors.register("application/x-foo", lambda s, src, opts: FAKE_THUMB)

        result = processor.process_bytes(b"FOO!data")
        assert result.thumbnail is FAKE_THUMB
        assert "application/x-foo" in processor.supported_mime_types()

    def test_supported_types(self, processor):
        """Built-in groups should be supported."""
        supported = processor.supported_mime_types()
        assert {mt.MIME_JPEG, mt.MIME_MP3, mt.MIME_MKV, mt.MIME_ZIP, mt.MIME_CBR} <= (
            supported
        )

    def test_detect_mime(self, processor):
        """detect_mime should report the type and rewind the stream."""
        stream = io.BytesIO(JPEG)
        assert processor.detect_mime(stream) == (mt.MIME_JPEG, "jpg")
        assert stream.tell() == 0

    def test_process_file(self, processor, temp_dir):
        """Files should be processed from disk."""
        path = temp_dir / "pic.png"
        path.write_bytes(PNG)
        assert processor.process_file(path).has_thumbnail


class TestMediaPath:
    """Tests for the audio/video path."""

    def test_audio_without_cover_art(self, processor, introspector):
        """Audio-only files should report no thumbnail."""
        introspector.probe.return_value = MediaInfo(
            format_name="mp3", duration_seconds=180.0, streams=[audio_stream()]
        )
        result = processor.process_bytes(MP3)

        assert not result.has_thumbnail
        assert result.no_thumbnail_reason == "audio without usable cover art"
        assert result.source.mime == mt.MIME_MP3
        assert result.source.has_audio
        assert not result.source.has_video
        assert result.source.duration_seconds == 180.0

    def test_no_streams(self, processor, introspector):
        """Containers without audio or video should raise NoStreamsError."""
        introspector.probe.return_value = MediaInfo(streams=[])
        with pytest.raises(NoStreamsError):
            processor.process_bytes(MKV)

    def test_cover_art_processed_as_nested_document(
        self, processor, introspector, mock_runner, processors
    ):
        """Embedded cover art should be classified and thumbnailed on its own."""
        introspector.probe.return_value = MediaInfo(
            streams=[audio_stream(), cover_stream()], title="Song"
        )
        mock_runner.run.return_value = PNG

        options = Options(accepted_mime_types={mt.MIME_MP3})
        result = processor.process_bytes(MP3, options)

        assert result.thumbnail is FAKE_THUMB
        assert result.source.mime == mt.MIME_MP3
        assert result.source.has_cover_art
        assert result.source.title == "Song"
        stage = mock_runner.run.call_args.args[0][0]
        assert "0:1" in stage.args

    def test_broken_cover_art_falls_back(
        self, processor, introspector, mock_runner, caplog
    ):
        """Unusable cover art should log a warning and yield no thumbnail."""
        introspector.probe.return_value = MediaInfo(
            streams=[audio_stream(), cover_stream()]
        )
        mock_runner.run.side_effect = StageError("ffmpeg", 1, "corrupt")

        result = processor.process_bytes(MP3)

        assert not result.has_thumbnail
        assert "cover art: ffmpeg exited with status 1: corrupt" in caplog.text

    def test_video_frame(self, processor, introspector, mock_runner):
        """Video files should be thumbnailed from a captured frame."""
        introspector.probe.return_value = MediaInfo(
            streams=[video_stream(), audio_stream(1)]
        )
        mock_runner.run.return_value = b"\xff\xd8\xffjpegdata"

        result = processor.process_bytes(MKV)

        assert result.thumbnail.dims == Dims(150, 84)
        assert not result.thumbnail.is_png
        assert result.source.dims == Dims(1280, 720)
        stage = mock_runner.run.call_args.args[0][0]
        assert "thumbnail,scale=150:84:flags=lanczos" in stage.args


class TestArchivePath:
    """Tests for the archive path."""

    def test_comic_archive(self, processor, make_zip):
        """A zip of images should become a comic book and use the first page."""
        pages = [(f"p{i:02d}.png", PNG) for i in range(10)]
        result = processor.process(make_zip(pages))

        assert result.thumbnail is FAKE_THUMB
        assert result.source.mime == mt.MIME_CBZ
        assert result.source.extension == "cbz"

    def test_plain_archive(self, processor, make_zip):
        """A zip with few images should stay a zip."""
        entries = [("readme.txt", b"x"), ("cover.png", PNG), ("data.bin", b"y")]
        result = processor.process(make_zip(entries))

        assert result.has_thumbnail
        assert result.source.mime == mt.MIME_ZIP

    def test_members_ignore_accept_filter(self, processor, make_zip):
        """Archive members should be processed even if the caller only accepts zip."""
        options = Options(accepted_mime_types={mt.MIME_ZIP})
        result = processor.process(make_zip([("a.png", PNG)]), options)
        assert result.has_thumbnail

    def test_no_images(self, processor, make_zip):
        """Archives without images should report no thumbnail."""
        result = processor.process(make_zip([("a.txt", b"x")]))
        assert result.no_thumbnail_reason == "no images in archive"

    def test_member_failure_wrapped(self, processor, processors, make_zip):
        """Failures inside a member should be wrapped in ArchiveError."""
        cause = StageError("ffmpeg", 1, "bad frame")
        processors.register(mt.MIME_PNG, MagicMock(side_effect=cause))

        with pytest.raises(ArchiveError) as exc_info:
            processor.process(make_zip([("a.png", PNG)]))
        assert exc_info.value.cause is cause
        assert exc_info.value.__cause__ is cause

    def test_unsupported_member_wrapped(self, processor, make_zip):
        """A member with an image name but unknown content should fail."""
        with pytest.raises(ArchiveError) as exc_info:
            processor.process(make_zip([("fake.jpg", b"not an image")]))
        assert isinstance(exc_info.value.cause, UnsupportedMimeError)

    def test_corrupt_archive(self, processor):
        """Unreadable archives should raise ArchiveError."""
        with pytest.raises(ArchiveError):
            processor.process_bytes(b"PK\x03\x04" + b"\x00" * 100)

    def test_nesting_depth_limit(self, matchers, processors, make_zip):
        """Nested documents beyond the maximum depth should be rejected."""
        processor = MediaProcessor(
            config=MediathumbConfig(archive=ArchiveConfig(max_depth=0)),
            introspector=MagicMock(),
            runner=MagicMock(),
            matchers=matchers,
            processors=processors,
        )
        with pytest.raises(ArchiveError, match="nesting too deep"):
            processor.process(make_zip([("a.png", PNG)]))

    def test_nested_archive(self, processor, make_zip):
        """An archive inside an archive should be processed recursively."""
        inner = make_zip([("page.png", PNG)]).getvalue()
        outer = make_zip([("inner.png", inner)])
        assert processor.process(outer).thumbnail is FAKE_THUMB


class TestProcessorRegistry:
    """Tests for ProcessorRegistry."""

    def test_replace_logs(self, caplog):
        """Replacing an override should be logged."""
        registry = ProcessorRegistry()
        registry.register("x/y", MagicMock())
        with caplog.at_level("INFO"):
            registry.register("x/y", MagicMock())
        assert "Replacing override processor for x/y" in caplog.text
        assert "x/y" in registry
        assert registry.mime_types() == frozenset({"x/y"})
