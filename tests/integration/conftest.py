"""Integration test fixtures generating real media files with ffmpeg.

This module provides pytest fixtures for:
- Tool availability detection (ffmpeg, ffprobe, gm)
- Test media generation from ffmpeg's lavfi test sources
"""

from __future__ import annotations

import shutil
import subprocess  # nosec B404 - subprocess is required for ffmpeg execution
import zipfile
from pathlib import Path

import pytest

# =============================================================================
# Tool Availability Fixtures
# =============================================================================


def _tool_available(name: str) -> bool:
    """Check if an external tool is available in PATH."""
    return shutil.which(name) is not None


@pytest.fixture(scope="session")
def ffmpeg_available() -> bool:
    """Check if ffmpeg is available."""
    return _tool_available("ffmpeg")


@pytest.fixture(scope="session")
def ffprobe_available() -> bool:
    """Check if ffprobe is available."""
    return _tool_available("ffprobe")


@pytest.fixture(scope="session")
def gm_available() -> bool:
    """Check if GraphicsMagick is available."""
    return _tool_available("gm")


# =============================================================================
# Media Generation
# =============================================================================


def _ffmpeg(*args: str) -> None:
    """Run ffmpeg quietly, failing the test session on error."""
    cmd = ["ffmpeg", "-hide_banner", "-v", "error", "-y", *args]
    result = subprocess.run(  # nosec B603 - fixed test arguments
        cmd, capture_output=True, text=True, timeout=60
    )
    if result.returncode != 0:
        raise RuntimeError(f"ffmpeg failed: {result.stderr.strip()}")


@pytest.fixture(scope="session")
def media_dir(
    ffmpeg_available: bool, tmp_path_factory: pytest.TempPathFactory
) -> Path | None:
    """Directory of generated test media.

    Returns None if ffmpeg is not available.
    """
    if not ffmpeg_available:
        return None

    out = tmp_path_factory.mktemp("media")

    _ffmpeg(
        "-f", "lavfi", "-i", "testsrc2=size=1280x720",
        "-frames:v", "1", str(out / "landscape.png"),
    )
    _ffmpeg(
        "-f", "lavfi", "-i", "testsrc2=size=640x480",
        "-frames:v", "1", str(out / "photo.jpg"),
    )
    _ffmpeg(
        "-f", "lavfi", "-i", "testsrc2=size=320x240",
        "-vf", "format=rgba,colorchannelmixer=aa=0.5",
        "-frames:v", "1", str(out / "transparent.png"),
    )
    _ffmpeg(
        "-f", "lavfi", "-i", "testsrc2=size=1280x720:rate=25:duration=2",
        "-f", "lavfi", "-i", "sine=frequency=440:duration=2",
        "-c:v", "mpeg4", "-c:a", "flac", str(out / "clip.mkv"),
    )
    _ffmpeg(
        "-f", "lavfi", "-i", "sine=frequency=440:duration=2",
        "-c:a", "flac", str(out / "tone.flac"),
    )
    _ffmpeg(
        "-i", str(out / "tone.flac"), "-i", str(out / "photo.jpg"),
        "-map", "0", "-map", "1", "-c", "copy",
        "-disposition:v", "attached_pic", str(out / "tone_with_cover.flac"),
    )

    page = (out / "landscape.png").read_bytes()
    with zipfile.ZipFile(out / "book.cbz", "w") as zf:
        for i in range(10):
            zf.writestr(f"page{i:02d}.png", page)

    with zipfile.ZipFile(out / "assorted.zip", "w") as zf:
        zf.writestr("readme.txt", "not an image")
        zf.write(out / "photo.jpg", "photo.jpg")
        for i in range(5):
            zf.writestr(f"data{i}.bin", b"\x00" * 64)

    return out
