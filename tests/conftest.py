"""Shared test fixtures for mediathumb."""

from __future__ import annotations

import io
import os
import shutil
import tempfile
import zipfile
from collections.abc import Callable, Iterable
from pathlib import Path

import pytest

from mediathumb.buffers import BufferPool
from mediathumb.config import clear_config_cache
from mediathumb.pipeline import PipelineRunner
from mediathumb.tools import refresh_tools


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test isolation."""
    dir_path = tempfile.mkdtemp()
    yield Path(dir_path)
    shutil.rmtree(dir_path, ignore_errors=True)


@pytest.fixture(autouse=True)
def isolated_config(temp_dir: Path, monkeypatch: pytest.MonkeyPatch):
    """Point configuration at an empty per-test config file.

    Removes MEDIATHUMB_* variables from the environment and resets cached
    configuration, tool detection and the shared processor, so no test sees
    the developer's ~/.mediathumb/config.toml or another test's state.
    """
    for var in list(os.environ):
        if var.startswith("MEDIATHUMB_"):
            monkeypatch.delenv(var)
    config_path = temp_dir / "config.toml"
    monkeypatch.setenv("MEDIATHUMB_CONFIG_PATH", str(config_path))
    monkeypatch.setattr("mediathumb.processor._default_processor", None)
    monkeypatch.setattr("mediathumb.buffers._default_pool", None)
    clear_config_cache()
    refresh_tools()
    yield config_path
    clear_config_cache()
    refresh_tools()


@pytest.fixture
def buffer_pool() -> BufferPool:
    """A small private buffer pool."""
    return BufferPool(max_buffers=4, buffer_size=1024)


@pytest.fixture
def runner(buffer_pool: BufferPool) -> PipelineRunner:
    """A pipeline runner on a private pool with a short timeout."""
    return PipelineRunner(pool=buffer_pool, timeout=30.0)


@pytest.fixture
def make_zip() -> Callable[[Iterable[tuple[str, bytes]]], io.BytesIO]:
    """Factory building an in-memory zip archive from (name, data) pairs."""

    def _make(entries: Iterable[tuple[str, bytes]], **kwargs) -> io.BytesIO:
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w", **kwargs) as zf:
            for name, data in entries:
                zf.writestr(name, data)
        buf.seek(0)
        return buf

    return _make
