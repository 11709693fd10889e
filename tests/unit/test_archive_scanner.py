"""Unit tests for archive scanning and member extraction."""

import io
import zipfile
from collections.abc import Iterator
from dataclasses import dataclass, field

import pytest

from mediathumb.thumbnail.archive import (
    ArchiveEntry,
    ArchiveScanner,
    could_be_image,
    open_zip,
)


@dataclass
class FakeEntrySource:
    """In-memory entry source standing in for a streamed (rar) archive."""

    members: list[tuple[str, bytes]]
    extraction_limit: int = 1 << 20
    opened: list[str] = field(default_factory=list)

    @property
    def total_entries(self) -> int:
        return len(self.members)

    def entries(self) -> Iterator[ArchiveEntry]:
        for name, data in self.members:
            yield ArchiveEntry(name=name, open=lambda d=data: io.BytesIO(d))


def pages(count: int, others: int = 0) -> list[tuple[str, bytes]]:
    """Image entries followed by non-image entries."""
    entries = [(f"page{i:03d}.jpg", b"\xff\xd8\xff" + bytes([i])) for i in range(count)]
    entries += [(f"notes{i}.txt", b"text") for i in range(others)]
    return entries


class TestCouldBeImage:
    """Tests for could_be_image()."""

    @pytest.mark.parametrize(
        "name", ["a.png", "b.JPG", "dir/c.jpeg", "d.webp", "e.GIF"]
    )
    def test_image_names(self, name: str) -> None:
        """Should accept image suffixes in any case."""
        assert could_be_image(name)

    @pytest.mark.parametrize("name", ["readme.txt", "png", "cover.jpg.zip", "dir/"])
    def test_other_names(self, name: str) -> None:
        """Should reject other names."""
        assert not could_be_image(name)


class TestArchiveScanner:
    """Tests for ArchiveScanner.scan()."""

    def test_comic_archive(self, make_zip) -> None:
        """Should mark an archive of 9 images among 10 entries as a comic."""
        entries = [("info.txt", b"x"), *pages(9)]
        with open_zip(make_zip(entries), 4) as source:
            result = ArchiveScanner().scan(source)

        assert result.is_comic
        assert result.image_count == 9
        assert result.candidate is not None
        assert result.candidate.name == "page000.jpg"

    def test_below_threshold(self, make_zip) -> None:
        """Should not mark 8 images among 10 entries as a comic."""
        with open_zip(make_zip(pages(8, others=2)), 4) as source:
            result = ArchiveScanner().scan(source)

        assert not result.is_comic
        assert result.candidate is not None

    def test_ratio_uses_total_entries(self) -> None:
        """Should compare against all entries, not only the scanned ones."""
        source = FakeEntrySource(pages(3, others=97))
        result = ArchiveScanner().scan(source)

        assert result.scanned == 10
        assert result.image_count == 3
        assert result.total_entries == 100
        assert not result.is_comic
        assert result.candidate is not None
        assert result.candidate.name == "page000.jpg"

    def test_only_leading_entries_scanned(self) -> None:
        """Should ignore images after the scan window."""
        source = FakeEntrySource([*pages(0, others=10), *pages(5)])
        result = ArchiveScanner().scan(source)

        assert result.candidate is None
        assert result.image_count == 0

    def test_custom_limit(self) -> None:
        """Should honour a custom scan limit."""
        source = FakeEntrySource([*pages(0, others=3), *pages(1)])
        assert ArchiveScanner(scan_limit=3).scan(source).candidate is None
        assert ArchiveScanner(scan_limit=4).scan(source).candidate is not None

    def test_empty_archive(self) -> None:
        """Should report nothing for an empty archive."""
        result = ArchiveScanner().scan(FakeEntrySource([]))
        assert result.candidate is None
        assert not result.is_comic

    def test_invalid_limit(self) -> None:
        """Should reject a scan limit below 1."""
        with pytest.raises(ValueError):
            ArchiveScanner(scan_limit=0)


class TestExtract:
    """Tests for ArchiveScanner.extract()."""

    def test_extracts_member(self) -> None:
        """Should copy the member into a readable temporary file."""
        entry = ArchiveEntry("a.png", lambda: io.BytesIO(b"image bytes"))
        with ArchiveScanner.extract(entry, 1024) as tmp:
            assert tmp.read() == b"image bytes"

    def test_decompression_bomb_truncated(self, make_zip, caplog) -> None:
        """Should stop extracting at a multiple of the container size."""
        bomb = make_zip(
            [("bomb.png", b"\x00" * (8 << 20))], compression=zipfile.ZIP_DEFLATED
        )
        container_size = len(bomb.getvalue())

        with open_zip(bomb, 4) as source:
            assert source.extraction_limit == container_size * 4
            entry = next(source.entries())
            with ArchiveScanner.extract(entry, source.extraction_limit) as tmp:
                data = tmp.read()

        assert len(data) == container_size * 4
        assert "truncated" in caplog.text

    def test_streamed_source_limit(self) -> None:
        """Should apply a fixed ceiling for streamed sources."""
        source = FakeEntrySource([("big.jpg", b"x" * 5000)], extraction_limit=100)
        entry = next(source.entries())
        with ArchiveScanner.extract(entry, source.extraction_limit) as tmp:
            assert len(tmp.read()) == 100
