"""Tests for tag readers and EXIF value types."""
import asyncio
import sys
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import patch

import pytest

from exifloader.core.config import ReaderBackend
from exifloader.core.serialize import to_iso_utc, to_serializable
from exifloader.engines import create_tag_reader
from exifloader.engines.errors import ExifReadError
from exifloader.engines.exiftool import (
    ExifToolDaemon,
    ExifToolReader,
    exiftool_available,
)
from exifloader.engines.pillow import PillowTagReader
from exifloader.engines.values import ExifDateTime, convert_date_tags

from .fixtures import ARTIST, DATETIME, MAKE, MODEL, make_jpeg, make_png


class TestExifDateTime:
    """Tests for EXIF date parsing."""

    def test_naive_datetime(self):
        parsed = ExifDateTime.parse("2024:01:15 10:30:45")
        assert parsed.to_date() == datetime(2024, 1, 15, 10, 30, 45)
        assert str(parsed) == "2024:01:15 10:30:45"

    def test_with_offset(self):
        parsed = ExifDateTime.parse("2024:01:15 10:30:45+02:00")
        assert parsed.to_date().utcoffset() == timedelta(hours=2)
        assert to_serializable(parsed) == "2024-01-15T08:30:45.000Z"

    def test_utc_with_fraction(self):
        parsed = ExifDateTime.parse("2024:01:15 10:30:45.25Z")
        assert parsed.to_date() == datetime(2024, 1, 15, 10, 30, 45, 250000, tzinfo=timezone.utc)

    def test_date_only(self):
        assert ExifDateTime.parse("2024:01:15").to_date() == date(2024, 1, 15)

    @pytest.mark.parametrize("text", [
        "0000:00:00 00:00:00",
        "not a date",
        "2024-01-15",
        "",
    ])
    def test_invalid(self, text):
        assert ExifDateTime.parse(text) is None


class TestConvertDateTags:
    """Tests for convert_date_tags()."""

    def test_only_date_named_tags_converted(self):
        tags = convert_date_tags({
            "DateTimeOriginal": "2024:01:15 10:30:45",
            "Make": "2024:01:15 10:30:45",
            "CreateDate": "0000:00:00 00:00:00",
            "ExposureTime": 0.01,
        })
        assert isinstance(tags["DateTimeOriginal"], ExifDateTime)
        assert tags["Make"] == "2024:01:15 10:30:45"
        assert tags["CreateDate"] == "0000:00:00 00:00:00"
        assert tags["ExposureTime"] == 0.01


class TestPillowTagReader:
    """Tests for the Pillow reader."""

    @pytest.fixture
    def reader(self):
        return PillowTagReader()

    def test_name(self, reader):
        assert reader.name == "pillow"

    def test_reads_top_level_tags(self, reader, tmp_path):
        path = make_jpeg(tmp_path / "a.jpg", size=(64, 48), tags={
            MAKE: "Canon",
            MODEL: "EOS R5",
            ARTIST: "Someone",
        })
        tags = reader.read_sync(path)

        assert tags["Make"] == "Canon"
        assert tags["Model"] == "EOS R5"
        assert tags["Artist"] == "Someone"
        assert tags["ImageWidth"] == 64
        assert tags["ImageHeight"] == 48
        assert tags["FileType"] == "JPEG"
        assert tags["MIMEType"] == "image/jpeg"

    def test_date_tags_wrapped(self, reader, tmp_path):
        path = make_jpeg(tmp_path / "a.jpg", tags={DATETIME: "2024:01:15 10:30:45"})
        tags = reader.read_sync(path)

        assert isinstance(tags["DateTime"], ExifDateTime)
        assert to_serializable(tags["DateTime"]) == to_iso_utc(datetime(2024, 1, 15, 10, 30, 45))

    def test_image_without_exif(self, reader, tmp_path):
        tags = reader.read_sync(make_png(tmp_path / "a.png", size=(10, 20)))
        assert tags["ImageWidth"] == 10
        assert tags["ImageHeight"] == 20
        assert "Make" not in tags

    def test_not_an_image(self, reader, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("hello")
        with pytest.raises(ExifReadError):
            reader.read_sync(path)

    def test_missing_file(self, reader, tmp_path):
        with pytest.raises(ExifReadError):
            reader.read_sync(tmp_path / "missing.jpg")

    def test_async_read(self, reader, tmp_path):
        path = make_jpeg(tmp_path / "a.jpg", tags={MAKE: "Nikon"})
        tags = asyncio.run(reader.read(path))
        assert tags["Make"] == "Nikon"


class TestExifToolDaemon:
    """Tests for the exiftool daemon that do not need exiftool."""

    def test_missing_executable(self):
        daemon = ExifToolDaemon("definitely-not-exiftool")
        assert daemon.is_alive is False
        with pytest.raises(ExifReadError):
            daemon.execute("-ver")
        daemon.close()

    def test_reader_raises_read_error(self, tmp_path):
        with ExifToolReader("definitely-not-exiftool") as reader:
            assert reader.name == "exiftool"
            with pytest.raises(ExifReadError):
                reader.read_sync(tmp_path / "a.jpg")


FAKE_EXIFTOOL = """#!/bin/sh
# Answers every -execute like `exiftool -stay_open True -@ -` would
while IFS= read -r line; do
  case "$line" in
    -execute)
{response}
      echo "{{ready}}"
      ;;
    False)
      exit 0
      ;;
  esac
done
"""

CANNED_JSON = (
    '[{"SourceFile": "a.jpg", "Make": "Canon", '
    '"DateTimeOriginal": "2024:01:15 10:30:45", "ISO": 400}]'
)


@pytest.fixture
def fake_exiftool(tmp_path: Path):
    """Write a stand-in exiftool script that prints a fixed response."""
    def create(response: str) -> str:
        script = tmp_path / "fake-exiftool"
        script.write_text(FAKE_EXIFTOOL.format(response=response))
        script.chmod(0o755)
        return str(script)
    return create


@pytest.mark.skipif(sys.platform == "win32", reason="needs a POSIX shell")
class TestExifToolDaemonProtocol:
    """Tests for the -stay_open request/response handling."""

    def test_read_json(self, fake_exiftool, tmp_path):
        executable = fake_exiftool(f"      printf '%s\\n' '{CANNED_JSON}'")
        with ExifToolDaemon(executable) as daemon:
            assert daemon.is_alive is True
            data = daemon.read_json(tmp_path / "a.jpg")
            again = daemon.read_json(tmp_path / "a.jpg")

        assert data == {
            "SourceFile": "a.jpg",
            "Make": "Canon",
            "DateTimeOriginal": "2024:01:15 10:30:45",
            "ISO": 400,
        }
        assert again == data

    def test_reader_wraps_dates(self, fake_exiftool, tmp_path):
        executable = fake_exiftool(f"      printf '%s\\n' '{CANNED_JSON}'")
        with ExifToolReader(executable) as reader:
            tags = asyncio.run(reader.read(tmp_path / "a.jpg"))

        assert tags["Make"] == "Canon"
        assert isinstance(tags["DateTimeOriginal"], ExifDateTime)
        assert to_serializable(tags["DateTimeOriginal"]) == to_iso_utc(
            datetime(2024, 1, 15, 10, 30, 45)
        )

    def test_empty_output(self, fake_exiftool, tmp_path):
        with ExifToolDaemon(fake_exiftool("      :")) as daemon:
            with pytest.raises(ExifReadError, match="no metadata"):
                daemon.read_json(tmp_path / "a.jpg")

    def test_empty_list(self, fake_exiftool, tmp_path):
        with ExifToolDaemon(fake_exiftool("      echo '[]'")) as daemon:
            with pytest.raises(ExifReadError, match="no metadata"):
                daemon.read_json(tmp_path / "a.jpg")

    def test_malformed_output(self, fake_exiftool, tmp_path):
        with ExifToolDaemon(fake_exiftool("      echo 'not json'")) as daemon:
            with pytest.raises(ExifReadError, match="Malformed"):
                daemon.read_json(tmp_path / "a.jpg")

    def test_daemon_exits_mid_request(self, fake_exiftool, tmp_path):
        with ExifToolDaemon(fake_exiftool("      exit 1")) as daemon:
            with pytest.raises(ExifReadError, match="exited unexpectedly"):
                daemon.read_json(tmp_path / "a.jpg")

    def test_close_stops_process(self, fake_exiftool):
        daemon = ExifToolDaemon(fake_exiftool("      :"))
        assert daemon.is_alive is True
        daemon.close()
        assert daemon.is_alive is False


@pytest.mark.skipif(not exiftool_available(), reason="exiftool not installed")
class TestExifToolReader:
    """Tests against a real exiftool binary."""

    def test_reads_tags(self, tmp_path):
        path = make_jpeg(tmp_path / "a.jpg", size=(64, 48), tags={
            MAKE: "Canon",
            DATETIME: "2024:01:15 10:30:45",
        })
        with ExifToolReader() as reader:
            tags = asyncio.run(reader.read(path))

        assert tags["Make"] == "Canon"
        assert tags["ImageWidth"] == 64
        assert isinstance(tags["ModifyDate"], ExifDateTime)
        assert tags["FileName"] == "a.jpg"

    def test_daemon_reused(self, tmp_path):
        path = make_jpeg(tmp_path / "a.jpg")
        with ExifToolReader() as reader:
            reader.read_sync(path)
            first = reader.daemon
            reader.read_sync(path)
            assert reader.daemon is first


class TestCreateTagReader:
    """Tests for the reader factory."""

    def test_pillow(self):
        assert isinstance(create_tag_reader(ReaderBackend.PILLOW), PillowTagReader)

    def test_exiftool(self):
        reader = create_tag_reader(ReaderBackend.EXIFTOOL)
        try:
            assert isinstance(reader, ExifToolReader)
        finally:
            reader.close()

    def test_auto_falls_back_to_pillow(self):
        with patch("exifloader.engines.exiftool_available", return_value=False):
            assert isinstance(create_tag_reader(), PillowTagReader)

    def test_auto_prefers_exiftool(self):
        with patch("exifloader.engines.exiftool_available", return_value=True):
            reader = create_tag_reader()
        try:
            assert isinstance(reader, ExifToolReader)
        finally:
            reader.close()
