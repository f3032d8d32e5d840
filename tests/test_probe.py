"""Tests for probe.py — stat metadata and MIME classification."""

import os
from types import SimpleNamespace

import pytest

from almanac import probe
from almanac.errors import AccessError
from almanac.models import ModifiedTime

# Minimal ELF header followed by padding; sniffed as application/x-executable.
_ELF_HEADER = b"\x7fELF\x02\x01\x01" + b"\x00" * 505


# ── probe() ──────────────────────────────────────────────────────────────────

def test_probe_file(tmp_path, make_file):
    path = make_file(tmp_path / "a.png", b"x" * 1024, mtime_ns=1_700_000_000_123_456_789)
    result = probe.probe(path)
    assert result.exists is True
    assert result.is_file is True
    assert result.size == 1024
    assert result.modified_time == ModifiedTime.from_ns(os.stat(path).st_mtime_ns)


def test_probe_directory(tmp_path):
    result = probe.probe(str(tmp_path))
    assert result.exists is True
    assert result.is_file is False


def test_probe_missing_path(tmp_path):
    result = probe.probe(str(tmp_path / "nope"))
    assert result.exists is False
    assert result.size is None
    assert result.modified_time is None


def test_exists_raises_access_error(monkeypatch):
    def deny(path):
        raise PermissionError(13, "Permission denied")

    monkeypatch.setattr(probe, "os", SimpleNamespace(stat=deny))
    with pytest.raises(AccessError):
        probe.exists("/root/secret")


def test_metadata_degrades_to_none(tmp_path):
    missing = str(tmp_path / "gone.bin")
    assert probe.file_size(missing) is None
    assert probe.modified_time(missing) is None


def test_modified_time_split():
    mt = ModifiedTime.from_ns(1_700_000_000_123_456_789)
    assert mt.seconds == 1_700_000_000
    assert mt.nanos == 123_456_789


# ── classify_mime() ──────────────────────────────────────────────────────────

@pytest.mark.parametrize("name,expected", [
    ("photo.png", "image/png"),
    ("photo.JPG", "image/jpeg"),
    ("photo.webp", "image/webp"),
    ("clip.mp4", "video/mp4"),
    ("clip.webm", "video/webm"),
    ("clip.mkv", "video/x-matroska"),
    ("notes.txt", "text/plain"),
])
def test_classify_from_extension(tmp_path, make_file, name, expected):
    path = make_file(tmp_path / name, b"not really")
    assert probe.classify_mime(path) == expected


def test_classify_extension_does_not_read_file(tmp_path):
    # the file doesn't exist, the extension alone decides
    assert probe.classify_mime(str(tmp_path / "missing.png")) == "image/png"


def test_classify_unknown_extension(tmp_path, make_file):
    path = make_file(tmp_path / "blob.zzqq", b"whatever")
    assert probe.classify_mime(path) is None


def test_classify_sniffs_denylisted_extension(tmp_path, make_file):
    path = make_file(tmp_path / "tool.exe", _ELF_HEADER)
    assert probe.classify_mime(path) == "application/x-executable"


def test_classify_sniff_needs_full_header(tmp_path, make_file):
    path = make_file(tmp_path / "tiny.deb", b"!<arch>\n")
    assert probe.classify_mime(path) is None


def test_classify_sniff_unreadable_is_none(tmp_path):
    assert probe.classify_mime(str(tmp_path / "missing.rpm")) is None
