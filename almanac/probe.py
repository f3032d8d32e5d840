"""
probe.py — Filesystem metadata and MIME classification.

Everything here is best-effort: unreadable metadata degrades to None instead
of raising. The only exception is the existence check, which raises
AccessError when the OS refuses to answer.
"""

from __future__ import annotations

import mimetypes
import os
from typing import Optional

import filetype

from almanac.errors import AccessError
from almanac.logger import get_logger
from almanac.models import ModifiedTime, Probe

log = get_logger(__name__)

# Extensions whose name says little about the content; sniff these instead.
SNIFF_EXTENSIONS = {"deb", "exe", "rpm"}
SNIFF_BYTES = 512

_mimes = mimetypes.MimeTypes()
_mimes.add_type("video/x-matroska", ".mkv")
_mimes.add_type("video/webm", ".webm")
_mimes.add_type("image/webp", ".webp")


def exists(path: str) -> bool:
    """Follows symlinks; a dangling link does not exist."""
    try:
        os.stat(path)
    except (FileNotFoundError, NotADirectoryError):
        return False
    except OSError as exc:
        raise AccessError(f"Can't check the path {path!r}: {exc.strerror or exc}") from exc
    return True


def file_size(path: str) -> Optional[int]:
    try:
        return os.stat(path).st_size
    except OSError:
        return None


def modified_time(path: str) -> Optional[ModifiedTime]:
    try:
        mtime_ns = os.stat(path).st_mtime_ns
    except OSError:
        return None
    if mtime_ns < 0:
        # pre-epoch mtimes are treated as unavailable
        return None
    return ModifiedTime.from_ns(mtime_ns)


def probe(path: str) -> Probe:
    if not exists(path):
        return Probe(exists=False, is_file=False)
    return Probe(
        exists=True,
        is_file=os.path.isfile(path),
        size=file_size(path),
        modified_time=modified_time(path),
    )


def _extension(path: str) -> str:
    return os.path.splitext(path)[1].lstrip(".")


def _sniff(path: str) -> Optional[str]:
    try:
        with open(path, "rb") as f:
            header = f.read(SNIFF_BYTES)
    except OSError as exc:
        log.debug("[probe] event=sniff_failed path=%s error=%s", path, exc)
        return None
    if len(header) < SNIFF_BYTES:
        return None
    return filetype.guess_mime(header)


def classify_mime(path: str) -> Optional[str]:
    """
    Best-effort MIME type for a path.

    Extensions are trusted except for SNIFF_EXTENSIONS, where the first 512
    bytes are matched against known magic signatures. Never raises.
    """
    try:
        if _extension(path) in SNIFF_EXTENSIONS:
            return _sniff(path)
        mime, _encoding = _mimes.guess_type(path, strict=False)
        return mime
    except Exception as exc:  # noqa: BLE001
        log.debug("[probe] event=classify_failed path=%s error=%s", path, exc)
        return None
