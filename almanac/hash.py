"""
hash.py — Stable identity for filesystem entries.

Regular files are fingerprinted from (size, mime, mtime) when all three are
known, which needs no content read. If any of them is missing the whole file
is streamed through the hash instead. Everything else (directories, files
that cannot be opened) is identified by its path.

The fast path cannot see an edit that keeps size, mime and mtime unchanged.
That is acceptable for a file browser, not for integrity checking.
"""

import hashlib
import os
import struct

from almanac import probe
from almanac.logger import get_logger
from almanac.models import FsId

log = get_logger(__name__)

CHUNK_BYTES = 8192


def _hash_content(f, h) -> None:
    while True:
        try:
            chunk = f.read(CHUNK_BYTES)
        except OSError as exc:
            log.warning("[identity] event=content_read_failed error=%s", exc)
            return
        if not chunk:
            return
        h.update(chunk)


def compute_hash(path: str) -> FsId:
    """Return the FsId for ``path``. Never raises."""
    h = hashlib.sha256()

    f = None
    if os.path.isfile(path):
        try:
            f = open(path, "rb")
        except OSError:
            f = None

    if f is None:
        h.update(os.fsencode(path))
        return FsId(h.hexdigest())

    with f:
        size = probe.file_size(path)
        mime = probe.classify_mime(path)
        mtime = probe.modified_time(path)

        if size is not None and mime is not None and mtime is not None:
            log.trace("[identity] event=fast_path path=%s", path)
            h.update(struct.pack(">q", size))
            h.update(mime.encode("utf-8"))
            h.update(struct.pack(">Q", mtime.seconds))
            h.update(struct.pack(">I", mtime.nanos))
        else:
            log.trace("[identity] event=slow_path path=%s", path)
            _hash_content(f, h)

    return FsId(h.hexdigest())
