"""
thumbnails.py — Identity-keyed thumbnail cache backed by ffmpeg.

Responsibilities:
  - Map a file to ``<cache_dir>/<FsId>.webp``; an existing file is a cache hit
  - On a miss, build an ffmpeg command (image: scale into the box,
    video: pick a representative frame then scale) and spawn it
  - Return the intended output path immediately; the caller never waits on
    the transcoder, so the path may not exist yet (or ever, if ffmpeg fails)
  - Never spawn a second ffmpeg for an identity whose first one is still running
  - Reap every transcoder from a daemon thread and record whether it failed

Derivation status (missing / pending / ready / failed) is tracked per process
lifetime only; nothing about in-flight work survives a restart.
"""

from __future__ import annotations

import os
import subprocess
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, Set

import ffmpeg

from almanac import probe
from almanac.errors import DerivationFailed, NotAFile, NotFound, UnsupportedType
from almanac.hash import compute_hash
from almanac.logger import get_logger
from almanac.models import FsId, ThumbnailStatus

log = get_logger(__name__)

THUMBNAIL_EXT = "webp"
DEFAULT_BOX = (930, 480)

IMAGE_MIMES = {"image/jpeg", "image/png", "image/webp"}
VIDEO_MIMES = {"video/mp4", "video/webm", "video/x-matroska"}


# ── ffmpeg command builder ───────────────────────────────────────────────────

def _image_filter(width: int, height: int) -> str:
    # fit inside the box, keep aspect ratio
    return f"scale='min({width},iw*{height}/ih)':'min({height},ih*{width}/iw)'"


def _video_filter(width: int, height: int) -> str:
    ratio = f"{width}/{height}"
    return (
        f"thumbnail,"
        f"scale='if(gt(a,{ratio}),{width},-1)':'if(gt(a,{ratio}),-1,{height})'"
    )


def build_stream(
    source: str,
    mime: Optional[str],
    output: str,
    box: tuple = DEFAULT_BOX,
):
    """Return the ffmpeg-python output stream for ``source``, or raise UnsupportedType."""
    width, height = box
    stream = ffmpeg.input(source)
    if mime in IMAGE_MIMES:
        stream = stream.output(output, vf=_image_filter(width, height))
    elif mime in VIDEO_MIMES:
        stream = stream.output(
            output,
            vf=_video_filter(width, height),
            **{"frames:v": 1, "q:v": 2},
        )
    else:
        raise UnsupportedType(f"Unsupported file type: {mime or 'unknown'}")
    return stream.global_args("-nostdin", "-loglevel", "error")


# ── Cache ────────────────────────────────────────────────────────────────────

@dataclass
class _IdLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


class ThumbnailCache:
    def __init__(
        self,
        cache_dir: str,
        ffmpeg_cmd: str = "ffmpeg",
        box: tuple = DEFAULT_BOX,
    ) -> None:
        self.cache_dir = os.fspath(cache_dir)
        self.ffmpeg_cmd = ffmpeg_cmd
        self.box = box
        self._lock = threading.Lock()
        # running transcoders; an entry is removed by its reaper thread
        self._inflight: Dict[FsId, subprocess.Popen] = {}
        # identities whose last transcoder exited without producing a file
        self._failed: Set[FsId] = set()
        # per-identity locks, dropped when their last user releases them
        self._id_locks: Dict[FsId, _IdLock] = {}

    def cache_path(self, fs_id: FsId) -> str:
        return os.path.join(self.cache_dir, f"{fs_id}.{THUMBNAIL_EXT}")

    def id_of(self, cache_path: str) -> FsId:
        return FsId(os.path.basename(cache_path)[: -len(THUMBNAIL_EXT) - 1])

    @contextmanager
    def _acquire_lock(self, fs_id: FsId) -> Iterator[None]:
        with self._lock:
            entry = self._id_locks.get(fs_id)
            if entry is None:
                entry = self._id_locks[fs_id] = _IdLock()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._lock:
                entry.users -= 1
                if entry.users == 0:
                    del self._id_locks[fs_id]

    def status(self, fs_id: FsId) -> ThumbnailStatus:
        ready = os.path.exists(self.cache_path(fs_id))
        with self._lock:
            if fs_id in self._inflight:
                return ThumbnailStatus.PENDING
            if ready:
                # a file left behind by a failed run is still the record
                self._failed.discard(fs_id)
                return ThumbnailStatus.READY
            if fs_id in self._failed:
                return ThumbnailStatus.FAILED
        return ThumbnailStatus.MISSING

    def get_or_create(self, path: str) -> str:
        """
        Return the thumbnail path for ``path``, spawning ffmpeg on a miss.

        Raises NotFound, NotAFile, UnsupportedType or DerivationFailed. A
        returned path is only a promise: ffmpeg may still be running or may
        have failed.
        """
        if not probe.exists(path):
            raise NotFound(f"The path {path!r} doesn't exist!")
        if not os.path.isfile(path):
            raise NotAFile(f"The path {path!r} must be a file!")

        fs_id = compute_hash(path)
        target = self.cache_path(fs_id)
        # raises UnsupportedType before the cache directory is looked at
        stream = build_stream(path, probe.classify_mime(path), target, self.box)

        if os.path.exists(target):
            log.debug("[thumbnail_flow] event=cache_hit id=%s", fs_id)
            return target

        with self._acquire_lock(fs_id):
            state = self.status(fs_id)
            if state in (ThumbnailStatus.READY, ThumbnailStatus.PENDING):
                log.debug("[thumbnail_flow] event=reuse id=%s status=%s", fs_id, state.value)
                return target
            self._spawn(fs_id, stream, path)
        return target

    def _spawn(self, fs_id: FsId, stream, source: str) -> None:
        try:
            os.makedirs(self.cache_dir, exist_ok=True)
            process = stream.run_async(cmd=self.ffmpeg_cmd)
        except OSError as exc:
            log.error("[thumbnail_flow] event=spawn_failed id=%s path=%s error=%s", fs_id, source, exc)
            raise DerivationFailed(f"Can't spawn the ffmpeg command: {exc}") from exc
        with self._lock:
            self._failed.discard(fs_id)
            self._inflight[fs_id] = process
        log.info("[thumbnail_flow] event=spawned id=%s path=%s pid=%s", fs_id, source, process.pid)
        threading.Thread(
            target=self._reap,
            args=(fs_id, process),
            name=f"thumbnail-{process.pid}",
            daemon=True,
        ).start()

    def _reap(self, fs_id: FsId, process: subprocess.Popen) -> None:
        """Wait for one transcoder and record how it ended."""
        returncode = process.wait()
        ready = os.path.exists(self.cache_path(fs_id))
        with self._lock:
            if self._inflight.get(fs_id) is process:
                del self._inflight[fs_id]
            if ready:
                self._failed.discard(fs_id)
            else:
                self._failed.add(fs_id)
        if returncode == 0 and ready:
            log.info("[thumbnail_flow] event=done id=%s", fs_id)
        else:
            log.warning("[thumbnail_flow] event=failed id=%s returncode=%s", fs_id, returncode)
