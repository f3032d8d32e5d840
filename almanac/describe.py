"""
describe.py — Build FsInfo / FsDetail records for filesystem entries.

Listings are best-effort: a child that can't be enumerated or described is
left out rather than failing the whole directory.
"""

from __future__ import annotations

import os
from typing import List, Optional, Protocol

from almanac import probe
from almanac.errors import AccessError, NotFound
from almanac.hash import compute_hash
from almanac.logger import get_logger
from almanac.models import (
    FileDetail,
    FileInfo,
    FolderDetail,
    FolderInfo,
    FsDetail,
    FsId,
    FsInfo,
)

log = get_logger(__name__)


class ViewsLookup(Protocol):
    def total_views(self, fs_id: FsId) -> Optional[int]: ...


def _name(path: str) -> Optional[str]:
    name = os.path.basename(os.path.normpath(path)) if path else ""
    if not name or name in (os.curdir, os.pardir):
        return None
    return name


def _require_exists(path: str) -> None:
    if not probe.exists(path):
        raise NotFound(f"The path {path!r} doesn't exist!")


def _scandir(path: str) -> List[os.DirEntry]:
    try:
        with os.scandir(path) as it:
            return list(it)
    except OSError as exc:
        raise AccessError(f"Can't read the folder {path!r}: {exc.strerror or exc}") from exc


# ── Summary ──────────────────────────────────────────────────────────────────

def get_info(path: str, views: Optional[ViewsLookup] = None) -> FsInfo:
    _require_exists(path)

    fs_id = compute_hash(path)

    if os.path.isfile(path):
        name = _name(path)
        if name is None:
            raise AccessError(f"Can't get the file name of {path!r}!")
        return FileInfo(
            id=fs_id,
            name=name,
            path=path,
            size=probe.file_size(path),
            modified_time=probe.modified_time(path),
            total_views=views.total_views(fs_id) if views is not None else None,
        )

    return FolderInfo(id=fs_id, name=_name(path) or path, path=path)


# ── Detail ───────────────────────────────────────────────────────────────────

def get_detail(path: str) -> FsDetail:
    _require_exists(path)

    if os.path.isfile(path):
        return FileDetail(mime=probe.classify_mime(path))

    return FolderDetail(total_items=len(_scandir(path)))


# ── Children ─────────────────────────────────────────────────────────────────

def get_children_infos(path: str, views: Optional[ViewsLookup] = None) -> List[FsInfo]:
    """
    Describe the direct children of ``path``.

    Raises AccessError only when the directory itself can't be opened.
    Children that vanish or can't be described are skipped, and a read error
    midway returns what was listed so far.
    """
    try:
        it = os.scandir(path)
    except OSError as exc:
        raise AccessError(f"Can't read the folder {path!r}: {exc.strerror or exc}") from exc

    infos: List[FsInfo] = []
    skipped = 0
    with it:
        while True:
            try:
                entry = next(it)
            except StopIteration:
                break
            except OSError as exc:
                # the iterator can't resume after a readdir failure
                log.warning("[listing] event=enumeration_aborted dir=%s error=%s", path, exc)
                break
            try:
                infos.append(get_info(entry.path, views))
            except Exception as exc:  # noqa: BLE001
                log.debug("[listing] event=child_skipped path=%s error=%s", entry.path, exc)
                skipped += 1

    log.trace("[listing] event=listed dir=%s count=%d skipped=%d", path, len(infos), skipped)
    return infos
