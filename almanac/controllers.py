"""
controllers.py — Pure request handlers for almanac.

Each function takes its collaborators (store, thumbnail cache) and the path
arguments and returns (response, http_status_code). No Flask imports, so these are
testable without a running app.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple, Union

from almanac import __version__, describe, launcher, paths, probe
from almanac.db import ViewCounterStore
from almanac.errors import AlmanacError, NotFound, StoreError
from almanac.hash import compute_hash
from almanac.logger import get_logger
from almanac.thumbnails import ThumbnailCache

log = get_logger(__name__)

Response = Tuple[Union[dict, list], int]


def _error(exc: AlmanacError) -> Response:
    return {"error": exc.message}, exc.http_status


def _bad_request(message: str) -> Response:
    return {"error": message}, 400


# ── GET /version ─────────────────────────────────────────────────────────────

def get_version() -> Response:
    return {"version": __version__}, 200


# ── Path conversions ─────────────────────────────────────────────────────────

def convert_path_to_pathvec(path: str) -> Response:
    return paths.path_to_components(path), 200


def convert_pathvec_to_path(pathvec: Sequence[str]) -> Response:
    if not isinstance(pathvec, (list, tuple)) or not all(isinstance(p, str) for p in pathvec):
        return _bad_request("expected a list of path components")
    return {"path": paths.components_to_path(pathvec)}, 200


# ── Info / detail ────────────────────────────────────────────────────────────

def get_fs_info(store: ViewCounterStore, path: str) -> Response:
    if not path:
        return _bad_request("missing path")
    try:
        return describe.get_info(path, store).to_dict(), 200
    except AlmanacError as exc:
        return _error(exc)


def get_fs_detail(path: str) -> Response:
    if not path:
        return _bad_request("missing path")
    try:
        return describe.get_detail(path).to_dict(), 200
    except AlmanacError as exc:
        return _error(exc)


def get_fs_children_infos(store: ViewCounterStore, path: str) -> Response:
    if not path:
        return _bad_request("missing path")
    try:
        infos: List = describe.get_children_infos(path, store)
    except AlmanacError as exc:
        return _error(exc)
    return [info.to_dict() for info in infos], 200


# ── POST /fs/open ────────────────────────────────────────────────────────────

def open_path(store: ViewCounterStore, path: str) -> Response:
    """
    Open ``path`` with the default application and count the view.

    The counter is best-effort: if it can't be saved the open still succeeds
    and totalViews is reported as null.
    """
    if not path:
        return _bad_request("missing path")
    log.info("[open_flow] event=open_requested path=%s", path)
    try:
        if not probe.exists(path):
            raise NotFound(f"The path {path!r} doesn't exist!")
        launcher.open_with_default(path)
    except AlmanacError as exc:
        log.info("[open_flow] event=open_rejected path=%s reason=%s", path, exc.message)
        return _error(exc)

    fs_id = compute_hash(path)
    try:
        total_views = store.increment(fs_id)
    except StoreError as exc:
        log.warning("[open_flow] event=counter_not_saved id=%s error=%s", fs_id, exc.message)
        total_views = None

    return {"path": path, "id": str(fs_id), "totalViews": total_views}, 200


# ── GET /fs/thumbnail ────────────────────────────────────────────────────────

def get_thumbnail_path(cache: ThumbnailCache, path: str) -> Response:
    if not path:
        return _bad_request("missing path")
    try:
        thumbnail = cache.get_or_create(path)
    except AlmanacError as exc:
        log.debug("[thumbnail_flow] event=rejected path=%s reason=%s", path, exc.message)
        return _error(exc)
    status = cache.status(cache.id_of(thumbnail))
    return {"path": thumbnail, "status": status.value}, 200
