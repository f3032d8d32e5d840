"""
app.py — Flask application and HTTP API entry point for almanac.

Startup is lazy: the first request opens the view-counter store and sets up
the thumbnail cache from the environment configuration.

Endpoints (local desktop use, no auth):
  GET  /version                — package version
  GET  /path/components?path=  — split a path into components
  POST /path/join              — join a JSON list of components
  GET  /fs/info?path=          — FsInfo summary
  GET  /fs/detail?path=        — FsDetail
  GET  /fs/children?path=      — best-effort listing of direct children
  POST /fs/open?path=          — open with the default application, count a view
  GET  /fs/thumbnail?path=     — cached (or newly requested) thumbnail path
"""

from __future__ import annotations

import os
import threading
from typing import Optional

from flask import Flask, jsonify, request

from almanac import controllers, db
from almanac.config import Configuration
from almanac.logger import get_logger, setup_logging
from almanac.thumbnails import ThumbnailCache

log = get_logger(__name__)

app = Flask(__name__)

_started = False
_startup_lock = threading.Lock()
_store: Optional[db.ViewCounterStore] = None
_cache: Optional[ThumbnailCache] = None


def _ensure_started(config: Optional[Configuration] = None) -> None:
    global _started, _store, _cache  # noqa: PLW0603
    if not _started:
        with _startup_lock:
            if not _started:
                config = config or Configuration.from_env()
                setup_logging(config.log_level)

                _store = db.ViewCounterStore(db.init_db(str(config.database_path)))
                _cache = ThumbnailCache(
                    str(config.cache_dir),
                    ffmpeg_cmd=config.ffmpeg_cmd,
                    box=(config.thumbnail_width, config.thumbnail_height),
                )
                _started = True
                log.info("almanac started: %s", config.to_dict())


@app.before_request
def _startup():
    _ensure_started()


def _path_arg() -> str:
    return request.args.get("path", "")


def _respond(result):
    payload, status = result
    return jsonify(payload), status


@app.get("/version")
def version():
    return _respond(controllers.get_version())


# ─── /path ──────────────────────────────────────────────────────────────────

@app.get("/path/components")
def path_components():
    return _respond(controllers.convert_path_to_pathvec(_path_arg()))


@app.post("/path/join")
def path_join():
    return _respond(controllers.convert_pathvec_to_path(request.get_json(silent=True)))


# ─── /fs ────────────────────────────────────────────────────────────────────

@app.get("/fs/info")
def fs_info():
    return _respond(controllers.get_fs_info(_store, _path_arg()))


@app.get("/fs/detail")
def fs_detail():
    return _respond(controllers.get_fs_detail(_path_arg()))


@app.get("/fs/children")
def fs_children():
    return _respond(controllers.get_fs_children_infos(_store, _path_arg()))


@app.post("/fs/open")
def fs_open():
    return _respond(controllers.open_path(_store, _path_arg()))


@app.get("/fs/thumbnail")
def fs_thumbnail():
    return _respond(controllers.get_thumbnail_path(_cache, _path_arg()))


# ─── Entrypoint ─────────────────────────────────────────────────────────────

def main() -> None:
    _ensure_started()
    port = int(os.environ.get("PORT", "8765"))
    app.run(host="127.0.0.1", port=port, threaded=True)


if __name__ == "__main__":
    main()
