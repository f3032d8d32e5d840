"""
launcher.py — Open a path with the desktop's default application.

The caller never waits on the handler; a daemon thread reaps it.
"""

from __future__ import annotations

import os
import subprocess
import sys
import threading

from almanac.errors import LaunchError
from almanac.logger import get_logger

log = get_logger(__name__)


def _opener_cmd() -> list:
    if sys.platform == "darwin":
        return ["open"]
    return ["xdg-open"]


def _reap(process: subprocess.Popen) -> None:
    returncode = process.wait()
    if returncode != 0:
        log.warning("[open_flow] event=handler_failed pid=%s returncode=%s", process.pid, returncode)


def open_with_default(path: str) -> None:
    log.info("[open_flow] event=launch path=%s", path)
    try:
        if sys.platform == "win32":
            os.startfile(path)  # noqa: S606
            return
        process = subprocess.Popen(  # noqa: S603
            [*_opener_cmd(), path],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
    except OSError as exc:
        raise LaunchError(f"Can't open {path!r}: {exc}") from exc
    threading.Thread(target=_reap, args=(process,), name=f"opener-{process.pid}", daemon=True).start()
