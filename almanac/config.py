"""
config.py — Configuration loaded from environment variables.

All settings have sane desktop defaults; ``Configuration.from_env()`` reads
overrides from the process environment.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

log = logging.getLogger(__name__)

DEFAULT_DATABASE_PATH = "~/.local/share/almanac/almanac.store.db"
DEFAULT_FFMPEG = "ffmpeg"
DEFAULT_THUMB_WIDTH = 930
DEFAULT_THUMB_HEIGHT = 480
DEFAULT_LOG_LEVEL = "INFO"


def default_cache_dir(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Resolve the per-user cache directory (``$XDG_CACHE_HOME/almanac``)."""
    env = os.environ if environ is None else environ
    base = env.get("XDG_CACHE_HOME") or "~/.cache"
    return Path(base).expanduser() / "almanac"


def _int_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        log.warning("Invalid integer for %s=%r, using default %d", name, raw, default)
        return default


@dataclass
class Configuration:
    cache_dir: Path = field(default_factory=default_cache_dir)
    database_path: Path = field(
        default_factory=lambda: Path(DEFAULT_DATABASE_PATH).expanduser()
    )
    ffmpeg_cmd: str = DEFAULT_FFMPEG
    thumbnail_width: int = DEFAULT_THUMB_WIDTH
    thumbnail_height: int = DEFAULT_THUMB_HEIGHT
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> Configuration:
        env = os.environ if environ is None else environ
        cache_dir = env.get("ALMANAC_CACHE_DIR")
        database_path = env.get("ALMANAC_DATABASE_PATH")
        return cls(
            cache_dir=Path(cache_dir).expanduser() if cache_dir else default_cache_dir(env),
            database_path=Path(database_path or DEFAULT_DATABASE_PATH).expanduser(),
            ffmpeg_cmd=env.get("ALMANAC_FFMPEG") or DEFAULT_FFMPEG,
            thumbnail_width=_int_env(env, "ALMANAC_THUMB_WIDTH", DEFAULT_THUMB_WIDTH),
            thumbnail_height=_int_env(env, "ALMANAC_THUMB_HEIGHT", DEFAULT_THUMB_HEIGHT),
            log_level=(env.get("ALMANAC_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper(),
        )

    def to_dict(self) -> dict:
        return {
            "cache_dir": str(self.cache_dir),
            "database_path": str(self.database_path),
            "ffmpeg_cmd": self.ffmpeg_cmd,
            "thumbnail_width": self.thumbnail_width,
            "thumbnail_height": self.thumbnail_height,
            "log_level": self.log_level,
        }
