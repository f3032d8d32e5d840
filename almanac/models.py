"""
models.py — Dataclasses and enums for almanac.

Summary records (FsInfo) are built for every listing entry; detail records
(FsDetail) are fetched on demand. None of them are persisted, only the view
counter keyed by FsId is.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


# ── Identity ─────────────────────────────────────────────────────────────────

class FsId(str):
    """Hex digest identifying one filesystem entry."""

    __slots__ = ()

    def total_views_store_key(self) -> str:
        return f"fs/{self}/total-views"


# ── Enums ────────────────────────────────────────────────────────────────────

class ThumbnailStatus(str, Enum):
    MISSING = "missing"
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


# ── Metadata ─────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ModifiedTime:
    """Modification time split into whole seconds and sub-second nanos."""
    seconds: int
    nanos: int

    @staticmethod
    def from_ns(mtime_ns: int) -> ModifiedTime:
        seconds, nanos = divmod(mtime_ns, 1_000_000_000)
        return ModifiedTime(seconds=seconds, nanos=nanos)

    def to_dict(self) -> dict:
        return {"secs_since_epoch": self.seconds, "nanos_since_epoch": self.nanos}


@dataclass
class Probe:
    """Output of probe.probe(): cheap stat metadata for one path."""
    exists: bool
    is_file: bool
    size: Optional[int] = None
    modified_time: Optional[ModifiedTime] = None


# ── Summary records ──────────────────────────────────────────────────────────

@dataclass
class FileInfo:
    id: FsId
    name: str
    path: str
    size: Optional[int] = None
    modified_time: Optional[ModifiedTime] = None
    total_views: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "type": "file",
            "id": str(self.id),
            "name": self.name,
            "path": self.path,
            "size": self.size,
            "modifiedTime": self.modified_time.to_dict() if self.modified_time else None,
            "totalViews": self.total_views,
        }


@dataclass
class FolderInfo:
    id: FsId
    name: str
    path: str

    def to_dict(self) -> dict:
        return {
            "type": "folder",
            "id": str(self.id),
            "name": self.name,
            "path": self.path,
        }


FsInfo = Union[FileInfo, FolderInfo]


# ── Detail records ───────────────────────────────────────────────────────────

@dataclass
class FileDetail:
    mime: Optional[str] = None

    def to_dict(self) -> dict:
        return {"type": "file", "mime": self.mime}


@dataclass
class FolderDetail:
    total_items: Optional[int] = None

    def to_dict(self) -> dict:
        return {"type": "folder", "totalItems": self.total_items}


FsDetail = Union[FileDetail, FolderDetail]
