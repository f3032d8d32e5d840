"""
paths.py — Conversions between path strings and component lists.

The root (``/`` or ``C:\\``) is kept as its own component so the round trip
is lossless for plain paths.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Sequence


def path_to_components(path: str) -> List[str]:
    return list(Path(path).parts)


def components_to_path(components: Sequence[str]) -> str:
    if not components:
        return ""
    return os.fspath(Path(*components))
