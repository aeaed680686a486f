"""
TabCaption Shared Utilities — path helpers used by the variables.
"""

from __future__ import annotations

import re
from typing import List

_SEPARATORS = re.compile(r"[\\/]")
_DRIVE = re.compile(r"^[A-Za-z]:$")


def split_path(path: str) -> List[str]:
    """
    Split a path on both slash and backslash, dropping empty segments
    and a leading drive letter.

    Examples:
        split_path("C:\\a\\f.cpp")  → ["a", "f.cpp"]
        split_path("/a/b/")         → ["a", "b"]
        split_path("")              → []
    """
    parts = [p for p in _SEPARATORS.split(path) if p]
    if parts and _DRIVE.match(parts[0]):
        parts = parts[1:]
    return parts
