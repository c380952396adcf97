"""
Utilities for handling playlist URLs and output file names.
"""

import re
from pathlib import Path
from typing import Optional

_PLAYLIST_URL_REGEX = re.compile(
    r"(?:open\.spotify\.com/(?:[\w-]+/)?playlist/|spotify:playlist:)(?P<id>[A-Za-z0-9]+)"
)
_BARE_ID_REGEX = re.compile(r"^[A-Za-z0-9]{22}$")


def parse_playlist_url(url: str) -> Optional[str]:
    """
    Extracts a playlist ID from a share URL, a ``spotify:playlist:`` URI or a bare ID.
    Query strings such as ``?si=...`` are ignored.
    """
    url = url.strip()
    if match := _PLAYLIST_URL_REGEX.search(url):
        return match.group("id")
    if _BARE_ID_REGEX.match(url):
        return url
    return None


def create_dir(directory_path: Path) -> None:
    """Creates a directory if it does not already exist."""
    directory_path.mkdir(parents=True, exist_ok=True)


def unique_entry_name(name: str, taken: set[str]) -> str:
    """
    Returns ``name`` or, if already taken, ``name`` with a numeric suffix
    inserted before the extension (``Song (2).wav``).
    """
    if name not in taken:
        return name
    stem, dot, ext = name.rpartition(".")
    if not dot:
        stem, ext = name, ""
    counter = 2
    while True:
        candidate = f"{stem} ({counter}).{ext}" if ext else f"{stem} ({counter})"
        if candidate not in taken:
            return candidate
        counter += 1
