"""
Helper functions for turning sizes, durations and URLs into short strings for
tables and panels.
"""

from typing import Optional

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


def format_size(bytes_size: float) -> str:
    """Formats bytes into a human-readable size string (e.g., '145.3 MB')."""
    if bytes_size <= 0:
        return "0 B"
    size = float(bytes_size)
    for unit in _SIZE_UNITS[:-1]:
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} {_SIZE_UNITS[-1]}"


def format_duration(seconds: float) -> str:
    """Formats elapsed seconds as e.g. '2h 34m 12s', dropping leading zero units."""
    hours, rest = divmod(int(seconds), 3600)
    minutes, secs = divmod(rest, 60)
    parts = [f"{value}{unit}" for value, unit in ((hours, "h"), (minutes, "m")) if value]
    if secs or not parts:
        parts.append(f"{secs}s")
    return " ".join(parts)


def format_track_length(duration_ms: Optional[int]) -> str:
    """Formats a track length in milliseconds as ``m:ss``; unknown lengths give '--:--'."""
    if not duration_ms or duration_ms < 0:
        return "--:--"
    minutes, secs = divmod(duration_ms // 1000, 60)
    return f"{minutes}:{secs:02d}"


def shorten_url(url: str, max_length: int = 60) -> str:
    """Trims long URLs for table display, keeping the start and the tail."""
    if len(url) <= max_length:
        return url
    head = max_length // 2 - 2
    tail = max_length - head - 3
    return f"{url[:head]}...{url[-tail:]}"
