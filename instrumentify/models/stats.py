"""
Dataclass for tracking playlist session statistics.
"""

import asyncio
import time
from dataclasses import dataclass, field


@dataclass
class SessionStats:
    """Tracks counters for a playlist session."""

    tracks_total: int = 0
    tracks_resolved: int = 0
    tracks_unresolved: int = 0
    tracks_processed: int = 0
    tracks_failed: int = 0
    total_size_processed: int = 0
    providers_used: dict[str, int] = field(default_factory=dict)
    start_time: float = field(default_factory=time.monotonic, repr=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    def record_resolution(self, provider: str | None) -> None:
        self.tracks_total += 1
        if provider is None:
            self.tracks_unresolved += 1
            return
        self.tracks_resolved += 1
        self.providers_used[provider] = self.providers_used.get(provider, 0) + 1

    async def record_processed(self, size: int) -> None:
        async with self._lock:
            self.tracks_processed += 1
            self.total_size_processed += size

    async def record_failure(self) -> None:
        async with self._lock:
            self.tracks_failed += 1

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.start_time
