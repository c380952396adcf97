"""
Append-only collection of processed results for one playlist session.
"""

import asyncio
from typing import Iterator

from instrumentify.models.track import ProcessedResult


class ResultCollector:
    """
    Holds every ``ProcessedResult`` produced during a session. Results can
    only be appended; readers get a snapshot.
    """

    def __init__(self) -> None:
        self._results: list[ProcessedResult] = []
        self._lock = asyncio.Lock()

    async def append(self, result: ProcessedResult) -> None:
        async with self._lock:
            self._results.append(result)

    def snapshot(self) -> tuple[ProcessedResult, ...]:
        return tuple(self._results)

    def file_names(self) -> list[str]:
        return [result.file_name for result in self._results]

    def __len__(self) -> int:
        return len(self._results)

    def __iter__(self) -> Iterator[ProcessedResult]:
        return iter(self.snapshot())

    def __bool__(self) -> bool:
        return bool(self._results)
