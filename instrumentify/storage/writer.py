"""
Saves each processed result as its own WAV file as soon as it is produced.
"""

import asyncio
import logging
from pathlib import Path

import aiofiles

from instrumentify.models.track import ProcessedResult
from instrumentify.utils.formatting import format_size
from instrumentify.utils.path import create_dir, unique_entry_name

log = logging.getLogger(__name__)


class ResultWriter:
    """
    Writes results into ``directory``. Existing files are never overwritten:
    a repeated name is saved as ``name (2).wav`` and so on.
    """

    def __init__(self, directory: Path):
        self.directory = directory
        self._lock = asyncio.Lock()

    async def write(self, result: ProcessedResult) -> Path:
        async with self._lock:
            create_dir(self.directory)
            taken = {path.name for path in self.directory.iterdir()}
            path = self.directory / unique_entry_name(result.file_name, taken)
            async with aiofiles.open(path, "wb") as f:
                await f.write(result.audio_bytes)

        log.info(f"  [green]✓ Saved:[/] {path.name} ({format_size(result.size)})")
        return path
