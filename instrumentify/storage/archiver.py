"""
Bundles collected results into a single ZIP archive.
"""

import asyncio
import io
import logging
import zipfile
from pathlib import Path
from typing import Iterable, Optional

import aiofiles

from instrumentify.models.track import ProcessedResult
from instrumentify.utils.formatting import format_size
from instrumentify.utils.path import create_dir, unique_entry_name

from .collector import ResultCollector

log = logging.getLogger(__name__)


def build_zip(results: Iterable[ProcessedResult]) -> bytes:
    """
    Returns ZIP bytes with one entry per result. Repeated file names become
    distinct entries (``name (2).wav``) so no result is dropped.
    """
    buffer = io.BytesIO()
    taken: set[str] = set()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for result in results:
            entry_name = unique_entry_name(result.file_name, taken)
            taken.add(entry_name)
            archive.writestr(entry_name, result.audio_bytes)
    return buffer.getvalue()


class ResultArchiver:
    """Writes the contents of a ``ResultCollector`` to a ZIP file."""

    async def archive(
        self, collector: ResultCollector, destination: Path
    ) -> Optional[Path]:
        """
        Archives every result collected so far.

        Returns:
            The archive path, or None when there was nothing to archive.
        """
        results = collector.snapshot()
        if not results:
            log.warning("[yellow]Nothing has been processed yet; no archive created.[/yellow]")
            return None

        data = await asyncio.to_thread(build_zip, results)
        create_dir(destination.parent)
        async with aiofiles.open(destination, "wb") as f:
            await f.write(data)

        log.info(
            f"[green]✓ Archived {len(results)} tracks "
            f"({format_size(len(data))}) to '{destination}'[/green]"
        )
        return destination
