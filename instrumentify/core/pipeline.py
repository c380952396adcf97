"""
Batch pipeline: resolves a playlist concurrently, then processes tracks on
demand and archives the accumulated results.
"""

import asyncio
import logging
from contextlib import AsyncExitStack
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Union

from rich.markup import escape

from instrumentify.exceptions import PlaylistError, ProcessingError, TaskBusyError
from instrumentify.inference.invoker import InferenceInvoker
from instrumentify.inference.selector import ModelSelector
from instrumentify.media.downloader import Downloader
from instrumentify.media.integrity import ensure_audio
from instrumentify.models.stats import SessionStats
from instrumentify.models.track import ProcessedResult, ResolvedSource, Track
from instrumentify.storage.archiver import ResultArchiver
from instrumentify.storage.collector import ResultCollector
from instrumentify.storage.writer import ResultWriter

from .resolver import SourceResolver

log = logging.getLogger(__name__)


class TaskState(str, Enum):
    IDLE = "idle"
    PROCESSING = "processing"
    DONE = "done"
    FAILED = "failed"


class TrackTask:
    """
    The "make instrumental" action for one resolved track.

    ``trigger`` fetches the source audio, picks a model, runs separation and
    appends the result to the session's collector, saving it to disk as well when
    the session has a writer. It may be triggered again
    after it finishes or fails; each successful run appends another result.
    """

    def __init__(self, source: ResolvedSource, session: "PlaylistSession"):
        if not source.resolved:
            raise ValueError(f"Track '{source.track.label}' has no resolved source.")
        self.source = source
        self._session = session
        self.state = TaskState.IDLE
        self.last_error: Optional[BaseException] = None
        self.results_appended = 0

    @property
    def track(self) -> Track:
        return self.source.track

    def __repr__(self) -> str:
        return f"<TrackTask #{self.track.position} {self.track.label!r} {self.state.value}>"

    async def trigger(self, quality: str = "auto") -> ProcessedResult:
        """
        Runs fetch, separation and collection for this track.

        Raises:
            TaskBusyError: The task is already processing.
            ProcessingError: Any step failed; nothing was appended.
        """
        if self.state is TaskState.PROCESSING:
            raise TaskBusyError(f"'{self.track.label}' is already being processed.")

        self.state = TaskState.PROCESSING
        self.last_error = None
        session = self._session
        try:
            audio_bytes = await session.fetcher.fetch_bytes(self.source.source_url)
            ensure_audio(audio_bytes)
            model_url = session.selector.select_model(quality)
            log.debug(f"Separating '{self.track.label}' with {model_url}")
            instrumental = await session.invoker.infer(audio_bytes, model_url)
            result = ProcessedResult.for_track(self.track, instrumental)
        except Exception as e:
            self.state = TaskState.FAILED
            self.last_error = e
            await session.stats.record_failure()
            log.error(
                f"  [red]✗ Failed:[/] {escape(self.track.label)} ({e})",
                exc_info=log.getEffectiveLevel() == logging.DEBUG,
            )
            raise ProcessingError(f"Could not process '{self.track.label}': {e}") from e

        await session.collector.append(result)
        await session.stats.record_processed(result.size)
        if session.writer is not None:
            try:
                await session.writer.write(result)
            except OSError as e:
                log.error(f"  [red]✗ Could not save {escape(result.file_name)}: {e}[/red]")
        self.results_appended += 1
        self.state = TaskState.DONE
        log.info(f"  [green]✓ Done:[/] {escape(result.file_name)}")
        return result


class PlaylistSession:
    """
    Owns everything scoped to one playlist: the resolved sources, one
    ``TrackTask`` per resolved track, the result collector and, when given, a
    writer that saves each result to disk as soon as it is produced.
    """

    def __init__(
        self,
        resolver: SourceResolver,
        fetcher: Downloader,
        selector: ModelSelector,
        invoker: InferenceInvoker,
        collector: Optional[ResultCollector] = None,
        archiver: Optional[ResultArchiver] = None,
        max_concurrent: Optional[int] = None,
        stats: Optional[SessionStats] = None,
        writer: Optional[ResultWriter] = None,
    ):
        self.resolver = resolver
        self.fetcher = fetcher
        self.selector = selector
        self.invoker = invoker
        self.collector = collector if collector is not None else ResultCollector()
        self.archiver = archiver or ResultArchiver()
        self.stats = stats or SessionStats()
        self.writer = writer
        self._semaphore = asyncio.Semaphore(max_concurrent) if max_concurrent else None
        self.sources: List[ResolvedSource] = []
        self.tasks: Dict[int, TrackTask] = {}
        self._on_resolved: Optional[Callable[[ResolvedSource], None]] = None

    async def _resolve_one(self, index: int, track: Track) -> ResolvedSource:
        async with AsyncExitStack() as stack:
            if self._semaphore:
                await stack.enter_async_context(self._semaphore)
            try:
                source = await self.resolver.resolve_track(track)
            except Exception as e:
                log.error(
                    f"[red]✗ Resolution error for '{escape(track.label)}': {e}[/red]",
                    exc_info=log.getEffectiveLevel() == logging.DEBUG,
                )
                source = ResolvedSource(track=track)
        self._publish(index, source)
        return source

    def _publish(self, index: int, source: ResolvedSource) -> None:
        self.sources[index] = source
        self.stats.record_resolution(source.provider if source.resolved else None)
        if source.resolved:
            self.tasks[source.track.position] = TrackTask(source, self)
        if self._on_resolved is not None:
            self._on_resolved(source)

    async def process_playlist(
        self,
        tracks: Sequence[Track],
        on_resolved: Optional[Callable[[ResolvedSource], None]] = None,
    ) -> List[ResolvedSource]:
        """
        Resolves every track concurrently. Each track's slot in ``sources``, and
        its task when it resolved, is filled in as soon as that track finishes,
        so a slow track never holds back the others. ``on_resolved`` is called
        once per track in completion order.

        Returns:
            The resolved sources in the same order as ``tracks``.
        """
        log.info(f"Searching legal sources for {len(tracks)} tracks...")
        self.sources = [ResolvedSource(track=track) for track in tracks]
        self.tasks = {}
        self._on_resolved = on_resolved
        try:
            await asyncio.gather(
                *(self._resolve_one(i, track) for i, track in enumerate(tracks))
            )
        finally:
            self._on_resolved = None

        log.info(
            f"Found sources for {len(self.tasks)}/{len(self.sources)} tracks."
        )
        return list(self.sources)

    def task_for(self, position: int) -> TrackTask:
        """Returns the task for the track at ``position`` in the playlist."""
        try:
            return self.tasks[position]
        except KeyError:
            raise PlaylistError(
                f"Track #{position + 1} has no legal source to process."
            ) from None

    async def process_all(
        self, quality: str = "auto", positions: Optional[Iterable[int]] = None
    ) -> List[Union[ProcessedResult, BaseException]]:
        """
        Triggers the selected tasks (all by default) concurrently. One task
        failing does not stop the others; each outcome is returned in order.
        """
        selected = (
            list(self.tasks.values())
            if positions is None
            else [self.task_for(p) for p in positions]
        )
        return await asyncio.gather(
            *(task.trigger(quality) for task in selected), return_exceptions=True
        )

    async def archive_all(self, destination: Path) -> Optional[Path]:
        """Archives every collected result; returns None when nothing was collected."""
        return await self.archiver.archive(self.collector, destination)
