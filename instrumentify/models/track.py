"""
Immutable records that flow through the resolution and processing pipeline.
"""

from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

from pathvalidate import sanitize_filename


@dataclass(frozen=True)
class Track:
    """A playlist entry. Its identity is its position in the playlist response."""

    title: str
    artist: str
    position: int = 0
    album: Optional[str] = None
    duration_ms: Optional[int] = None

    @property
    def label(self) -> str:
        return f"{self.artist} - {self.title}"


@dataclass(frozen=True)
class ProviderQuery:
    """Free-text search built from a track's artist and title."""

    title: str
    artist: str

    @property
    def text(self) -> str:
        return f"{self.artist} {self.title}"

    @property
    def encoded(self) -> str:
        return quote(self.text, safe="")


@dataclass(frozen=True)
class ProviderCandidate:
    """The only two fields the pipeline reads from a provider search hit."""

    url: Optional[str]
    downloadable: bool = True

    @property
    def usable(self) -> bool:
        """A candidate counts only when flagged downloadable with a non-empty string URL."""
        return (
            self.downloadable
            and isinstance(self.url, str)
            and bool(self.url.strip())
        )


@dataclass(frozen=True)
class ResolvedSource:
    """Outcome of resolving one track: a source URL, or None when nothing was found."""

    track: Track
    source_url: Optional[str] = None
    provider: Optional[str] = None

    @property
    def resolved(self) -> bool:
        return self.source_url is not None


@dataclass(frozen=True)
class ProcessedResult:
    """Separated audio for one track, ready to be archived."""

    file_name: str
    audio_bytes: bytes

    @classmethod
    def for_track(cls, track: Track, audio_bytes: bytes) -> "ProcessedResult":
        name = sanitize_filename(
            f"{track.artist} - {track.title} (Instrumental).wav", platform="universal"
        )
        return cls(file_name=name, audio_bytes=audio_bytes)

    @property
    def size(self) -> int:
        return len(self.audio_bytes)
