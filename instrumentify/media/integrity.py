"""
Sanity checks for fetched audio before it is handed to the model.
"""

import io
import logging
from dataclasses import dataclass
from typing import Optional

from mutagen import File as MutagenFile
from mutagen import MutagenError

from instrumentify.exceptions import InvalidAudioError

log = logging.getLogger(__name__)

# Leading bytes of responses that are clearly not audio (error pages, JSON)
_NON_AUDIO_PREFIXES = (b"<", b"{", b"[")


@dataclass(frozen=True)
class AudioInfo:
    format_name: str
    length: float


def read_audio_info(data: bytes) -> Optional[AudioInfo]:
    """
    Identifies the container with mutagen. Returns None when mutagen does not
    recognise the format, which is not by itself a failure.
    """
    try:
        audio = MutagenFile(io.BytesIO(data))
    except MutagenError as e:
        log.debug(f"mutagen could not parse fetched audio: {e}")
        return None
    if audio is None or audio.info is None:
        return None
    return AudioInfo(
        format_name=type(audio).__name__,
        length=float(getattr(audio.info, "length", 0.0) or 0.0),
    )


def ensure_audio(data: bytes) -> Optional[AudioInfo]:
    """
    Rejects payloads that are empty, look like text, or that mutagen
    recognises but reports as having no duration.
    """
    if not data:
        raise InvalidAudioError("Downloaded source is empty.")
    if data.lstrip()[:1] in _NON_AUDIO_PREFIXES:
        raise InvalidAudioError("Downloaded source is a text document, not audio.")

    info = read_audio_info(data)
    if info is not None and info.length <= 0:
        raise InvalidAudioError(f"{info.format_name} stream has no duration.")
    if info is not None:
        log.debug(f"Fetched {info.format_name} audio ({info.length:.1f}s)")
    return info
