"""
Runs the vocal-removal model through onnxruntime.

The model is fetched once per URL into the model directory and its
InferenceSession is kept for the rest of the run. Audio is decoded with
soundfile, mixed down to a single channel and passed as a ``[1, n]`` float32
tensor; the first model output is written back out as a 16-bit WAV.
"""

import asyncio
import io
import logging
from collections import OrderedDict
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import numpy as np
import onnxruntime as ort
import soundfile as sf

from instrumentify.exceptions import InferenceError, InvalidAudioError
from instrumentify.media.downloader import Downloader

log = logging.getLogger(__name__)

_PREFERRED_PROVIDERS = (
    "CUDAExecutionProvider",
    "ROCMExecutionProvider",
    "CoreMLExecutionProvider",
    "DmlExecutionProvider",
    "CPUExecutionProvider",
)


def get_onnx_providers() -> list[str]:
    """Available execution providers, best first, always ending with the CPU."""
    available = set(ort.get_available_providers())
    providers = [p for p in _PREFERRED_PROVIDERS if p in available]
    if "CPUExecutionProvider" not in providers:
        providers.append("CPUExecutionProvider")
    return providers


def decode_audio(audio_bytes: bytes) -> tuple[np.ndarray, int]:
    """Decodes any soundfile-readable container into mono float32 samples."""
    try:
        samples, sample_rate = sf.read(
            io.BytesIO(audio_bytes), dtype="float32", always_2d=True
        )
    except (sf.SoundFileError, RuntimeError) as e:
        raise InvalidAudioError(f"Could not decode source audio: {e}") from e
    return samples.mean(axis=1).astype(np.float32), sample_rate


def encode_wav(samples: np.ndarray, sample_rate: int) -> bytes:
    buffer = io.BytesIO()
    sf.write(
        buffer,
        np.clip(samples, -1.0, 1.0),
        sample_rate,
        format="WAV",
        subtype="PCM_16",
    )
    return buffer.getvalue()


def model_file_name(model_url: str) -> str:
    name = Path(urlparse(model_url).path).name
    if not name:
        raise InferenceError(f"Model URL has no file name: {model_url}")
    return name


class InferenceInvoker:
    """Turns raw audio bytes into separated audio bytes using an ONNX model."""

    def __init__(
        self,
        model_dir: Path,
        downloader: Optional[Downloader] = None,
        max_cached_sessions: int = 2,
    ):
        self.model_dir = model_dir
        self.downloader = downloader or Downloader()
        self._sessions: OrderedDict[str, ort.InferenceSession] = OrderedDict()
        self._max_cached_sessions = max_cached_sessions
        self._model_locks: dict[str, asyncio.Lock] = {}
        self._locks_guard = asyncio.Lock()

    async def _get_model_lock(self, model_url: str) -> asyncio.Lock:
        async with self._locks_guard:
            return self._model_locks.setdefault(model_url, asyncio.Lock())

    async def _ensure_model_file(self, model_url: str) -> Path:
        path = self.model_dir / model_file_name(model_url)
        if path.is_file():
            return path
        self.model_dir.mkdir(parents=True, exist_ok=True)
        log.info(f"Downloading separation model [dim]{model_url}[/dim]...")
        try:
            await self.downloader.download_file(model_url, path)
        except Exception as e:
            raise InferenceError(f"Could not download model {model_url}: {e}") from e
        return path

    @staticmethod
    def _load_session(path: Path) -> ort.InferenceSession:
        try:
            return ort.InferenceSession(str(path), providers=get_onnx_providers())
        except Exception as e:
            raise InferenceError(f"Could not load model '{path.name}': {e}") from e

    async def get_session(self, model_url: str) -> ort.InferenceSession:
        """Returns the loaded session for ``model_url``, loading it on first use."""
        lock = await self._get_model_lock(model_url)
        async with lock:
            if model_url in self._sessions:
                self._sessions.move_to_end(model_url)
                return self._sessions[model_url]

            path = await self._ensure_model_file(model_url)
            session = await asyncio.to_thread(self._load_session, path)
            self._sessions[model_url] = session
            if len(self._sessions) > self._max_cached_sessions:
                evicted, _ = self._sessions.popitem(last=False)
                log.debug(f"Evicted model session {evicted}")
            return session

    @staticmethod
    def run_session(session: ort.InferenceSession, audio_bytes: bytes) -> bytes:
        samples, sample_rate = decode_audio(audio_bytes)
        tensor = samples.reshape(1, -1)
        input_name = session.get_inputs()[0].name
        try:
            outputs = session.run(None, {input_name: tensor})
        except Exception as e:
            raise InferenceError(f"Model execution failed: {e}") from e
        if not outputs:
            raise InferenceError("Model produced no output.")
        result = np.asarray(outputs[0], dtype=np.float32).reshape(-1)
        return encode_wav(result, sample_rate)

    async def infer(self, audio_bytes: bytes, model_url: str) -> bytes:
        session = await self.get_session(model_url)
        return await asyncio.to_thread(self.run_session, session, audio_bytes)
