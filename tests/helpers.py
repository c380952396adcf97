"""Shared fakes for the test suite."""

import asyncio
import io
from types import SimpleNamespace
from typing import Any, Dict, Iterable, List, Optional
from unittest.mock import Mock

import aiohttp
import numpy as np
import soundfile as sf

from instrumentify.models.track import ProviderCandidate, ProviderQuery
from instrumentify.sources.base import ProviderClient


def make_wav(seconds: float = 0.25, sample_rate: int = 8000, channels: int = 2) -> bytes:
    """A short stereo sine tone encoded as 16-bit WAV."""
    t = np.linspace(0, seconds, int(sample_rate * seconds), endpoint=False)
    tone = (0.3 * np.sin(2 * np.pi * 440 * t)).astype(np.float32)
    data = np.stack([tone] * channels, axis=1)
    buffer = io.BytesIO()
    sf.write(buffer, data, sample_rate, format="WAV", subtype="PCM_16")
    return buffer.getvalue()


class FakeProvider(ProviderClient):
    """
    In-memory provider. ``results`` is either a list returned for every query
    or a dict keyed by track title.
    """

    def __init__(
        self,
        name: str,
        results: Any = None,
        error: Optional[Exception] = None,
        delays: Optional[Dict[str, float]] = None,
        hang_titles: Iterable[str] = (),
        requires_credential: bool = False,
    ):
        super().__init__(session=None)
        self.name = name
        self.requires_credential = requires_credential
        self._results = results if results is not None else []
        self._error = error
        self._delays = delays or {}
        self._hang_titles = set(hang_titles)
        self.calls: List[str] = []

    async def search(self, query: ProviderQuery) -> List[ProviderCandidate]:
        self.calls.append(query.title)
        if query.title in self._hang_titles:
            await asyncio.Event().wait()
        if delay := self._delays.get(query.title):
            await asyncio.sleep(delay)
        if self._error is not None:
            raise self._error
        if isinstance(self._results, dict):
            return list(self._results.get(query.title, []))
        return list(self._results)


class FakeResponse:
    def __init__(self, payload: Any = None, status: int = 200, text: str = "", json_error: bool = False):
        self._payload = payload
        self.status = status
        self._text = text
        self._json_error = json_error

    def raise_for_status(self) -> None:
        if self.status >= 400:
            raise aiohttp.ClientResponseError(
                request_info=Mock(), history=(), status=self.status
            )

    async def json(self, content_type=None) -> Any:
        if self._json_error:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload

    async def text(self) -> str:
        return self._text

    async def read(self) -> bytes:
        return self._text.encode()

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False


class FakeSession:
    """Maps URL prefixes to responses; unknown URLs raise a connection error."""

    def __init__(self, routes: Dict[str, FakeResponse]):
        self.routes = routes
        self.urls: List[str] = []

    def get(self, url: str, **kwargs) -> FakeResponse:
        self.urls.append(url)
        for prefix, response in self.routes.items():
            if url.startswith(prefix):
                return response
        raise aiohttp.ClientConnectionError(f"no route for {url}")


class FakeFetcher:
    def __init__(self, payload: bytes, failing_urls: Iterable[str] = ()):
        self.payload = payload
        self.failing_urls = set(failing_urls)
        self.calls: List[str] = []

    async def fetch_bytes(self, url: str) -> bytes:
        self.calls.append(url)
        await asyncio.sleep(0)
        if url in self.failing_urls:
            raise aiohttp.ClientConnectionError(f"cannot reach {url}")
        return self.payload


class FakeInvoker:
    def __init__(self, output: bytes = b"RIFF-instrumental", error: Optional[Exception] = None):
        self.output = output
        self.error = error
        self.calls: List[str] = []

    async def infer(self, audio_bytes: bytes, model_url: str) -> bytes:
        self.calls.append(model_url)
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return self.output


class ScaleSession:
    """Stands in for an onnxruntime.InferenceSession: halves its input."""

    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.feeds: Dict[str, np.ndarray] = {}

    def get_inputs(self):
        return [SimpleNamespace(name="mix")]

    def run(self, output_names, feeds):
        if self.error is not None:
            raise self.error
        self.feeds = feeds
        return [feeds["mix"] * 0.5]
