"""Tests for downloading and validating source audio."""

import asyncio
from unittest.mock import AsyncMock, patch

import aiohttp
import pytest

from helpers import FakeResponse
from instrumentify.exceptions import InvalidAudioError
from instrumentify.media.downloader import Downloader
from instrumentify.media.integrity import ensure_audio, read_audio_info


class TestEnsureAudio:
    def test_wav_is_accepted(self, wav_bytes):
        info = ensure_audio(wav_bytes)

        assert info is not None
        assert info.length == pytest.approx(0.25, abs=0.01)

    @pytest.mark.parametrize(
        "data",
        [b"", b"  <!DOCTYPE html><html></html>", b'{"error": "not found"}', b"[]"],
    )
    def test_rejects_empty_and_text(self, data):
        with pytest.raises(InvalidAudioError):
            ensure_audio(data)

    def test_unknown_binary_is_passed_through(self):
        assert read_audio_info(b"\x00\x01\x02\x03" * 64) is None
        assert ensure_audio(b"\x00\x01\x02\x03" * 64) is None


class SequenceSession:
    """Answers ``get`` with the given outcomes in order."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    def get(self, url, **kwargs):
        self.calls += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class TestDownloader:
    def test_fetch_bytes_retries_transient_errors(self):
        session = SequenceSession(
            aiohttp.ClientConnectionError("reset"), FakeResponse(text="audio")
        )
        downloader = Downloader(max_attempts=3, base_delay=0, session=session)

        assert asyncio.run(downloader.fetch_bytes("https://x/a.mp3")) == b"audio"
        assert session.calls == 2

    def test_fetch_bytes_gives_up(self):
        session = SequenceSession(
            aiohttp.ClientConnectionError("reset"),
            FakeResponse(status=503),
        )
        downloader = Downloader(max_attempts=2, base_delay=0, session=session)

        with pytest.raises(aiohttp.ClientResponseError):
            asyncio.run(downloader.fetch_bytes("https://x/a.mp3"))
        assert session.calls == 2

    def test_backoff_doubles(self):
        session = SequenceSession(
            asyncio.TimeoutError(), asyncio.TimeoutError(), FakeResponse(text="ok")
        )
        downloader = Downloader(max_attempts=3, base_delay=1.5, session=session)

        with patch(
            "instrumentify.media.downloader.asyncio.sleep", new_callable=AsyncMock
        ) as sleep:
            asyncio.run(downloader.fetch_bytes("https://x/a.mp3"))

        assert [c.args[0] for c in sleep.call_args_list] == [1.5, 3.0]
