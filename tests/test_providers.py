"""Tests for the search providers and their response parsers."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from helpers import FakeResponse, FakeSession
from instrumentify.exceptions import CredentialUnavailableError, ProviderError
from instrumentify.models.track import ProviderQuery
from instrumentify.sources import (
    CcMixterProvider,
    FreeMusicArchiveProvider,
    JamendoProvider,
    SoundCloudProvider,
    default_providers,
)
from instrumentify.sources.catalogs import parse_ccmixter, parse_fma, parse_jamendo
from instrumentify.sources.soundcloud import SEARCH_URL, parse_search_response
from instrumentify.web.client_id_fetcher import SoundCloudCredentials

QUERY = ProviderQuery(title="Blue Monday", artist="New Order")


class TestParsers:
    def test_soundcloud_appends_client_id_and_keeps_flag(self):
        payload = {
            "collection": [
                {"download_url": "https://api.sc/tracks/1/download", "downloadable": False},
                {"download_url": "https://api.sc/tracks/2/download", "downloadable": True},
                {"downloadable": True},
            ]
        }

        candidates = parse_search_response(payload, "abc")

        assert [c.url for c in candidates] == [
            "https://api.sc/tracks/1/download?client_id=abc",
            "https://api.sc/tracks/2/download?client_id=abc",
            None,
        ]
        assert [c.usable for c in candidates] == [False, True, False]

    def test_jamendo_uses_audio_field(self):
        payload = {"results": [{"audio": "https://jamendo/1.mp3"}, {"name": "x"}]}

        candidates = parse_jamendo(payload)

        assert [c.url for c in candidates] == ["https://jamendo/1.mp3", None]
        assert candidates[0].usable

    def test_ccmixter_download_url_fallbacks(self):
        payload = [
            {"download_url": "https://cc/a.mp3"},
            {"downloadUrl": "https://cc/b.mp3"},
            {"files": [{"download_url": "https://cc/c.mp3"}]},
            {"upload_name": "nothing here"},
        ]

        urls = [c.url for c in parse_ccmixter(payload)]

        assert urls == ["https://cc/a.mp3", "https://cc/b.mp3", "https://cc/c.mp3", None]

    @pytest.mark.parametrize("value", [123, {"href": "https://j/1"}, ["https://j/1"], "  "])
    def test_non_string_urls_are_not_usable(self, value):
        candidates = parse_jamendo({"results": [{"audio": value}]})
        candidates += parse_fma({"dataset": [{"track_url": value}]})

        assert not any(c.usable for c in candidates)

    def test_fma_reads_dataset(self):
        assert [c.url for c in parse_fma({"dataset": [{"track_url": "https://fma/1"}]})] == [
            "https://fma/1"
        ]
        assert parse_fma({"dataset": None}) == []


class TestSoundCloudProvider:
    def test_search_url_carries_query_and_client_id(self):
        payload = {"collection": [{"download_url": "https://api.sc/d", "downloadable": True}]}
        session = FakeSession({SEARCH_URL: FakeResponse(payload)})
        provider = SoundCloudProvider(session, SoundCloudCredentials("cid"))

        url = asyncio.run(provider.find(QUERY))

        assert url == "https://api.sc/d?client_id=cid"
        assert session.urls == [f"{SEARCH_URL}?q=New%20Order%20Blue%20Monday&client_id=cid"]

    def test_missing_client_id_raises_credential_error(self):
        fetcher = AsyncMock()
        fetcher.fetch.return_value = None
        session = FakeSession({})
        provider = SoundCloudProvider(session, SoundCloudCredentials("", fetcher))

        with pytest.raises(CredentialUnavailableError):
            asyncio.run(provider.search(QUERY))
        assert session.urls == []

    def test_malformed_payload_is_provider_error(self):
        session = FakeSession({SEARCH_URL: FakeResponse({"unexpected": []})})
        provider = SoundCloudProvider(session, SoundCloudCredentials("cid"))

        with pytest.raises(ProviderError):
            asyncio.run(provider.search(QUERY))


class TestCatalogProviders:
    def test_jamendo_requires_client_id(self):
        provider = JamendoProvider(FakeSession({}), "")

        with pytest.raises(CredentialUnavailableError):
            asyncio.run(provider.search(QUERY))

    def test_jamendo_search(self):
        session = FakeSession(
            {JamendoProvider.SEARCH_URL: FakeResponse({"results": [{"audio": "https://j/1"}]})}
        )

        url = asyncio.run(JamendoProvider(session, "jid").find(QUERY))

        assert url == "https://j/1"
        assert "client_id=jid" in session.urls[0]
        assert "search=New%20Order%20Blue%20Monday" in session.urls[0]

    def test_http_error_is_provider_error(self):
        session = FakeSession({CcMixterProvider.SEARCH_URL: FakeResponse(status=503)})

        with pytest.raises(ProviderError):
            asyncio.run(CcMixterProvider(session).search(QUERY))

    def test_connection_error_is_provider_error(self):
        with pytest.raises(ProviderError):
            asyncio.run(FreeMusicArchiveProvider(FakeSession({})).search(QUERY))

    def test_invalid_json_is_provider_error(self):
        session = FakeSession(
            {FreeMusicArchiveProvider.SEARCH_URL: FakeResponse(json_error=True)}
        )

        with pytest.raises(ProviderError):
            asyncio.run(FreeMusicArchiveProvider(session).search(QUERY))

    def test_find_skips_malformed_urls(self):
        payload = [{"download_url": 5}, {"download_url": "https://cc/ok.mp3"}]
        session = FakeSession({CcMixterProvider.SEARCH_URL: FakeResponse(payload)})

        assert asyncio.run(CcMixterProvider(session).find(QUERY)) == "https://cc/ok.mp3"

    def test_empty_catalog_finds_nothing(self):
        session = FakeSession({CcMixterProvider.SEARCH_URL: FakeResponse([])})

        assert asyncio.run(CcMixterProvider(session).find(QUERY)) is None


def test_default_provider_order():
    providers = default_providers(FakeSession({}), SoundCloudCredentials("cid"), "jid")

    assert [p.name for p in providers] == [
        "SoundCloud",
        "Jamendo",
        "ccMixter",
        "Free Music Archive",
    ]
