"""Tests for provider-ordered source resolution."""

import asyncio

from helpers import FakeProvider
from instrumentify.core.resolver import SourceResolver
from instrumentify.exceptions import CredentialUnavailableError, ProviderError
from instrumentify.models.track import ProviderCandidate, Track


def _candidate(url, downloadable=True):
    return ProviderCandidate(url=url, downloadable=downloadable)


class TestProviderPriority:
    def test_first_provider_with_downloadable_hit_wins(self):
        first = FakeProvider("First", results=[_candidate("https://first/a.mp3")])
        second = FakeProvider("Second", results=[_candidate("https://second/a.mp3")])
        resolver = SourceResolver([first, second])

        url = asyncio.run(resolver.resolve("Title", "Artist"))

        assert url == "https://first/a.mp3"
        assert second.calls == []

    def test_non_downloadable_hit_falls_through_to_next_provider(self):
        first = FakeProvider(
            "First", results=[_candidate("https://first/a.mp3", downloadable=False)]
        )
        second = FakeProvider("Second", results=[_candidate("https://second/a.mp3")])
        resolver = SourceResolver([first, second])

        url = asyncio.run(resolver.resolve("Title", "Artist"))

        assert url == "https://second/a.mp3"
        assert first.calls == ["Title"]
        assert second.calls == ["Title"]

    def test_first_usable_candidate_within_provider_is_used(self):
        provider = FakeProvider(
            "Only",
            results=[
                _candidate("https://x/locked.mp3", downloadable=False),
                _candidate(None),
                _candidate("https://x/open.mp3"),
            ],
        )
        resolver = SourceResolver([provider])

        assert asyncio.run(resolver.resolve("Title", "Artist")) == "https://x/open.mp3"

    def test_resolve_track_records_provider_name(self):
        provider = FakeProvider("Catalog", results=[_candidate("https://c/1.mp3")])
        track = Track(title="Title", artist="Artist", position=5)

        source = asyncio.run(SourceResolver([provider]).resolve_track(track))

        assert source.track is track
        assert source.source_url == "https://c/1.mp3"
        assert source.provider == "Catalog"
        assert source.resolved


class TestProviderFailures:
    def test_all_providers_failing_is_not_found(self):
        providers = [
            FakeProvider("Broken", error=ProviderError("HTTP 500")),
            FakeProvider("Empty", results=[]),
            FakeProvider("Also broken", error=ProviderError("bad json")),
        ]

        url = asyncio.run(SourceResolver(providers).resolve("Title", "Artist"))

        assert url is None

    def test_failing_provider_is_queried_once(self):
        broken = FakeProvider("Broken", error=ProviderError("timeout"))
        fallback = FakeProvider("Fallback", results=[_candidate("https://f/1.mp3")])

        url = asyncio.run(SourceResolver([broken, fallback]).resolve("Title", "Artist"))

        assert url == "https://f/1.mp3"
        assert broken.calls == ["Title"]

    def test_missing_credential_skips_provider(self):
        locked = FakeProvider(
            "SoundCloud",
            error=CredentialUnavailableError("no client_id"),
            requires_credential=True,
        )
        open_catalog = FakeProvider("ccMixter", results=[_candidate("https://cc/1.mp3")])

        source = asyncio.run(
            SourceResolver([locked, open_catalog]).resolve_track(
                Track(title="Title", artist="Artist")
            )
        )

        assert source.provider == "ccMixter"

    def test_unresolved_track_has_no_provider(self):
        source = asyncio.run(
            SourceResolver([FakeProvider("Empty")]).resolve_track(
                Track(title="Title", artist="Artist")
            )
        )

        assert not source.resolved
        assert source.source_url is None
        assert source.provider is None

    def test_unexpected_provider_error_moves_on(self):
        buggy = FakeProvider("Buggy", error=RuntimeError("bug"))
        fallback = FakeProvider("Fallback", results=[_candidate("https://f/2.mp3")])

        assert asyncio.run(SourceResolver([buggy]).resolve("Title", "Artist")) is None
        assert (
            asyncio.run(SourceResolver([buggy, fallback]).resolve("Title", "Artist"))
            == "https://f/2.mp3"
        )
