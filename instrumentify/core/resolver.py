"""
Resolves a track to a downloadable audio URL by querying search providers in
a fixed priority order.
"""

import logging
from typing import Optional, Sequence

from instrumentify.exceptions import CredentialUnavailableError, ProviderError
from instrumentify.models.track import ProviderQuery, ResolvedSource, Track
from instrumentify.sources.base import ProviderClient

log = logging.getLogger(__name__)


class SourceResolver:
    """
    Tries each provider in order and stops at the first one that yields a
    downloadable candidate. Provider failures move on to the next provider;
    running out of providers is a normal "not found" outcome.
    """

    def __init__(self, providers: Sequence[ProviderClient]):
        self.providers = list(providers)

    async def resolve(self, title: str, artist: str) -> Optional[str]:
        url, _ = await self._resolve(ProviderQuery(title=title, artist=artist))
        return url

    async def resolve_track(self, track: Track) -> ResolvedSource:
        url, provider = await self._resolve(
            ProviderQuery(title=track.title, artist=track.artist)
        )
        return ResolvedSource(track=track, source_url=url, provider=provider)

    async def _resolve(self, query: ProviderQuery) -> tuple[Optional[str], Optional[str]]:
        for provider in self.providers:
            try:
                url = await provider.find(query)
            except CredentialUnavailableError as e:
                log.debug(f"Skipping {provider.name}: {e}")
                continue
            except ProviderError as e:
                log.warning(f"[yellow]{provider.name} lookup failed for '{query.text}': {e}[/yellow]")
                continue
            except Exception as e:
                log.error(
                    f"[red]✗ {provider.name} raised an unexpected error for "
                    f"'{query.text}': {e}[/red]",
                    exc_info=True,
                )
                continue

            if url:
                log.debug(f"Resolved '{query.text}' via {provider.name}")
                return url, provider.name

        log.info(f"[dim]No legal source found for '{query.text}'.[/dim]")
        return None, None
