"""
SoundCloud search, restricted to tracks the uploader marked downloadable.
"""

from typing import Any, List

import aiohttp

from instrumentify.exceptions import CredentialUnavailableError
from instrumentify.models.track import ProviderCandidate, ProviderQuery
from instrumentify.web.client_id_fetcher import SoundCloudCredentials

from .base import ProviderClient

SEARCH_URL = "https://api-v2.soundcloud.com/search/tracks"


def parse_search_response(payload: Any, client_id: str) -> List[ProviderCandidate]:
    """Maps ``collection`` entries to candidates; download URLs need the client_id appended."""
    candidates = []
    for item in payload["collection"]:
        download_url = item.get("download_url")
        candidates.append(
            ProviderCandidate(
                url=f"{download_url}?client_id={client_id}" if download_url else None,
                downloadable=bool(item.get("downloadable")),
            )
        )
    return candidates


class SoundCloudProvider(ProviderClient):
    name = "SoundCloud"
    requires_credential = True

    def __init__(
        self, session: aiohttp.ClientSession, credentials: SoundCloudCredentials
    ):
        super().__init__(session)
        self._credentials = credentials

    async def search(self, query: ProviderQuery) -> List[ProviderCandidate]:
        client_id = await self._credentials.get()
        if not client_id:
            raise CredentialUnavailableError(
                "No SoundCloud client_id configured or discoverable."
            )
        payload = await self._get_json(
            f"{SEARCH_URL}?q={query.encoded}&client_id={client_id}"
        )
        return self._parse(parse_search_response, payload, client_id)
