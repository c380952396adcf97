"""
Royalty-free catalogs queried after SoundCloud: Jamendo, ccMixter and the
Free Music Archive. Everything they list is free to download, so each hit
counts as downloadable when it carries an audio URL.
"""

from typing import Any, List

import aiohttp

from instrumentify.exceptions import CredentialUnavailableError
from instrumentify.models.track import ProviderCandidate, ProviderQuery

from .base import ProviderClient


def parse_jamendo(payload: Any) -> List[ProviderCandidate]:
    return [ProviderCandidate(url=item.get("audio")) for item in payload["results"]]


def parse_ccmixter(payload: Any) -> List[ProviderCandidate]:
    candidates = []
    for upload in payload:
        url = upload.get("download_url") or upload.get("downloadUrl")
        if not url and upload.get("files"):
            url = upload["files"][0].get("download_url")
        candidates.append(ProviderCandidate(url=url))
    return candidates


def parse_fma(payload: Any) -> List[ProviderCandidate]:
    dataset = payload.get("dataset") or []
    return [ProviderCandidate(url=item.get("track_url")) for item in dataset]


class JamendoProvider(ProviderClient):
    name = "Jamendo"
    requires_credential = True

    SEARCH_URL = "https://api.jamendo.com/v3.0/tracks/"

    def __init__(self, session: aiohttp.ClientSession, client_id: str):
        super().__init__(session)
        self._client_id = client_id

    async def search(self, query: ProviderQuery) -> List[ProviderCandidate]:
        if not self._client_id:
            raise CredentialUnavailableError("No Jamendo client_id configured.")
        payload = await self._get_json(
            f"{self.SEARCH_URL}?client_id={self._client_id}"
            f"&format=json&limit=1&search={query.encoded}"
        )
        return self._parse(parse_jamendo, payload)


class CcMixterProvider(ProviderClient):
    name = "ccMixter"

    SEARCH_URL = "https://ccmixter.org/api/query"

    async def search(self, query: ProviderQuery) -> List[ProviderCandidate]:
        payload = await self._get_json(
            f"{self.SEARCH_URL}?f=json&q={query.encoded}&licenses=cc-by,cc-by-sa"
        )
        return self._parse(parse_ccmixter, payload)


class FreeMusicArchiveProvider(ProviderClient):
    name = "Free Music Archive"

    SEARCH_URL = "https://freemusicarchive.org/api/get/tracks.json"

    async def search(self, query: ProviderQuery) -> List[ProviderCandidate]:
        payload = await self._get_json(f"{self.SEARCH_URL}?track_title={query.encoded}")
        return self._parse(parse_fma, payload)
