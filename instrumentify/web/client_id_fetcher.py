"""
Discovers a public SoundCloud ``client_id`` from the SoundCloud web app when
none is configured.
"""

import asyncio
import logging
import re
from typing import Optional
from urllib.parse import urljoin

import aiohttp
from bs4 import BeautifulSoup

log = logging.getLogger(__name__)

_HOME_URL = "https://soundcloud.com/"
_CLIENT_ID_REGEX = re.compile(r'client_id\s*[:=]\s*"(?P<client_id>\w+)"')
_MAX_ASSET_SCRIPTS = 8
_FETCH_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, UnicodeDecodeError)


class ClientIdFetcher:
    """
    Fetches the SoundCloud home page and, if needed, its asset scripts, and
    extracts the first ``client_id`` literal found.
    """

    def __init__(self, session: Optional[aiohttp.ClientSession] = None):
        self._session = session

    @staticmethod
    def extract_client_id(text: str) -> Optional[str]:
        """Returns the ``client_id`` embedded in a page or script, if any."""
        match = _CLIENT_ID_REGEX.search(text)
        return match.group("client_id") if match else None

    @staticmethod
    def extract_script_urls(page_html: str, base_url: str = _HOME_URL) -> list[str]:
        """Lists absolute ``<script src>`` URLs, last first (the app bundle loads last)."""
        soup = BeautifulSoup(page_html, "html.parser")
        urls = [urljoin(base_url, tag["src"]) for tag in soup.find_all("script", src=True)]
        return list(reversed(urls))

    async def _get_text(self, session: aiohttp.ClientSession, url: str) -> str:
        async with session.get(url) as response:
            response.raise_for_status()
            return await response.text()

    async def fetch(self) -> Optional[str]:
        """
        Attempts discovery once. An unreadable asset script is skipped; if the
        home page itself cannot be read the result is None, which only means the
        provider gets skipped.
        """
        session = self._session
        owns_session = session is None
        if owns_session:
            session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=20, connect=10)
            )
        try:
            page_html = await self._get_text(session, _HOME_URL)
            if client_id := self.extract_client_id(page_html):
                log.debug(f"Found SoundCloud client_id on home page: {client_id[:6]}...")
                return client_id

            for script_url in self.extract_script_urls(page_html)[:_MAX_ASSET_SCRIPTS]:
                try:
                    script = await self._get_text(session, script_url)
                except _FETCH_ERRORS as e:
                    log.debug(f"Skipping unreadable script {script_url}: {e}")
                    continue
                if client_id := self.extract_client_id(script):
                    log.debug(f"Found SoundCloud client_id in {script_url}")
                    return client_id

            log.debug("No SoundCloud client_id found on the public pages.")
            return None
        except _FETCH_ERRORS as e:
            log.debug(f"SoundCloud client_id discovery failed: {e}")
            return None
        finally:
            if owns_session:
                await session.close()


class SoundCloudCredentials:
    """
    Credential provider: the configured value, else best-effort discovery,
    else None.

    Discovery runs again on every lookup unless ``cache_discovered`` is set, in
    which case the first discovered value is kept for the session.
    """

    def __init__(
        self,
        configured: str = "",
        fetcher: Optional[ClientIdFetcher] = None,
        cache_discovered: bool = False,
    ):
        self._configured = configured
        self._fetcher = fetcher or ClientIdFetcher()
        self._cache_discovered = cache_discovered
        self._discovered: Optional[str] = None
        self._lock = asyncio.Lock()

    async def get(self) -> Optional[str]:
        if self._configured:
            return self._configured
        if not self._cache_discovered:
            return await self._fetcher.fetch()
        async with self._lock:
            if self._discovered is None:
                self._discovered = await self._fetcher.fetch()
            return self._discovered
