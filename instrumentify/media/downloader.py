"""
Handles downloading source audio into memory and model files onto disk, with
retries over a shared connection pool.
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import Optional

import aiofiles
import aiohttp

log = logging.getLogger(__name__)

_connection_pool: aiohttp.ClientSession | None = None
_pool_lock = asyncio.Lock()


async def get_connection_pool(max_workers: int = 4) -> aiohttp.ClientSession:
    """
    Gets or creates the shared aiohttp ClientSession used for downloads.

    Args:
        max_workers: Maximum concurrent connections per host.
    """
    global _connection_pool
    async with _pool_lock:
        if _connection_pool and not _connection_pool.closed:
            return _connection_pool

        connector = aiohttp.TCPConnector(
            limit=max_workers * 2,
            limit_per_host=max_workers,
            ttl_dns_cache=600,
            enable_cleanup_closed=True,
        )
        _connection_pool = aiohttp.ClientSession(
            connector=connector,
            timeout=aiohttp.ClientTimeout(total=None, sock_connect=15, sock_read=90),
        )
        log.debug(f"Created download pool with limit_per_host={max_workers}")

    return _connection_pool


async def close_connection_pool() -> None:
    """Closes the shared connection pool."""
    global _connection_pool
    async with _pool_lock:
        if _connection_pool and not _connection_pool.closed:
            await _connection_pool.close()
            _connection_pool = None
            log.debug("Shared downloader connection pool closed.")


class Downloader:
    """Fetches URLs with retry and exponential back-off."""

    CHUNK_SIZE = 262144  # 256 KB

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.5,
        max_workers: int = 4,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_workers = max_workers
        self._session = session

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is not None:
            return self._session
        return await get_connection_pool(self.max_workers)

    async def _with_retries(self, description: str, operation):
        last_exception: Exception | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await operation(await self._get_session())
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_exception = e
                log.debug(
                    f"Download attempt {attempt}/{self.max_attempts} for "
                    f"'{description}' failed: {e}."
                )
                if attempt < self.max_attempts:
                    await asyncio.sleep(self.base_delay * (2 ** (attempt - 1)))
        raise last_exception

    async def fetch_bytes(self, url: str) -> bytes:
        """Downloads ``url`` fully into memory."""

        async def _fetch(session: aiohttp.ClientSession) -> bytes:
            async with session.get(url, allow_redirects=True) as response:
                response.raise_for_status()
                return await response.read()

        data = await self._with_retries(url, _fetch)
        log.debug(f"Fetched {len(data)} bytes from {url}")
        return data

    async def download_file(self, url: str, destination_path: Path) -> None:
        """
        Streams ``url`` to ``destination_path``. The file is written under a
        temporary name and renamed only once complete.
        """
        temp_path = destination_path.with_suffix(destination_path.suffix + ".part")

        async def _download(session: aiohttp.ClientSession) -> None:
            async with session.get(url, allow_redirects=True) as response:
                response.raise_for_status()
                async with aiofiles.open(temp_path, "wb") as f:
                    async for chunk in response.content.iter_chunked(self.CHUNK_SIZE):
                        await f.write(chunk)

        try:
            await self._with_retries(destination_path.name, _download)
            os.replace(temp_path, destination_path)
        finally:
            if temp_path.exists():
                try:
                    os.remove(temp_path)
                except OSError:
                    pass
