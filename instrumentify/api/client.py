"""
Async client for the Spotify Web API, limited to reading playlist tracks.
"""

import logging
import time
from typing import Any, Dict, List, Optional

import aiohttp

from instrumentify.exceptions import AuthenticationError, PlaylistError
from instrumentify.models.track import Track
from instrumentify.utils.circuit_breaker import CircuitBreaker, CircuitBreakerError

from .rate_limiter import AdaptiveRateLimiter

log = logging.getLogger(__name__)


class SpotifyAPIClient:
    """
    Reads playlists with a bearer token obtained from the PKCE login.

    Features:
    - Adaptive rate limiting
    - Circuit breaker for API resilience
    - A single shared aiohttp session
    """

    BASE_URL = "https://api.spotify.com/v1/"

    def __init__(self, token: str):
        """
        Args:
            token: Bearer access token. An empty token is rejected on first use,
                not here, so the client can be built before login.
        """
        self.token = token
        self._session: Optional[aiohttp.ClientSession] = None
        self._rate_limiter = AdaptiveRateLimiter()
        self._circuit_breaker = CircuitBreaker(
            "Spotify API", failure_threshold=5, recovery_timeout=60
        )

    async def _initialize_session(self) -> None:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={
                    "Authorization": f"Bearer {self.token}",
                    "Accept": "application/json",
                },
                timeout=aiohttp.ClientTimeout(total=30, connect=10),
            )

    async def close(self) -> None:
        """Gracefully closes the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "SpotifyAPIClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def api_call(self, endpoint: str, **params: Any) -> Dict[str, Any]:
        """
        Makes an authenticated GET call with rate limiting and circuit breaker.

        Raises:
            AuthenticationError: No token, or the token was rejected (401).
        """
        if not self.token:
            raise AuthenticationError("Please log in with Spotify first.")

        await self._initialize_session()
        try:
            async with self._circuit_breaker:
                await self._rate_limiter.acquire()
                start_time = time.monotonic()
                async with self._session.get(
                    self.BASE_URL + endpoint, params=params or None
                ) as r:
                    log.debug(
                        f"GET {endpoint} -> {r.status} "
                        f"({(time.monotonic() - start_time) * 1000:.0f} ms)"
                    )
                    if r.status == 401:
                        raise AuthenticationError(
                            "The Spotify access token is invalid or has expired."
                            " Run 'instrumentify login' again."
                        )
                    if r.status == 429:
                        retry_after = r.headers.get("Retry-After")
                        await self._rate_limiter.on_429(
                            float(retry_after) if retry_after else None
                        )
                    r.raise_for_status()
                    return await r.json()
        except CircuitBreakerError as e:
            log.error(f"[red]{e}[/red]")
            raise
        except aiohttp.ClientError as e:
            log.debug(f"API call to {endpoint} failed: {e}")
            raise

    async def fetch_playlist_tracks(self, playlist_id: str) -> List[Track]:
        """
        Lists the tracks of a playlist, in playlist order.

        Only the first page returned by the API is read. Entries whose ``track``
        is null (removed or local items) are skipped, but every kept track
        retains its index in the response as its position.
        """
        try:
            data = await self.api_call(f"playlists/{playlist_id}/tracks")
        except aiohttp.ClientResponseError as e:
            if e.status == 404:
                raise PlaylistError(f"Playlist '{playlist_id}' was not found.") from e
            raise PlaylistError(f"Could not read playlist '{playlist_id}': {e}") from e

        items = data.get("items")
        if not isinstance(items, list):
            raise PlaylistError("Playlist response did not contain a track list.")

        if data.get("next"):
            log.info(
                f"[dim]Playlist has more than {len(items)} tracks; "
                "only the first page is used.[/dim]"
            )

        tracks = []
        for position, item in enumerate(items):
            track = parse_track_item(item, position)
            if track is None:
                log.warning(f"[yellow]Skipping unreadable playlist entry #{position + 1}.[/yellow]")
                continue
            tracks.append(track)
        return tracks


def parse_track_item(item: Dict[str, Any], position: int) -> Optional[Track]:
    """Builds a Track from one playlist item, or None if the item has no track data."""
    track_meta = (item or {}).get("track")
    if not track_meta or not track_meta.get("name"):
        return None
    artists = track_meta.get("artists") or []
    artist = artists[0].get("name", "") if artists else ""
    return Track(
        title=track_meta["name"],
        artist=artist or "Unknown Artist",
        position=position,
        album=(track_meta.get("album") or {}).get("name"),
        duration_ms=track_meta.get("duration_ms"),
    )
