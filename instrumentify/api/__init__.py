"""
Playlist Source Layer.

This package handles communication with the Spotify Web API: the PKCE login
flow that yields a bearer token and the playlist endpoint that lists tracks.
"""

from .auth import SpotifyAuthenticator
from .client import SpotifyAPIClient
from .rate_limiter import AdaptiveRateLimiter

__all__ = ["AdaptiveRateLimiter", "SpotifyAPIClient", "SpotifyAuthenticator"]
