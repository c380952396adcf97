"""
Search Provider Layer.

Each module wraps one external catalog behind the same "find a downloadable
audio URL for (title, artist)" contract. ``default_providers`` returns them in
the fixed priority order used by the resolver.
"""

from typing import List

import aiohttp

from instrumentify.web.client_id_fetcher import SoundCloudCredentials

from .base import ProviderClient
from .catalogs import CcMixterProvider, FreeMusicArchiveProvider, JamendoProvider
from .soundcloud import SoundCloudProvider


def default_providers(
    session: aiohttp.ClientSession,
    soundcloud_credentials: SoundCloudCredentials,
    jamendo_client_id: str = "",
) -> List[ProviderClient]:
    """Builds the provider list in priority order."""
    return [
        SoundCloudProvider(session, soundcloud_credentials),
        JamendoProvider(session, jamendo_client_id),
        CcMixterProvider(session),
        FreeMusicArchiveProvider(session),
    ]


__all__ = [
    "CcMixterProvider",
    "FreeMusicArchiveProvider",
    "JamendoProvider",
    "ProviderClient",
    "SoundCloudProvider",
    "default_providers",
]
