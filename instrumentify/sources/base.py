"""
Common behaviour for search providers.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional

import aiohttp

from instrumentify.exceptions import ProviderError
from instrumentify.models.track import ProviderCandidate, ProviderQuery

log = logging.getLogger(__name__)

CandidateParser = Callable[..., List[ProviderCandidate]]


class ProviderClient(ABC):
    """
    A search source that can return downloadable audio candidates.

    Subclasses implement ``search``; the helpers here turn every transport or
    parsing problem into ``ProviderError`` so the resolver can move on.
    """

    #: Short name used in logs and summaries.
    name: str = "provider"
    #: Whether the provider needs a credential that may be unavailable.
    requires_credential: bool = False

    def __init__(self, session: aiohttp.ClientSession):
        self._session = session

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"

    @abstractmethod
    async def search(self, query: ProviderQuery) -> List[ProviderCandidate]:
        """Runs a free-text search and returns zero or more candidates."""

    async def find(self, query: ProviderQuery) -> Optional[str]:
        """Returns the URL of the first downloadable candidate, or None."""
        for candidate in await self.search(query):
            if candidate.usable:
                return candidate.url
        return None

    async def _get_json(self, url: str) -> Any:
        try:
            async with self._session.get(url) as response:
                response.raise_for_status()
                return await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise ProviderError(f"{self.name} request failed: {e}") from e

    def _parse(
        self, parser: CandidateParser, payload: Any, *args: Any
    ) -> List[ProviderCandidate]:
        try:
            return parser(payload, *args)
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise ProviderError(f"{self.name} returned a malformed response: {e!r}") from e
