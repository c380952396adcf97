"""
Web Scraping Layer.

This package contains modules for fetching and parsing public web pages,
primarily to discover provider credentials that are not configured.
"""

from .client_id_fetcher import ClientIdFetcher, SoundCloudCredentials

__all__ = ["ClientIdFetcher", "SoundCloudCredentials"]
