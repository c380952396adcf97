"""
Data Models Layer.

This package contains the dataclasses and Pydantic models that define the core
data structures used throughout the application, such as tracks, processed
results, configuration and session statistics.
"""

from .config import AppConfig
from .stats import SessionStats
from .track import ProcessedResult, ProviderCandidate, ProviderQuery, ResolvedSource, Track

__all__ = [
    "AppConfig",
    "ProcessedResult",
    "ProviderCandidate",
    "ProviderQuery",
    "ResolvedSource",
    "SessionStats",
    "Track",
]
