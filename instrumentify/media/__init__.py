"""
Media Layer.

This package is responsible for fetching audio and model files over HTTP and
for sanity-checking fetched audio before it is handed to the model.
"""

from .downloader import Downloader
from .integrity import ensure_audio

__all__ = ["Downloader", "ensure_audio"]
