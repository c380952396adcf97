"""
Storage Layer.

This package handles the configuration file, the session's append-only
collection of processed results, the per-track WAV files and the ZIP archive
built from them.
"""

from .archiver import ResultArchiver
from .collector import ResultCollector
from .config_manager import ConfigManager
from .writer import ResultWriter

__all__ = ["ConfigManager", "ResultArchiver", "ResultCollector", "ResultWriter"]
