"""
Instrumentify: turn a playlist into a bundle of instrumental tracks.
"""

__version__ = "0.3.0"
