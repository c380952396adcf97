"""
Core application engine for resolving and processing playlists.

The `SourceResolver` finds a legal download for each track by asking the
search providers in priority order. The `PlaylistSession` fans resolution out
across a playlist and hands each resolved track to a `TrackTask`, which drives
fetch, separation and collection when triggered.
"""
