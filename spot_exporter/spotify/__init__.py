"""
Spotify integration module for spot-exporter.

This module provides everything that talks to Spotify:
    - SpotifyAuthenticator, wait_for_session: OAuth login
    - SpotifyClient, SpotifySession: Web API client per collection
    - CollectionPage, drain_offset, drain_cursor: pagination engine
    - Exported* models: records written to disk
    - Folder tree parsing and the FolderMap resolver

Usage:
    from spot_exporter.spotify import (
        SpotifyAuthenticator,
        SpotifyClient,
        wait_for_session,
    )

    session = wait_for_session(SpotifyAuthenticator(config.spotify))
    client = SpotifyClient(session)
"""

from spot_exporter.spotify.auth import SpotifyAuthenticator, wait_for_session
from spot_exporter.spotify.client import SpotifyClient, SpotifySession
from spot_exporter.spotify.folders import (
    EMPTY_FOLDER_MAP,
    Folder,
    FolderMap,
    PlaylistRef,
    RootlistClient,
    build_folder_map,
    parse_folder_tree,
    resolve_folder_map,
)
from spot_exporter.spotify.models import (
    AlbumTrack,
    ExportedAlbum,
    ExportedArtist,
    ExportedPlaylist,
    ExportedShow,
    TrackSummary,
)
from spot_exporter.spotify.pagination import CollectionPage, drain_cursor, drain_offset

__all__ = [
    # Auth
    "SpotifyAuthenticator",
    "wait_for_session",
    # Client
    "SpotifyClient",
    "SpotifySession",
    # Pagination
    "CollectionPage",
    "drain_offset",
    "drain_cursor",
    # Models
    "TrackSummary",
    "AlbumTrack",
    "ExportedAlbum",
    "ExportedPlaylist",
    "ExportedShow",
    "ExportedArtist",
    # Folders
    "Folder",
    "PlaylistRef",
    "FolderMap",
    "EMPTY_FOLDER_MAP",
    "RootlistClient",
    "parse_folder_tree",
    "build_folder_map",
    "resolve_folder_map",
]
