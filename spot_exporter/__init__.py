"""
spot-exporter: Export a Spotify library to a tree of JSON files.

This package logs in to Spotify once, then exports the user's library
collection by collection into a deterministic directory layout:

    <root>/Playlists/Liked Songs.json
    <root>/Playlists/<folder>/.../<Playlist Name>.json
    <root>/Podcasts/<Show Name>/show_info.json
    <root>/Artists/<Artist Name>.json
    <root>/Albums/<Artists> - <Album Title>/album_info.json

Architecture:
    STAGE 1 Liked Songs    saved tracks -> one synthesized playlist file
    STAGE 2 Podcasts       saved shows -> one directory per show
    STAGE 3 Artists        followed artists (cursor pagination) -> flat files
    STAGE 4 Albums         saved albums -> one directory per album
    STAGE 5 Playlists      folder map first, then each playlist and its tracks

Modules:
    core/       - Configuration, logging, exceptions
    spotify/    - OAuth login, API client, pagination, models, folder tree
    export/     - Entity projection and stage orchestration
    utils/      - Filename sanitization and JSON writing
    cli.py      - Command-line interface

Usage:
    Command Line:
        spot-export
        spot-export --only albums --only playlists
        spot-export --access-token "$TOKEN" --no-folders

    Python API:
        from spot_exporter.core import load_config, setup_logging
        from spot_exporter.spotify import SpotifyClient, SpotifySession
        from spot_exporter.export import export_library

        config = load_config()
        setup_logging(config.output.directory)
        client = SpotifyClient(SpotifySession(access_token=token))
        result = export_library(client, config.output.directory)

Dependencies:
    - spotipy: Spotify Web API and OAuth
    - requests: rootlist (playlist folders) endpoint
    - click / rich-click: CLI
    - tqdm: Progress bars
    - pyyaml: Configuration file parsing
    - python-dotenv: .env credentials
"""

__version__ = "0.1.0"
__author__ = "spot-exporter"
__license__ = "MIT"

from spot_exporter.core import (
    Config,
    ConfigError,
    ExportError,
    FolderTreeError,
    SpotExporterError,
    SpotifyError,
    get_logger,
    load_config,
    setup_logging,
)
from spot_exporter.export import CollectionType, ExportResult, LibraryExporter, export_library
from spot_exporter.spotify import SpotifyClient, SpotifySession

__all__ = [
    # Version
    "__version__",
    # Core
    "Config",
    "load_config",
    "setup_logging",
    "get_logger",
    # Exceptions
    "SpotExporterError",
    "ConfigError",
    "SpotifyError",
    "FolderTreeError",
    "ExportError",
    # Export
    "CollectionType",
    "ExportResult",
    "LibraryExporter",
    "export_library",
    "SpotifyClient",
    "SpotifySession",
]
