"""
Configuration management for spot-exporter.

This module handles loading, validating, and providing access to the
application configuration. Values come from an optional config.yaml and
are overlaid with environment variables (a .env file in the working
directory is loaded first), so the tool also runs from a bare .env
without any config file.

Environment Overrides:
    SPOTIFY_CLIENT_ID       -> spotify.client_id
    SPOTIFY_CLIENT_SECRET   -> spotify.client_secret
    REDIRECT_URI            -> spotify.redirect_uri
    SPOTIFY_ROOTLIST_TOKEN  -> folders.token

Example config.yaml:
    spotify:
      client_id: "your_client_id_here"
      client_secret: "your_client_secret_here"
      redirect_uri: "http://127.0.0.1:8888/callback"

    output:
      directory: "~/Spotify Library"

    export:
      collections: [liked, podcasts, artists, albums, playlists]
      page_size: 50

    folders:
      enabled: true
      token: null   # Bearer token for the unofficial rootlist endpoint
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from spot_exporter.core.exceptions import ConfigError


# Default configuration file name (looked up in current working directory)
CONFIG_FILENAME = "config.yaml"

DEFAULT_REDIRECT_URI = "http://127.0.0.1:8888/callback"

DEFAULT_SCOPES = (
    "user-library-read",
    "playlist-read-private",
    "playlist-read-collaborative",
    "user-follow-read",
)

DEFAULT_OUTPUT_DIRECTORY = "Spotify Library"

# Spotify documents 50 as the maximum page size for library endpoints
MAX_PAGE_SIZE = 50

DEFAULT_ROOTLIST_URL = (
    "https://spclient.wg.spotify.com/playlist/v2/user/{user_id}/rootlist"
)

# Kept in sync with CollectionType values in export.orchestrator
COLLECTION_NAMES = ("liked", "podcasts", "artists", "albums", "playlists")


@dataclass(frozen=True)
class SpotifyConfig:
    """
    Spotify application credentials and OAuth settings.

    Attributes:
        client_id: The Spotify application client ID.
        client_secret: The Spotify application client secret.
        redirect_uri: Callback URL registered in the Developer Dashboard.
                      The local listener binds to its host and port.
        scopes: OAuth scopes requested during login.
    """
    client_id: str
    client_secret: str
    redirect_uri: str
    scopes: tuple[str, ...]


@dataclass(frozen=True)
class OutputConfig:
    """
    Output directory configuration.

    Attributes:
        directory: Absolute root of the exported tree (~ expanded).
    """
    directory: Path


@dataclass(frozen=True)
class ExportConfig:
    """
    Export behavior configuration.

    Attributes:
        collections: Names of the enabled collection types, in config order.
                     The exporter always runs them in its fixed stage order.
        page_size: Items requested per page (1..50).
    """
    collections: tuple[str, ...]
    page_size: int


@dataclass(frozen=True)
class FoldersConfig:
    """
    Playlist folder reconstruction configuration.

    Attributes:
        enabled: Whether to query the rootlist endpoint at all.
        token: Bearer token for the rootlist endpoint, or None.
        url: Rootlist URL template with a {user_id} placeholder.
    """
    enabled: bool
    token: str | None
    url: str


@dataclass(frozen=True)
class Config:
    """
    Complete application configuration.

    Created by load_config() and treated as immutable.

    Example:
        config = load_config()
        print(f"Exporting to: {config.output.directory}")
    """
    spotify: SpotifyConfig
    output: OutputConfig
    export: ExportConfig
    folders: FoldersConfig


def load_config(config_path: Path | None = None, env_file: Path | None = None) -> Config:
    """
    Load and validate configuration from config.yaml and the environment.

    Args:
        config_path: Optional explicit path to a config file. When given,
                     the file must exist. When None, CWD/config.yaml is
                     used if present.
        env_file: Optional .env path. Defaults to python-dotenv's lookup.

    Returns:
        Config: A frozen dataclass containing all configuration values.

    Raises:
        ConfigError: If the file has invalid YAML, a section has the wrong
                     type, a value is invalid, or the Spotify credentials
                     are missing from both file and environment.

    Behavior:
        1. Load .env into the process environment (existing vars win)
        2. Read config file if available
        3. Overlay environment variables
        4. Validate and parse each section
    """
    load_dotenv(dotenv_path=env_file)

    explicit = config_path is not None
    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILENAME

    raw_config: dict[str, Any] = {}
    if config_path.exists():
        raw_config = _read_config_file(config_path)
    elif explicit:
        raise ConfigError(
            f"Configuration file not found: {config_path}",
            details={"file_path": str(config_path)}
        )

    for section in ("spotify", "output", "export", "folders"):
        value = raw_config.get(section)
        if value is None:
            raw_config[section] = {}
        elif not isinstance(value, dict):
            raise ConfigError(
                f"Section '{section}' must be a dictionary",
                details={"section": section}
            )

    _apply_environment(raw_config)

    return Config(
        spotify=_parse_spotify_config(raw_config["spotify"]),
        output=_parse_output_config(raw_config["output"]),
        export=_parse_export_config(raw_config["export"]),
        folders=_parse_folders_config(raw_config["folders"]),
    )


def _read_config_file(config_path: Path) -> dict[str, Any]:
    """Read and parse the YAML file into a dictionary."""
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            content = f.read()
    except IOError as e:
        raise ConfigError(
            f"Failed to read configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    try:
        raw_config = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML syntax in configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    # An empty file parses to None
    if raw_config is None:
        return {}

    if not isinstance(raw_config, dict):
        raise ConfigError(
            "Configuration file must contain a YAML dictionary",
            details={"file_path": str(config_path)}
        )

    return raw_config


def _apply_environment(raw_config: dict[str, Any]) -> None:
    """Overlay environment variables onto the raw config, in place."""
    overrides = {
        "SPOTIFY_CLIENT_ID": ("spotify", "client_id"),
        "SPOTIFY_CLIENT_SECRET": ("spotify", "client_secret"),
        "REDIRECT_URI": ("spotify", "redirect_uri"),
        "SPOTIFY_ROOTLIST_TOKEN": ("folders", "token"),
    }
    for env_name, (section, key) in overrides.items():
        value = os.environ.get(env_name)
        if value:
            raw_config[section][key] = value


def _parse_spotify_config(spotify_section: dict[str, Any]) -> SpotifyConfig:
    """
    Parse and validate the Spotify configuration section.

    Raises:
        ConfigError: If client_id or client_secret is missing or empty,
                     or scopes is neither a string nor a list of strings.
    """
    client_id = spotify_section.get("client_id", "")
    client_secret = spotify_section.get("client_secret", "")

    if not isinstance(client_id, str) or not client_id.strip():
        raise ConfigError(
            "'spotify.client_id' must be a non-empty string "
            "(or set SPOTIFY_CLIENT_ID)",
            details={"field": "spotify.client_id"}
        )

    if not isinstance(client_secret, str) or not client_secret.strip():
        raise ConfigError(
            "'spotify.client_secret' must be a non-empty string "
            "(or set SPOTIFY_CLIENT_SECRET)",
            details={"field": "spotify.client_secret"}
        )

    redirect_uri = spotify_section.get("redirect_uri") or DEFAULT_REDIRECT_URI
    if not isinstance(redirect_uri, str):
        raise ConfigError(
            "'spotify.redirect_uri' must be a string",
            details={"field": "spotify.redirect_uri"}
        )

    raw_scopes = spotify_section.get("scopes")
    if raw_scopes is None:
        scopes = DEFAULT_SCOPES
    elif isinstance(raw_scopes, str):
        scopes = tuple(raw_scopes.split())
    elif isinstance(raw_scopes, list) and all(isinstance(s, str) for s in raw_scopes):
        scopes = tuple(raw_scopes)
    else:
        raise ConfigError(
            "'spotify.scopes' must be a string or a list of strings",
            details={"field": "spotify.scopes"}
        )

    return SpotifyConfig(
        client_id=client_id.strip(),
        client_secret=client_secret.strip(),
        redirect_uri=redirect_uri.strip(),
        scopes=scopes
    )


def _parse_output_config(output_section: dict[str, Any]) -> OutputConfig:
    """
    Parse the output section.

    Expands ~ and converts to an absolute Path. Does NOT create the
    directory (that happens when the export starts).
    """
    directory = output_section.get("directory", DEFAULT_OUTPUT_DIRECTORY)

    if not isinstance(directory, str) or not directory.strip():
        raise ConfigError(
            "'output.directory' must be a non-empty string",
            details={"field": "output.directory"}
        )

    return OutputConfig(directory=Path(directory.strip()).expanduser().resolve())


def _parse_export_config(export_section: dict[str, Any]) -> ExportConfig:
    """
    Parse the export section, applying defaults.

    Raises:
        ConfigError: On unknown collection names or an invalid page size.
    """
    raw_collections = export_section.get("collections")
    if raw_collections is None:
        collections = COLLECTION_NAMES
    else:
        if not isinstance(raw_collections, list):
            raise ConfigError(
                "'export.collections' must be a list",
                details={"field": "export.collections"}
            )
        unknown = [c for c in raw_collections if c not in COLLECTION_NAMES]
        if unknown:
            raise ConfigError(
                f"Unknown collection type(s) in 'export.collections': {unknown}",
                details={"field": "export.collections", "allowed": list(COLLECTION_NAMES)}
            )
        collections = tuple(raw_collections)

    page_size = export_section.get("page_size", MAX_PAGE_SIZE)
    if isinstance(page_size, bool) or not isinstance(page_size, int) or not 1 <= page_size <= MAX_PAGE_SIZE:
        raise ConfigError(
            f"'export.page_size' must be an integer between 1 and {MAX_PAGE_SIZE}",
            details={"field": "export.page_size", "value": page_size}
        )

    return ExportConfig(collections=collections, page_size=page_size)


def _parse_folders_config(folders_section: dict[str, Any]) -> FoldersConfig:
    """Parse the folders section, applying defaults."""
    enabled = folders_section.get("enabled", True)
    if not isinstance(enabled, bool):
        raise ConfigError(
            "'folders.enabled' must be true or false",
            details={"field": "folders.enabled"}
        )

    token = folders_section.get("token")
    if token is not None and not isinstance(token, str):
        raise ConfigError(
            "'folders.token' must be a string or null",
            details={"field": "folders.token"}
        )

    url = folders_section.get("url") or DEFAULT_ROOTLIST_URL
    if "{user_id}" not in url:
        raise ConfigError(
            "'folders.url' must contain a {user_id} placeholder",
            details={"field": "folders.url", "value": url}
        )

    return FoldersConfig(
        enabled=enabled,
        token=token.strip() if token and token.strip() else None,
        url=url
    )
