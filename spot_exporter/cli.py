"""
Command-line interface for spot-exporter.

This module implements the CLI using Click, with rich-click for colored
help output. It is the hosting shell around the export: it loads the
configuration, sets up logging, waits for one successful login, runs the
exporter once and turns the outcome into an exit code.

Commands:
    spot-export                          Log in and export everything
    spot-export --only albums            Export only the given collection(s)
    spot-export --skip podcasts          Export everything except these
    spot-export --no-folders             Write all playlists at Playlists/ root
    spot-export --access-token <token>   Skip the browser login

Exit Codes:
    0    Export completed
    1    Configuration error or unexpected error
    3    Spotify API or authentication error
    4    Other export error (e.g. a file could not be written)
    130  Interrupted by user
"""

import sys
from pathlib import Path
from typing import Optional

import rich_click as click

click.rich_click.USE_RICH_MARKUP = True
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.MAX_WIDTH = 100
click.rich_click.OPTION_GROUPS = {
    "cli": [
        {
            "name": "Selection",
            "options": ["--only", "--skip", "--no-folders"],
        },
        {
            "name": "Locations",
            "options": ["--config", "--output"],
        },
        {
            "name": "Authentication",
            "options": ["--access-token", "--no-browser"],
        },
        {
            "name": "Info",
            "options": ["--verbose", "--version", "--help"],
        },
    ],
}

from spot_exporter import __version__
from spot_exporter.core import (
    AuthenticationError,
    Config,
    ConfigError,
    SpotExporterError,
    SpotifyError,
    get_logger,
    load_config,
    setup_logging,
    shutdown_logging,
)
from spot_exporter.core.config import COLLECTION_NAMES
from spot_exporter.export import CollectionType, ExportResult, export_library
from spot_exporter.spotify import (
    EMPTY_FOLDER_MAP,
    RootlistClient,
    SpotifyAuthenticator,
    SpotifyClient,
    SpotifySession,
    resolve_folder_map,
    wait_for_session,
)

logger = get_logger(__name__)


@click.command()
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    metavar="<config.yaml>",
    help="Configuration file (default: ./config.yaml if present)"
)
@click.option(
    "--output",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    metavar="<dir>",
    help="Export root directory (overrides output.directory)"
)
@click.option(
    "--only",
    type=click.Choice(COLLECTION_NAMES),
    multiple=True,
    help="Export only this collection (repeatable)"
)
@click.option(
    "--skip",
    type=click.Choice(COLLECTION_NAMES),
    multiple=True,
    help="Do not export this collection (repeatable)"
)
@click.option(
    "--no-folders",
    is_flag=True,
    help="Do not reconstruct playlist folders"
)
@click.option(
    "--access-token",
    envvar="SPOTIFY_ACCESS_TOKEN",
    default=None,
    metavar="<token>",
    help="Use this Web API access token instead of logging in"
)
@click.option(
    "--no-browser",
    is_flag=True,
    help="Do not open the login page automatically"
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Show debug messages on the console"
)
@click.version_option(__version__, "--version", prog_name="spot-exporter")
def cli(
    config_path: Optional[Path],
    output: Optional[Path],
    only: tuple[str, ...],
    skip: tuple[str, ...],
    no_folders: bool,
    access_token: Optional[str],
    no_browser: bool,
    verbose: bool
) -> None:
    """
    spot-exporter: Export your Spotify library to JSON files.

    Writes Liked Songs, podcasts, followed artists, saved albums and
    playlists (inside their folders) to a directory tree of JSON documents.

    \b
    BASIC USAGE:
        spot-export                              # Log in, export everything
        spot-export --only albums --only playlists
        spot-export --skip podcasts --no-folders
    """
    if only and skip:
        raise click.UsageError("Cannot use both --only and --skip")

    options = {
        "config_path": config_path,
        "output": output,
        "only": only,
        "skip": skip,
        "no_folders": no_folders,
        "access_token": access_token,
        "no_browser": no_browser,
        "verbose": verbose,
    }
    sys.exit(_run_export(options))


def _run_export(options: dict) -> int:
    """
    Execute the export workflow based on CLI options.

    1. Load configuration
    2. Set up logging
    3. Obtain a session (login listener or --access-token)
    4. Run the exporter once
    5. Report results

    Returns:
        Process exit code.
    """
    try:
        config = load_config(options["config_path"])
    except ConfigError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        return 1

    output_dir = (options["output"] or config.output.directory).expanduser().resolve()

    try:
        setup_logging(output_dir, verbose=options["verbose"])
        logger.info(f"spot-exporter {__version__} starting")
        logger.info(f"Exporting to: {output_dir}")

        collections = _select_collections(config, options["only"], options["skip"])
        if not collections:
            logger.warning("No collections selected; nothing to export")
            return 0

        session = _obtain_session(config, options["access_token"], options["no_browser"])
        client = SpotifyClient(session)

        folder_map_provider = None
        if CollectionType.PLAYLISTS in collections:
            folder_map_provider = _folder_map_provider(config, client, options["no_folders"])

        result = export_library(
            client,
            output_dir,
            collections=collections,
            folder_map_provider=folder_map_provider,
            page_size=config.export.page_size
        )
        _print_summary(result)
        logger.info("All done! Your Spotify library has been saved.")
        return 0

    except AuthenticationError as e:
        click.echo(f"Authentication error: {e.message}", err=True)
        logger.error(f"Authentication error: {e.message}", exc_info=True)
        return 3

    except SpotifyError as e:
        click.echo(f"Spotify error: {e.message}", err=True)
        if e.is_rate_limit and e.retry_after is not None:
            click.echo(f"Spotify asked to retry after {e.retry_after} seconds", err=True)
            logger.error(f"Rate limited; retry after {e.retry_after} seconds")
        if e.is_auth_error:
            click.echo("The access token was rejected; log in again", err=True)
        logger.error(f"Spotify error: {e.message}", exc_info=True)
        return 3

    except SpotExporterError as e:
        click.echo(f"Error: {e.message}", err=True)
        logger.error(f"Error: {e.message}", exc_info=True)
        return 4

    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        logger.info("Interrupted by user")
        return 130

    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        logger.exception("Unexpected error")
        return 1

    finally:
        shutdown_logging()


def _select_collections(
    config: Config,
    only: tuple[str, ...],
    skip: tuple[str, ...]
) -> set[CollectionType]:
    """Combine export.collections with --only / --skip."""
    names = set(only) if only else set(config.export.collections)
    names -= set(skip)
    return {CollectionType(name) for name in names}


def _obtain_session(config: Config, access_token: Optional[str], no_browser: bool) -> SpotifySession:
    """Use the explicit token if given, otherwise wait for a browser login."""
    if access_token:
        logger.info("Using access token from command line / environment")
        return SpotifySession(access_token=access_token)

    authenticator = SpotifyAuthenticator(config.spotify)
    return wait_for_session(authenticator, open_browser=not no_browser)


def _folder_map_provider(config: Config, client: SpotifyClient, no_folders: bool):
    """
    Build the callable the exporter uses to resolve playlist folders.

    Returns None (all playlists at the root) when folders are disabled or
    no rootlist token is configured. The provider itself degrades to an
    empty folder map when the user id cannot be looked up.
    """
    if no_folders or not config.folders.enabled:
        logger.info("Playlist folders disabled")
        return None

    if not config.folders.token:
        logger.warning(
            "No rootlist token configured (folders.token / SPOTIFY_ROOTLIST_TOKEN); "
            "playlists will be written without folders"
        )
        return None

    rootlist_client = RootlistClient(config.folders.token, config.folders.url)

    def provider():
        try:
            user_id = client.current_user_id()
        except SpotifyError as e:
            logger.warning(
                f"Could not look up the current user ({e.message}); "
                "playlists will be written without folders"
            )
            logger.debug(f"User lookup error details: {e.details}")
            return EMPTY_FOLDER_MAP
        return resolve_folder_map(rootlist_client, user_id)

    return provider


def _print_summary(result: ExportResult) -> None:
    logger.info(f"Exported {result.total} files ({result.summary()})")


if __name__ == "__main__":
    cli()
