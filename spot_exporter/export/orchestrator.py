"""
Library export orchestration.

LibraryExporter runs the enabled collection stages strictly one after
another, in a fixed order:

    LIKED_SONGS -> PODCASTS -> ARTISTS -> ALBUMS -> PLAYLISTS

Each stage:
    1. Drains its collection through the pagination engine
    2. Logs how many items it found
    3. Projects and writes each item, in API order
    4. Logs completion

Only one network request is ever in flight. Any error from a fetch or a
write propagates out of run() untouched; files written by earlier items
and stages stay on disk.

The Playlists stage asks the folder map provider for the FolderMap once,
before the playlist listing is fetched, and places each playlist file
under its resolved folder path.

Usage:
    exporter = LibraryExporter(client, output_dir, folder_map_provider=provider)
    result = exporter.run({CollectionType.ALBUMS, CollectionType.PLAYLISTS})
    print(result.counts)
"""

from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from pathlib import Path
from typing import Any, Callable, Iterable, Protocol

from tqdm import tqdm

from spot_exporter.core.logger import get_logger
from spot_exporter.export.projector import (
    ALBUMS_DIRNAME,
    ARTISTS_DIRNAME,
    PLAYLISTS_DIRNAME,
    PODCASTS_DIRNAME,
    ProjectedEntity,
    project_album,
    project_artist,
    project_liked_songs,
    project_playlist,
    project_show,
    write_entity,
)
from spot_exporter.spotify.folders import EMPTY_FOLDER_MAP, FolderMap
from spot_exporter.spotify.pagination import (
    DEFAULT_PAGE_SIZE,
    CollectionPage,
    drain_cursor,
    drain_offset,
)
from spot_exporter.utils import ensure_directory

logger = get_logger(__name__)


class CollectionType(str, Enum):
    """The exportable library collections."""
    LIKED_SONGS = "liked"
    PODCASTS = "podcasts"
    ARTISTS = "artists"
    ALBUMS = "albums"
    PLAYLISTS = "playlists"


STAGE_ORDER: tuple[CollectionType, ...] = (
    CollectionType.LIKED_SONGS,
    CollectionType.PODCASTS,
    CollectionType.ARTISTS,
    CollectionType.ALBUMS,
    CollectionType.PLAYLISTS,
)

ALL_COLLECTIONS = frozenset(STAGE_ORDER)


class LibraryClient(Protocol):
    """The page-fetch surface the exporter needs (SpotifyClient or a stub)."""

    def saved_tracks(self, limit: int, offset: int) -> CollectionPage: ...

    def saved_shows(self, limit: int, offset: int) -> CollectionPage: ...

    def followed_artists(self, limit: int, after: str | None = None) -> CollectionPage: ...

    def saved_albums(self, limit: int, offset: int) -> CollectionPage: ...

    def album_tracks(self, album_id: str, limit: int, offset: int) -> CollectionPage: ...

    def playlists(self, limit: int, offset: int) -> CollectionPage: ...

    def playlist_tracks(self, playlist_id: str, limit: int, offset: int) -> CollectionPage: ...


@dataclass
class ExportResult:
    """
    Outcome of a completed export.

    Attributes:
        output_dir: Export root.
        counts: Files written per collection type, in stage order.
    """
    output_dir: Path
    counts: dict[CollectionType, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    def summary(self) -> str:
        """
        Format the per-collection counts for the end-of-run log line.

        Example:
            ExportResult(root, {CollectionType.ALBUMS: 12, CollectionType.PLAYLISTS: 3}).summary()
            # "albums: 12, playlists: 3"
        """
        if not self.counts:
            return "nothing exported"
        return ", ".join(f"{collection.value}: {count}" for collection, count in self.counts.items())


class LibraryExporter:
    """
    Sequences the collection stages and writes the export tree.

    Attributes:
        output_dir: Export root; every file lands underneath it.
        page_size: Items per page for every paginated request.
    """

    def __init__(
        self,
        client: LibraryClient,
        output_dir: Path,
        folder_map_provider: Callable[[], FolderMap] | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        show_progress: bool = True
    ) -> None:
        """
        Args:
            client: Primary API collaborator.
            output_dir: Export root.
            folder_map_provider: Called once before the Playlists stage.
                                 None places all playlists at the root.
            page_size: Items requested per page (Spotify maximum is 50).
            show_progress: Display a tqdm bar during each stage's write loop.
        """
        self._client = client
        self.output_dir = output_dir
        self._folder_map_provider = folder_map_provider
        self.page_size = page_size
        self._show_progress = show_progress

    def run(self, collections: Iterable[CollectionType] = ALL_COLLECTIONS) -> ExportResult:
        """
        Export the enabled collections.

        Args:
            collections: Collection types to export. Order is ignored;
                         stages always run in STAGE_ORDER.

        Returns:
            ExportResult with per-stage file counts.

        Raises:
            SpotifyError: A page fetch failed (rate limit, auth, network).
            ExportError: A file could not be written.
        """
        enabled = set(collections)
        stages: dict[CollectionType, Callable[[], int]] = {
            CollectionType.LIKED_SONGS: self.export_liked_songs,
            CollectionType.PODCASTS: self.export_podcasts,
            CollectionType.ARTISTS: self.export_artists,
            CollectionType.ALBUMS: self.export_albums,
            CollectionType.PLAYLISTS: self.export_playlists,
        }

        ensure_directory(self.output_dir)
        result = ExportResult(output_dir=self.output_dir)

        for collection in STAGE_ORDER:
            if collection not in enabled:
                logger.debug(f"Skipping disabled collection: {collection.value}")
                continue
            result.counts[collection] = stages[collection]()

        return result

    # =========================================================================
    # Stages
    # =========================================================================

    def export_liked_songs(self) -> int:
        """Write all saved tracks to Playlists/Liked Songs.json."""
        logger.info("Fetching liked songs...")
        items = drain_offset(self._client.saved_tracks, self.page_size)
        ensure_directory(self.output_dir / PLAYLISTS_DIRNAME)

        logger.info(f"Found {len(items)} liked songs. Saving them now...")
        self._write(project_liked_songs(items))
        logger.info("Liked songs saved")
        return 1

    def export_podcasts(self) -> int:
        """Write each saved show to Podcasts/<Show>/show_info.json."""
        logger.info("Fetching saved podcasts...")
        items = drain_offset(self._client.saved_shows, self.page_size)
        ensure_directory(self.output_dir / PODCASTS_DIRNAME)

        logger.info(f"Found {len(items)} podcasts. Saving them now...")
        for item in self._progress(items, "Podcasts"):
            self._write(project_show(item))
        logger.info("All podcasts saved")
        return len(items)

    def export_artists(self) -> int:
        """Write each followed artist to Artists/<Artist>.json."""
        logger.info("Fetching followed artists...")
        artists = drain_cursor(self._client.followed_artists, self.page_size)
        ensure_directory(self.output_dir / ARTISTS_DIRNAME)

        logger.info(f"Found {len(artists)} followed artists. Saving them now...")
        for artist in self._progress(artists, "Artists"):
            self._write(project_artist(artist))
        logger.info("All followed artists saved")
        return len(artists)

    def export_albums(self) -> int:
        """Write each saved album to Albums/<Artists> - <Title>/album_info.json."""
        logger.info("Fetching saved albums...")
        items = drain_offset(self._client.saved_albums, self.page_size)
        ensure_directory(self.output_dir / ALBUMS_DIRNAME)

        logger.info(f"Found {len(items)} albums. Saving them now...")
        written = 0
        for item in self._progress(items, "Albums"):
            album = item.get("album")
            if not album:
                logger.warning("Skipping saved album entry without album data")
                continue
            self._write(project_album(album, self._complete_album_tracks(album)))
            written += 1
        logger.info("All albums saved")
        return written

    def export_playlists(self) -> int:
        """
        Write each playlist to Playlists/<folders...>/<Name>.json.

        The folder map is resolved before the playlist listing is fetched;
        each playlist's tracks are then fetched and written one playlist
        at a time.
        """
        folder_map = self._resolve_folder_map()

        logger.info("Fetching playlists...")
        playlists = drain_offset(self._client.playlists, self.page_size)
        ensure_directory(self.output_dir / PLAYLISTS_DIRNAME)

        logger.info(f"Found {len(playlists)} playlists. Saving them now...")
        written = 0
        for playlist in self._progress(playlists, "Playlists"):
            if not playlist or not playlist.get("id"):
                logger.warning("Skipping playlist entry without an id")
                continue
            track_items = drain_offset(
                partial(self._client.playlist_tracks, playlist["id"]),
                self.page_size
            )
            folder_path = folder_map.get(playlist.get("uri") or "", ())
            self._write(project_playlist(playlist, track_items, folder_path))
            written += 1
        logger.info("All playlists saved")
        return written

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    def _resolve_folder_map(self) -> FolderMap:
        if self._folder_map_provider is None:
            logger.debug("No folder map provider; playlists go to the root folder")
            return EMPTY_FOLDER_MAP
        return self._folder_map_provider()

    def _complete_album_tracks(self, album: dict[str, Any]) -> list[dict[str, Any]] | None:
        """
        Return the full track list when the embedded one is truncated.

        None means the embedded album.tracks.items is already complete.
        """
        embedded = album.get("tracks") or {}
        if embedded.get("next") is None or not album.get("id"):
            return None

        logger.debug(f"Album {album.get('name')!r} has more tracks than embedded; fetching all")
        return drain_offset(partial(self._client.album_tracks, album["id"]), self.page_size)

    def _write(self, entity: ProjectedEntity) -> None:
        path = write_entity(self.output_dir, entity)
        logger.debug(f"Wrote {path}")

    def _progress(self, items: list[Any], description: str) -> Iterable[Any]:
        if not self._show_progress:
            return items
        return tqdm(items, desc=description, unit="item", leave=False)


def export_library(
    client: LibraryClient,
    output_dir: Path,
    collections: Iterable[CollectionType] = ALL_COLLECTIONS,
    folder_map_provider: Callable[[], FolderMap] | None = None,
    page_size: int = DEFAULT_PAGE_SIZE
) -> ExportResult:
    """
    Convenience entry point used by the CLI.

    Returns:
        ExportResult of the completed run.
    """
    exporter = LibraryExporter(
        client,
        output_dir,
        folder_map_provider=folder_map_provider,
        page_size=page_size
    )
    return exporter.run(collections)
