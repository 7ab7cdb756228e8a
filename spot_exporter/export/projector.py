"""
Entity projection: raw Spotify items -> (relative path, JSON document).

Each project_* function turns one raw item into a ProjectedEntity whose
relative_path is anchored at the export root:

    Playlists/Liked Songs.json
    Playlists/<folder>/.../<Playlist Name>.json
    Podcasts/<Show Name>/show_info.json
    Artists/<Artist Name>.json
    Albums/<Artists> - <Album Title>/album_info.json

Every path segment built from a display name goes through
safe_path_segment(): reserved characters are replaced, and names that
would come out empty, "." or ".." fall back to a per-type placeholder, so
no segment is ever empty, contains a separator, or leaves the export root. write_entity() does the
only filesystem work: create the parent directory, then write the file.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

from spot_exporter.core.exceptions import ExportError
from spot_exporter.spotify.models import (
    LIKED_SONGS_NAME,
    UNKNOWN_ALBUM,
    UNKNOWN_ARTIST,
    UNKNOWN_PLAYLIST,
    UNKNOWN_SHOW,
    ExportedAlbum,
    ExportedArtist,
    ExportedPlaylist,
    ExportedShow,
)
from spot_exporter.spotify.folders import UNNAMED_FOLDER
from spot_exporter.utils import ensure_directory, safe_path_segment, write_json


ALBUMS_DIRNAME = "Albums"
PLAYLISTS_DIRNAME = "Playlists"
PODCASTS_DIRNAME = "Podcasts"
ARTISTS_DIRNAME = "Artists"

ALBUM_INFO_FILENAME = "album_info.json"
SHOW_INFO_FILENAME = "show_info.json"


@dataclass(frozen=True)
class ProjectedEntity:
    """
    A record ready to be written.

    Attributes:
        relative_path: Target file, relative to the export root.
        record: JSON-serializable document.
    """
    relative_path: Path
    record: dict[str, Any]


def project_album(album: dict[str, Any], tracks: list[dict[str, Any]] | None = None) -> ProjectedEntity:
    """
    Project a saved album.

    Args:
        album: Full album object (item["album"] of a saved-album item).
        tracks: Complete track list if the embedded one was truncated.
    """
    exported = ExportedAlbum.from_spotify_api(album, tracks)
    folder = safe_path_segment(f"{exported.artist} - {exported.name}", UNKNOWN_ALBUM)
    return ProjectedEntity(
        relative_path=Path(ALBUMS_DIRNAME, folder, ALBUM_INFO_FILENAME),
        record=exported.to_dict()
    )


def project_playlist(
    playlist: dict[str, Any],
    track_items: list[dict[str, Any]],
    folder_path: Sequence[str] = ()
) -> ProjectedEntity:
    """
    Project a playlist into its (possibly nested) folder.

    Args:
        playlist: Simplified playlist object.
        track_items: All of the playlist's track wrappers.
        folder_path: Already-sanitized folder names from the FolderMap.
                     Empty places the file directly under Playlists/.
    """
    exported = ExportedPlaylist.from_spotify_api(playlist, track_items)
    filename = f"{safe_path_segment(exported.name, UNKNOWN_PLAYLIST)}.json"
    folders = [safe_path_segment(segment, UNNAMED_FOLDER) for segment in folder_path]
    return ProjectedEntity(
        relative_path=Path(PLAYLISTS_DIRNAME, *folders, filename),
        record=exported.to_dict()
    )


def project_liked_songs(track_items: list[dict[str, Any]]) -> ProjectedEntity:
    """
    Project the user's saved tracks as the Liked Songs playlist.

    Always lands at Playlists/Liked Songs.json: it has no URI, so the
    folder map can never place it anywhere else.
    """
    exported = ExportedPlaylist.liked_songs(track_items)
    return ProjectedEntity(
        relative_path=Path(PLAYLISTS_DIRNAME, f"{LIKED_SONGS_NAME}.json"),
        record=exported.to_dict()
    )


def project_show(item: dict[str, Any]) -> ProjectedEntity:
    """Project a saved-show wrapper into its own directory."""
    exported = ExportedShow.from_spotify_api(item)
    show_dir = safe_path_segment(exported.name, UNKNOWN_SHOW)
    return ProjectedEntity(
        relative_path=Path(PODCASTS_DIRNAME, show_dir, SHOW_INFO_FILENAME),
        record=exported.to_dict()
    )


def project_artist(artist: dict[str, Any]) -> ProjectedEntity:
    """Project a followed artist into one flat file."""
    exported = ExportedArtist.from_spotify_api(artist)
    return ProjectedEntity(
        relative_path=Path(ARTISTS_DIRNAME, f"{safe_path_segment(exported.name, UNKNOWN_ARTIST)}.json"),
        record=exported.to_dict()
    )


def write_entity(root: Path, entity: ProjectedEntity) -> Path:
    """
    Write a projected entity under the export root.

    The parent directory is created first (idempotently); an existing file
    is overwritten.

    Returns:
        Absolute path of the written file.

    Raises:
        ExportError: If the directory or file cannot be written.
    """
    target = root / entity.relative_path
    try:
        ensure_directory(target.parent)
        write_json(target, entity.record)
    except OSError as e:
        raise ExportError(
            f"Failed to write {entity.relative_path}: {e}",
            details={"path": str(target), "original_error": str(e)}
        ) from e
    return target
