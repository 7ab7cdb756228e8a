"""
Data models for exported Spotify entities.

This module defines immutable dataclasses for the records written to
disk. Each one is built from a raw Spotify API payload by a
from_spotify_api() class method and turned into a JSON-ready dict by
to_dict(). The dict key order is the on-disk key order.

Design Decisions:
    - All dataclasses are frozen: a record is a snapshot taken at fetch time
    - Missing nested objects (removed tracks, local files, unavailable
      albums) degrade to placeholder values instead of raising
    - Multiple artists are flattened to one comma-joined string, in the
      order the API returned them

Usage:
    from spot_exporter.spotify.models import ExportedAlbum

    album = ExportedAlbum.from_spotify_api(item["album"])
    write_json(path, album.to_dict())
"""

from dataclasses import dataclass, field
from typing import Any


UNKNOWN_TRACK = "Unknown Track"
UNKNOWN_ARTIST = "Unknown Artist"
UNKNOWN_ALBUM = "Unknown Album"
UNKNOWN_PLAYLIST = "Unknown Playlist"
UNKNOWN_SHOW = "Unknown Show"

LIKED_SONGS_NAME = "Liked Songs"

# Owner recorded for the synthesized Liked Songs playlist
LIKED_SONGS_OWNER = "me"


def join_artist_names(artists: list[dict[str, Any]] | None) -> str:
    """
    Join artist names with ', ' in API order.

    Returns UNKNOWN_ARTIST when the list is missing or has no usable names.

    Example:
        join_artist_names([{"name": "A"}, {"name": "B"}])  # "A, B"
    """
    names = [a.get("name") for a in artists or [] if a and a.get("name")]
    return ", ".join(names) if names else UNKNOWN_ARTIST


@dataclass(frozen=True)
class TrackSummary:
    """
    One entry of a playlist (or Liked Songs) track list.

    Attributes:
        name: Track title, or "Unknown Track".
        artist: Comma-joined artist names, or "Unknown Artist".
        album: Album name only, or "Unknown Album".
        added_at: ISO timestamp of when the item was added, if known.
        uri: Spotify URI, None when the track is no longer available.
    """
    name: str
    artist: str
    album: str
    added_at: str | None
    uri: str | None

    @classmethod
    def from_spotify_api(cls, item: dict[str, Any] | None) -> "TrackSummary":
        """
        Build a summary from a saved-track or playlist-track wrapper.

        Args:
            item: {"added_at": ..., "track": {...} | None}. The wrapper
                  itself may be None for corrupt playlist entries.

        Podcast episodes inside playlists are summarized with the show
        name as album and the show publisher as artist.
        """
        item = item or {}
        added_at = item.get("added_at")
        track = item.get("track")

        if not track:
            return cls(
                name=UNKNOWN_TRACK,
                artist=UNKNOWN_ARTIST,
                album=UNKNOWN_ALBUM,
                added_at=added_at,
                uri=None
            )

        show = track.get("show")
        if track.get("type") == "episode" and show:
            artist = show.get("publisher") or UNKNOWN_ARTIST
            album = show.get("name") or UNKNOWN_ALBUM
        else:
            artist = join_artist_names(track.get("artists"))
            album = (track.get("album") or {}).get("name") or UNKNOWN_ALBUM

        return cls(
            name=track.get("name") or UNKNOWN_TRACK,
            artist=artist,
            album=album,
            added_at=added_at,
            uri=track.get("uri")
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "artist": self.artist,
            "album": self.album,
            "added_at": self.added_at,
            "uri": self.uri,
        }


@dataclass(frozen=True)
class AlbumTrack:
    """
    One entry of an album's track list.

    Unlike TrackSummary this carries position and length, and no album
    name (it is the enclosing album).
    """
    track_number: int | None
    disc_number: int
    name: str
    artist: str
    duration_ms: int | None
    uri: str | None

    @classmethod
    def from_spotify_api(cls, track: dict[str, Any] | None) -> "AlbumTrack":
        track = track or {}
        return cls(
            track_number=track.get("track_number"),
            disc_number=track.get("disc_number") or 1,
            name=track.get("name") or UNKNOWN_TRACK,
            artist=join_artist_names(track.get("artists")),
            duration_ms=track.get("duration_ms"),
            uri=track.get("uri")
        )

    @property
    def sort_key(self) -> tuple[int, int]:
        # Tracks without a number go last on their disc
        return (self.disc_number, self.track_number if self.track_number is not None else 10**6)

    def to_dict(self) -> dict[str, Any]:
        return {
            "track_number": self.track_number,
            "disc_number": self.disc_number,
            "name": self.name,
            "artist": self.artist,
            "duration_ms": self.duration_ms,
            "uri": self.uri,
        }


@dataclass(frozen=True)
class ExportedAlbum:
    """
    A saved album, written to Albums/<Artists> - <Title>/album_info.json.

    Attributes:
        name: Album title.
        artist: All credited album artists, comma-joined.
        id: Spotify album ID.
        uri: Spotify album URI.
        release_date: Release date as reported ("1975-11-21", "1975", ...).
        total_tracks: Track count reported by Spotify.
        tracks: Tracks ordered by (disc_number, track_number).
    """
    name: str
    artist: str
    id: str | None
    uri: str | None
    release_date: str | None
    total_tracks: int
    tracks: tuple[AlbumTrack, ...] = field(default_factory=tuple)

    @classmethod
    def from_spotify_api(
        cls,
        album: dict[str, Any],
        tracks: list[dict[str, Any]] | None = None
    ) -> "ExportedAlbum":
        """
        Build an album record.

        Args:
            album: Full album object (the 'album' field of a saved-album item).
            tracks: Complete raw track list when the embedded one was
                    truncated. Defaults to album.tracks.items.
        """
        if tracks is None:
            tracks = (album.get("tracks") or {}).get("items") or []

        album_tracks = sorted(
            (AlbumTrack.from_spotify_api(t) for t in tracks),
            key=lambda t: t.sort_key
        )

        total_tracks = album.get("total_tracks")
        if total_tracks is None:
            total_tracks = len(album_tracks)

        return cls(
            name=album.get("name") or UNKNOWN_ALBUM,
            artist=join_artist_names(album.get("artists")),
            id=album.get("id"),
            uri=album.get("uri"),
            release_date=album.get("release_date"),
            total_tracks=total_tracks,
            tracks=tuple(album_tracks)
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "artist": self.artist,
            "id": self.id,
            "uri": self.uri,
            "release_date": self.release_date,
            "total_tracks": self.total_tracks,
            "tracks": [t.to_dict() for t in self.tracks],
        }


@dataclass(frozen=True)
class ExportedPlaylist:
    """
    A playlist, written to Playlists/<folders...>/<Name>.json.

    Liked Songs uses the same shape with owner LIKED_SONGS_OWNER and no
    id or uri.
    """
    name: str
    description: str | None
    owner: str | None
    id: str | None
    uri: str | None
    tracks: tuple[TrackSummary, ...] = field(default_factory=tuple)

    @classmethod
    def from_spotify_api(
        cls,
        playlist: dict[str, Any],
        track_items: list[dict[str, Any]]
    ) -> "ExportedPlaylist":
        """
        Build a playlist record.

        Args:
            playlist: Simplified playlist object from the playlists listing.
            track_items: All playlist-track wrappers, in playlist order.
        """
        owner = playlist.get("owner") or {}
        return cls(
            name=playlist.get("name") or UNKNOWN_PLAYLIST,
            description=playlist.get("description"),
            owner=owner.get("display_name") or owner.get("id"),
            id=playlist.get("id"),
            uri=playlist.get("uri"),
            tracks=tuple(TrackSummary.from_spotify_api(i) for i in track_items)
        )

    @classmethod
    def liked_songs(cls, track_items: list[dict[str, Any]]) -> "ExportedPlaylist":
        """Synthesize the Liked Songs playlist from saved-track wrappers."""
        return cls(
            name=LIKED_SONGS_NAME,
            description=None,
            owner=LIKED_SONGS_OWNER,
            id=None,
            uri=None,
            tracks=tuple(TrackSummary.from_spotify_api(i) for i in track_items)
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "owner": self.owner,
            "id": self.id,
            "uri": self.uri,
            "tracks": [t.to_dict() for t in self.tracks],
        }


@dataclass(frozen=True)
class ExportedShow:
    """A saved podcast, written to Podcasts/<Show Name>/show_info.json."""
    name: str
    publisher: str | None
    description: str | None
    id: str | None
    uri: str | None
    total_episodes: int | None
    added_at: str | None

    @classmethod
    def from_spotify_api(cls, item: dict[str, Any]) -> "ExportedShow":
        """Build from a saved-show wrapper: {"added_at": ..., "show": {...}}."""
        show = item.get("show") or {}
        return cls(
            name=show.get("name") or UNKNOWN_SHOW,
            publisher=show.get("publisher"),
            description=show.get("description"),
            id=show.get("id"),
            uri=show.get("uri"),
            total_episodes=show.get("total_episodes"),
            added_at=item.get("added_at")
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "publisher": self.publisher,
            "description": self.description,
            "id": self.id,
            "uri": self.uri,
            "total_episodes": self.total_episodes,
            "added_at": self.added_at,
        }


@dataclass(frozen=True)
class ExportedArtist:
    """A followed artist, written to Artists/<Artist Name>.json."""
    name: str
    id: str | None
    uri: str | None
    genres: tuple[str, ...]
    followers: int | None
    popularity: int | None

    @classmethod
    def from_spotify_api(cls, artist: dict[str, Any]) -> "ExportedArtist":
        return cls(
            name=artist.get("name") or UNKNOWN_ARTIST,
            id=artist.get("id"),
            uri=artist.get("uri"),
            genres=tuple(artist.get("genres") or ()),
            followers=(artist.get("followers") or {}).get("total"),
            popularity=artist.get("popularity")
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "id": self.id,
            "uri": self.uri,
            "genres": list(self.genres),
            "followers": self.followers,
            "popularity": self.popularity,
        }
