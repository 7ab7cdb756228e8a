"""
Spotify Web API client for spot-exporter.

This module wraps spotipy with one paginated-fetch method per library
collection. Every method returns a CollectionPage so the pagination
engine never sees the raw Spotify paging objects.

Session Handling:
    The client holds no global state. It is built from an explicit
    SpotifySession produced by the authentication step (or from a raw
    access token), so tests can pass stub credentials and two clients
    for two users never share a token.

Usage:
    from spot_exporter.spotify.client import SpotifyClient, SpotifySession

    client = SpotifyClient(SpotifySession(access_token="BQD..."))
    page = client.saved_albums(limit=50, offset=0)

Rate Limiting:
    A 429 response is turned into SpotifyError(is_rate_limit=True) with
    the Retry-After value when Spotify sent one. The exporter does not
    retry; the run aborts and the hint is logged.
"""

from dataclasses import dataclass
from typing import Any, Callable

import spotipy

from spot_exporter.core.exceptions import SpotifyError
from spot_exporter.core.logger import get_logger
from spot_exporter.spotify.pagination import CollectionPage

logger = get_logger(__name__)


@dataclass(frozen=True)
class SpotifySession:
    """
    Credentials for one authenticated user.

    Attributes:
        access_token: OAuth bearer token for the Web API.
        refresh_token: Refresh token returned by the code exchange, if any.
        expires_at: Unix timestamp at which access_token expires, if known.
    """
    access_token: str
    refresh_token: str | None = None
    expires_at: int | None = None


class SpotifyClient:
    """
    Token-authenticated Spotify Web API client.

    Attributes:
        _spotify: The underlying spotipy.Spotify instance.

    Example:
        client = SpotifyClient(session)
        first_page = client.playlists(limit=50, offset=0)
        print(len(first_page.items), first_page.has_next)
    """

    def __init__(
        self,
        session: SpotifySession,
        spotify_instance: spotipy.Spotify | None = None
    ) -> None:
        """
        Create a client for the given session.

        Args:
            session: Credentials of the user whose library is exported.
            spotify_instance: Pre-built spotipy instance (tests inject a mock).
        """
        self._session = session
        self._spotify = spotify_instance or spotipy.Spotify(auth=session.access_token)

    @property
    def session(self) -> SpotifySession:
        return self._session

    # =========================================================================
    # User
    # =========================================================================

    def current_user_id(self) -> str:
        """
        Get the Spotify user ID of the session owner.

        Needed to address the rootlist (folder) endpoint.
        """
        user = self._request("fetch current user", self._spotify.current_user)
        if not user or not user.get("id"):
            raise SpotifyError("Spotify returned no user profile")
        return user["id"]

    # =========================================================================
    # Library collections (offset-paginated)
    # =========================================================================

    def saved_tracks(self, limit: int, offset: int) -> CollectionPage:
        """Get one page of the user's Liked Songs (items carry 'added_at')."""
        response = self._request(
            "fetch saved tracks",
            self._spotify.current_user_saved_tracks,
            limit=limit,
            offset=offset
        )
        return CollectionPage.from_offset_response(response)

    def saved_albums(self, limit: int, offset: int) -> CollectionPage:
        """Get one page of saved albums. Each item wraps a full album object."""
        response = self._request(
            "fetch saved albums",
            self._spotify.current_user_saved_albums,
            limit=limit,
            offset=offset
        )
        return CollectionPage.from_offset_response(response)

    def album_tracks(self, album_id: str, limit: int, offset: int) -> CollectionPage:
        """
        Get one page of an album's tracks.

        Only needed for albums whose embedded track list was truncated
        (more than 50 tracks).
        """
        response = self._request(
            f"fetch tracks of album {album_id}",
            self._spotify.album_tracks,
            album_id,
            limit=limit,
            offset=offset
        )
        return CollectionPage.from_offset_response(response)

    def saved_shows(self, limit: int, offset: int) -> CollectionPage:
        """Get one page of saved podcasts (shows)."""
        response = self._request(
            "fetch saved shows",
            self._spotify.current_user_saved_shows,
            limit=limit,
            offset=offset
        )
        return CollectionPage.from_offset_response(response)

    def playlists(self, limit: int, offset: int) -> CollectionPage:
        """Get one page of playlists owned or followed by the user."""
        response = self._request(
            "fetch playlists",
            self._spotify.current_user_playlists,
            limit=limit,
            offset=offset
        )
        return CollectionPage.from_offset_response(response)

    def playlist_tracks(self, playlist_id: str, limit: int, offset: int) -> CollectionPage:
        """
        Get one page of a playlist's items.

        Both tracks and podcast episodes are requested; the projector
        summarizes either shape.
        """
        response = self._request(
            f"fetch items of playlist {playlist_id}",
            self._spotify.playlist_items,
            playlist_id,
            limit=limit,
            offset=offset,
            additional_types=("track", "episode")
        )
        return CollectionPage.from_offset_response(response)

    # =========================================================================
    # Followed artists (cursor-paginated)
    # =========================================================================

    def followed_artists(self, limit: int, after: str | None = None) -> CollectionPage:
        """
        Get one page of followed artists.

        Args:
            limit: Maximum number of artists (max 50).
            after: Cursor from the previous page, None for the first page.
        """
        response = self._request(
            "fetch followed artists",
            self._spotify.current_user_followed_artists,
            limit=limit,
            after=after
        )
        return CollectionPage.from_cursor_response(response, key="artists")

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    def _request(self, description: str, method: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """
        Call a spotipy method, translating failures into SpotifyError.

        Raises:
            SpotifyError: is_rate_limit on 429 (with retry_after when sent),
                          is_auth_error on 401, plain otherwise.
        """
        try:
            return method(*args, **kwargs)
        except spotipy.SpotifyException as e:
            if e.http_status == 429:
                retry_after = _parse_retry_after(e.headers)
                raise SpotifyError(
                    f"Rate limited while trying to {description}",
                    details={"http_status": 429, "retry_after": retry_after},
                    is_rate_limit=True,
                    retry_after=retry_after
                ) from e
            if e.http_status == 401:
                raise SpotifyError(
                    f"Access token rejected while trying to {description}",
                    details={"http_status": 401},
                    is_auth_error=True
                ) from e
            raise SpotifyError(
                f"Failed to {description}: {e.msg}",
                details={"http_status": e.http_status, "original_error": str(e)}
            ) from e


def _parse_retry_after(headers: dict[str, str] | None) -> int | None:
    """Extract the Retry-After header as whole seconds, if present."""
    if not headers:
        return None
    for name, value in headers.items():
        if name.lower() == "retry-after":
            try:
                return int(value)
            except (TypeError, ValueError):
                return None
    return None
