"""Test the library export orchestrator"""

import json
from types import MappingProxyType
from unittest.mock import Mock

import pytest

from spot_exporter.core.exceptions import SpotifyError
from spot_exporter.export.orchestrator import (
    ALL_COLLECTIONS,
    CollectionType,
    ExportResult,
    LibraryExporter,
    export_library,
)

from tests.factories import StubLibraryClient, make_album, make_playlist, make_track


def _read(path):
    return json.loads(path.read_text(encoding="utf-8"))


def _exporter(client, output_dir, **kwargs):
    return LibraryExporter(client, output_dir, show_progress=False, **kwargs)


class TestAlbumsStage:
    """Test exporting saved albums"""

    def test_album_written_with_ordered_tracks(self, output_dir):
        client = StubLibraryClient(saved_albums=[make_album(name="T", artists=("A", "B"))])

        result = _exporter(client, output_dir).run({CollectionType.ALBUMS})

        record = _read(output_dir / "Albums" / "A, B - T" / "album_info.json")
        assert record["total_tracks"] == 3
        assert [t["track_number"] for t in record["tracks"]] == [1, 2, 3]
        assert result.counts == {CollectionType.ALBUMS: 1}

    def test_all_pages_are_exported(self, output_dir):
        albums = [make_album(name=f"Album {i}", album_id=f"id{i}") for i in range(123)]
        client = StubLibraryClient(saved_albums=albums)

        result = _exporter(client, output_dir).run({CollectionType.ALBUMS})

        assert result.counts[CollectionType.ALBUMS] == 123
        assert len(list((output_dir / "Albums").iterdir())) == 123
        assert [c for c in client.calls if c[0] == "saved_albums"] == [
            ("saved_albums", 0), ("saved_albums", 50), ("saved_albums", 100),
        ]

    def test_truncated_track_list_is_completed(self, output_dir):
        saved = make_album(
            name="Long", artists=("X",), album_id="long", track_numbers=(1, 2),
            next_url="https://api.spotify.com/v1/albums/long/tracks?offset=2", total_tracks=60,
        )
        full_tracks = [
            {"name": f"T{n}", "track_number": n, "disc_number": 1, "artists": [{"name": "X"}]}
            for n in range(60, 0, -1)
        ]
        client = StubLibraryClient(saved_albums=[saved], album_tracks={"long": full_tracks})

        _exporter(client, output_dir).run({CollectionType.ALBUMS})

        record = _read(output_dir / "Albums" / "X - Long" / "album_info.json")
        assert len(record["tracks"]) == 60
        assert record["tracks"][0]["track_number"] == 1
        assert ("album_tracks", "long", 50) in client.calls

    def test_entry_without_album_is_skipped(self, output_dir):
        client = StubLibraryClient(saved_albums=[{"added_at": None, "album": None}, make_album()])

        result = _exporter(client, output_dir).run({CollectionType.ALBUMS})

        assert result.counts[CollectionType.ALBUMS] == 1


class TestPlaylistsStage:
    """Test exporting playlists and folder placement"""

    def test_playlists_placed_by_folder_map(self, output_dir):
        rock = make_playlist(name="70s", playlist_id="p1")
        loose = make_playlist(name="Road Trip", playlist_id="p2")
        client = StubLibraryClient(
            playlists=[rock, loose],
            playlist_tracks={"p1": [{"added_at": None, "track": make_track()}]},
        )
        folder_map = MappingProxyType({rock["uri"]: ("Rock", "Classic")})

        _exporter(client, output_dir, folder_map_provider=lambda: folder_map).run(
            {CollectionType.PLAYLISTS}
        )

        nested = _read(output_dir / "Playlists" / "Rock" / "Classic" / "70s.json")
        assert nested["tracks"][0]["name"] == "Test Song"
        assert (output_dir / "Playlists" / "Road Trip.json").exists()

    def test_folder_map_resolved_once_before_listing(self, output_dir):
        client = StubLibraryClient(playlists=[make_playlist(playlist_id="p1"), make_playlist(name="B", playlist_id="p2")])

        def provider():
            client.calls.append(("folder_map",))
            return MappingProxyType({})

        _exporter(client, output_dir, folder_map_provider=provider).run({CollectionType.PLAYLISTS})

        assert client.calls[0] == ("folder_map",)
        assert client.calls.count(("folder_map",)) == 1

    def test_no_provider_places_everything_at_root(self, output_dir):
        client = StubLibraryClient(playlists=[make_playlist(name="Solo")])

        _exporter(client, output_dir).run({CollectionType.PLAYLISTS})

        assert (output_dir / "Playlists" / "Solo.json").exists()

    def test_playlist_tracks_are_paged(self, output_dir):
        items = [{"added_at": None, "track": make_track(name=f"S{i}")} for i in range(75)]
        client = StubLibraryClient(playlists=[make_playlist()], playlist_tracks={"pl_1": items})

        _exporter(client, output_dir).run({CollectionType.PLAYLISTS})

        record = _read(output_dir / "Playlists" / "Road Trip.json")
        assert [t["name"] for t in record["tracks"]] == [f"S{i}" for i in range(75)]

    def test_entries_without_id_are_skipped(self, output_dir):
        no_id = make_playlist(name="Ghost")
        del no_id["id"]
        client = StubLibraryClient(playlists=[None, no_id, make_playlist()])

        result = _exporter(client, output_dir).run({CollectionType.PLAYLISTS})

        assert result.counts[CollectionType.PLAYLISTS] == 1
        assert (output_dir / "Playlists" / "Road Trip.json").exists()
        assert not (output_dir / "Playlists" / "Ghost.json").exists()
        assert [c for c in client.calls if c[0] == "playlist_tracks"] == [("playlist_tracks", "pl_1", 0)]

    def test_dot_dot_folders_do_not_escape_export_root(self, output_dir):
        playlist = make_playlist(name="Escape")
        folder_map = MappingProxyType({playlist["uri"]: ("..", "..")})
        client = StubLibraryClient(playlists=[playlist])

        _exporter(client, output_dir, folder_map_provider=lambda: folder_map).run(
            {CollectionType.PLAYLISTS}
        )

        written = list(output_dir.parent.rglob("Escape.json"))
        assert written == [output_dir / "Playlists" / "Unnamed Folder" / "Unnamed Folder" / "Escape.json"]


class TestLikedSongsStage:
    """Test the synthesized Liked Songs playlist"""

    def test_liked_songs_ignore_folder_map(self, output_dir):
        client = StubLibraryClient(saved_tracks=[{"added_at": "2024-01-01T00:00:00Z", "track": make_track()}])
        folder_map = MappingProxyType({"spotify:playlist:pl_1": ("Rock",)})

        _exporter(client, output_dir, folder_map_provider=lambda: folder_map).run(ALL_COLLECTIONS)

        record = _read(output_dir / "Playlists" / "Liked Songs.json")
        assert record["owner"] == "me"
        assert len(record["tracks"]) == 1

    def test_empty_library_still_writes_liked_songs(self, output_dir):
        result = _exporter(StubLibraryClient(), output_dir).run({CollectionType.LIKED_SONGS})

        assert _read(output_dir / "Playlists" / "Liked Songs.json")["tracks"] == []
        assert result.total == 1


class TestPodcastsAndArtistsStages:
    """Test podcasts and followed artists"""

    def test_podcasts(self, output_dir, sample_show_item):
        client = StubLibraryClient(saved_shows=[sample_show_item])

        _exporter(client, output_dir).run({CollectionType.PODCASTS})

        assert (output_dir / "Podcasts" / "Tech_ Weekly_" / "show_info.json").exists()

    def test_artists_follow_cursor(self, output_dir):
        artists = [{"id": f"a{i}", "name": f"Artist {i}"} for i in range(120)]
        client = StubLibraryClient(followed_artists=artists)

        result = _exporter(client, output_dir).run({CollectionType.ARTISTS})

        assert result.counts[CollectionType.ARTISTS] == 120
        assert [c for c in client.calls if c[0] == "followed_artists"] == [
            ("followed_artists", None), ("followed_artists", "50"), ("followed_artists", "100"),
        ]
        assert (output_dir / "Artists" / "Artist 119.json").exists()


class TestStageSequencing:
    """Test stage order, toggles and error propagation"""

    def test_stages_run_in_fixed_order(self, output_dir, sample_show_item):
        client = StubLibraryClient(
            saved_tracks=[{"added_at": None, "track": make_track()}],
            saved_shows=[sample_show_item],
            followed_artists=[{"id": "a", "name": "A"}],
            saved_albums=[make_album()],
            playlists=[make_playlist()],
        )

        result = _exporter(client, output_dir).run(reversed(list(CollectionType)))

        first_calls = []
        for call in client.calls:
            if call[0] not in first_calls:
                first_calls.append(call[0])
        assert first_calls == [
            "saved_tracks", "saved_shows", "followed_artists", "saved_albums",
            "playlists", "playlist_tracks",
        ]
        assert list(result.counts) == list(CollectionType)

    def test_disabled_collections_are_not_fetched(self, output_dir):
        client = StubLibraryClient(saved_albums=[make_album()], playlists=[make_playlist()])

        result = _exporter(client, output_dir).run({CollectionType.PLAYLISTS})

        assert not any(c[0] == "saved_albums" for c in client.calls)
        assert not (output_dir / "Albums").exists()
        assert set(result.counts) == {CollectionType.PLAYLISTS}

    def test_error_aborts_and_keeps_earlier_files(self, output_dir):
        client = StubLibraryClient(saved_tracks=[{"added_at": None, "track": make_track()}])
        client.saved_albums = Mock(side_effect=SpotifyError("Rate limited", is_rate_limit=True, retry_after=30))
        playlists = Mock()
        client.playlists = playlists

        with pytest.raises(SpotifyError) as exc_info:
            _exporter(client, output_dir).run({
                CollectionType.LIKED_SONGS, CollectionType.ALBUMS, CollectionType.PLAYLISTS,
            })

        assert exc_info.value.retry_after == 30
        assert (output_dir / "Playlists" / "Liked Songs.json").exists()
        playlists.assert_not_called()

    def test_rerun_overwrites_files(self, output_dir):
        client = StubLibraryClient(saved_albums=[make_album()])
        _exporter(client, output_dir).run({CollectionType.ALBUMS})
        first = (output_dir / "Albums" / "A, B - T" / "album_info.json").read_text(encoding="utf-8")

        _exporter(client, output_dir).run({CollectionType.ALBUMS})

        second = (output_dir / "Albums" / "A, B - T" / "album_info.json").read_text(encoding="utf-8")
        assert first == second

    def test_export_library_entry_point(self, output_dir, monkeypatch):
        monkeypatch.setattr(
            "spot_exporter.export.orchestrator.tqdm",
            lambda items, **kwargs: items
        )
        client = StubLibraryClient(playlists=[make_playlist()])

        result = export_library(client, output_dir, collections={CollectionType.PLAYLISTS})

        assert result.output_dir == output_dir
        assert result.counts == {CollectionType.PLAYLISTS: 1}


class TestExportResult:
    """Test the end-of-run result"""

    def test_summary_lists_counts_in_stage_order(self, output_dir):
        result = ExportResult(output_dir, {CollectionType.ALBUMS: 12, CollectionType.PLAYLISTS: 3})

        assert result.total == 15
        assert result.summary() == "albums: 12, playlists: 3"

    def test_summary_of_empty_run(self, output_dir):
        assert ExportResult(output_dir).summary() == "nothing exported"
