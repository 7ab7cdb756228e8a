"""Test configuration and fixtures"""

from pathlib import Path

import pytest

from tests.factories import make_track


@pytest.fixture
def output_dir(tmp_path) -> Path:
    """Export root inside a temporary directory"""
    return tmp_path / "Spotify Library"


@pytest.fixture
def sample_track_item():
    """Sample playlist/saved track wrapper"""
    return {
        "added_at": "2024-01-15T10:30:00Z",
        "track": make_track(artists=("Calvin Harris", "Dua Lipa")),
    }


@pytest.fixture
def sample_show_item():
    return {
        "added_at": "2023-06-01T08:00:00Z",
        "show": {
            "id": "show_1",
            "name": "Tech: Weekly?",
            "publisher": "Podcast Co",
            "description": "News",
            "uri": "spotify:show:show_1",
            "total_episodes": 120,
        },
    }


@pytest.fixture
def sample_artist():
    return {
        "id": "artist_1",
        "name": "AC/DC",
        "uri": "spotify:artist:artist_1",
        "genres": ["hard rock", "rock"],
        "followers": {"total": 1000},
        "popularity": 80,
    }
