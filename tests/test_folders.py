"""Test playlist folder reconstruction"""

from unittest.mock import Mock

import pytest
import requests

from spot_exporter.core.exceptions import FolderTreeError
from spot_exporter.spotify.folders import (
    EMPTY_FOLDER_MAP,
    Folder,
    PlaylistRef,
    RootlistClient,
    build_folder_map,
    parse_folder_tree,
    resolve_folder_map,
)


URI_A = "spotify:playlist:aaa"
URI_B = "spotify:playlist:bbb"
URI_C = "spotify:playlist:ccc"

# Valid JSON with the wrong types in places the parser relies on
MALFORMED_DOCUMENTS = [
    {"contents": {"items": ["spotify:playlist:x"]}},
    {"contents": {"items": [{"uri": 42}]}},
    {"contents": "not an object"},
    {"contents": ["items"]},
    {"type": "folder", "children": [{"type": "folder", "name": 5, "children": []}]},
    {"type": "folder", "children": [{"type": "playlist", "uri": ["spotify:playlist:x"]}]},
    {"type": "folder", "children": "spotify:playlist:x"},
    {"type": "folder", "children": ["spotify:playlist:x"]},
]


class TestBuildFolderMap:
    """Test flattening a folder tree"""

    def test_nested_folders(self):
        tree = Folder("Rock", (PlaylistRef(URI_A), Folder("Classic", (PlaylistRef(URI_B),))))

        folder_map = build_folder_map(tree)

        assert dict(folder_map) == {
            URI_A: ("Rock",),
            URI_B: ("Rock", "Classic"),
        }

    def test_root_contributes_no_segment(self):
        tree = Folder(None, (PlaylistRef(URI_A), Folder("Chill", (PlaylistRef(URI_B),))))

        folder_map = build_folder_map(tree)

        assert folder_map[URI_A] == ()
        assert folder_map[URI_B] == ("Chill",)

    def test_folder_names_are_sanitized(self):
        tree = Folder(None, (Folder("R&B / Soul", (PlaylistRef(URI_A),)),))
        assert build_folder_map(tree)[URI_A] == ("R&B _ Soul",)

    def test_empty_folder_name_gets_placeholder(self):
        tree = Folder(None, (Folder("", (PlaylistRef(URI_A),)),))
        assert build_folder_map(tree)[URI_A] == ("Unnamed Folder",)

    @pytest.mark.parametrize("name", [".", ".."])
    def test_relative_folder_names_get_placeholder(self, name):
        tree = Folder(None, (Folder(name, (Folder(name, (PlaylistRef(URI_A),)),)),))
        assert build_folder_map(tree)[URI_A] == ("Unnamed Folder", "Unnamed Folder")

    def test_duplicate_uri_keeps_last_path(self):
        tree = Folder(None, (
            Folder("First", (PlaylistRef(URI_A),)),
            Folder("Second", (PlaylistRef(URI_A),)),
        ))
        assert build_folder_map(tree)[URI_A] == ("Second",)

    def test_map_is_read_only(self):
        folder_map = build_folder_map(Folder(None, (PlaylistRef(URI_A),)))
        with pytest.raises(TypeError):
            folder_map[URI_B] = ("x",)


class TestParseFolderTree:
    """Test parsing both rootlist document shapes"""

    def test_nested_tree_document(self):
        document = {
            "type": "folder",
            "name": "ignored root name",
            "children": [
                {"type": "playlist", "uri": URI_A},
                {"type": "folder", "name": "Rock", "children": [
                    {"type": "playlist", "uri": URI_B},
                    {"type": "folder", "name": "Classic", "children": [
                        {"type": "playlist", "uri": URI_C},
                    ]},
                ]},
                {"type": "something-else"},
                {"type": "playlist"},
            ],
        }

        root = parse_folder_tree(document)

        assert root.name is None
        assert dict(build_folder_map(root)) == {
            URI_A: (),
            URI_B: ("Rock",),
            URI_C: ("Rock", "Classic"),
        }

    def test_flat_rootlist_document(self):
        document = {"contents": {"items": [
            {"uri": URI_A},
            {"uri": "spotify:start-group:1f2e:Rock+%26+Roll"},
            {"uri": URI_B},
            {"uri": "spotify:start-group:9a8b:Classic"},
            {"uri": URI_C},
            {"uri": "spotify:end-group:9a8b"},
            {"uri": "spotify:end-group:1f2e"},
        ]}}

        folder_map = build_folder_map(parse_folder_tree(document))

        assert dict(folder_map) == {
            URI_A: (),
            URI_B: ("Rock & Roll",),
            URI_C: ("Rock & Roll", "Classic"),
        }

    def test_flat_rootlist_unbalanced_markers(self):
        document = {"contents": {"items": [
            {"uri": "spotify:end-group:stray"},
            {"uri": "spotify:start-group:1:Open"},
            {"uri": URI_A},
        ]}}

        folder_map = build_folder_map(parse_folder_tree(document))

        assert folder_map[URI_A] == ("Open",)

    def test_unrecognized_document(self):
        with pytest.raises(FolderTreeError):
            parse_folder_tree({"revision": "abc"})

    def test_contents_without_items(self):
        with pytest.raises(FolderTreeError):
            parse_folder_tree({"contents": {}})

    def test_not_an_object(self):
        with pytest.raises(FolderTreeError):
            parse_folder_tree(["not", "a", "dict"])

    def test_flat_rootlist_dot_dot_group_stays_inside(self):
        document = {"contents": {"items": [
            {"uri": "spotify:start-group:1:.."},
            {"uri": "spotify:start-group:2:.."},
            {"uri": URI_A},
        ]}}

        folder_map = build_folder_map(parse_folder_tree(document))

        assert folder_map[URI_A] == ("Unnamed Folder", "Unnamed Folder")

    def test_flat_rootlist_skips_null_entries(self):
        document = {"contents": {"items": [None, {"uri": URI_A}]}}
        assert build_folder_map(parse_folder_tree(document))[URI_A] == ()

    @pytest.mark.parametrize("document", MALFORMED_DOCUMENTS)
    def test_malformed_document_is_folder_tree_error(self, document):
        with pytest.raises(FolderTreeError):
            parse_folder_tree(document)


class TestRootlistClient:
    """Test the rootlist HTTP client"""

    def _client(self, response=None, side_effect=None):
        session = Mock(spec=requests.Session)
        session.get.return_value = response
        session.get.side_effect = side_effect
        client = RootlistClient("tok", "https://example.test/user/{user_id}/rootlist", session=session)
        return client, session

    def test_fetch_sends_bearer_token(self):
        response = Mock(status_code=200)
        response.json.return_value = {"contents": {"items": []}}
        client, session = self._client(response)

        assert client.fetch("alice") == {"contents": {"items": []}}

        args, kwargs = session.get.call_args
        assert args[0] == "https://example.test/user/alice/rootlist"
        assert kwargs["headers"]["Authorization"] == "Bearer tok"

    @pytest.mark.parametrize("status", [401, 403])
    def test_rejected_token_is_auth_error(self, status):
        client, _ = self._client(Mock(status_code=status))

        with pytest.raises(FolderTreeError) as exc_info:
            client.fetch("alice")
        assert exc_info.value.is_auth_error is True

    def test_server_error(self):
        response = Mock(status_code=500)
        response.raise_for_status.side_effect = requests.HTTPError("500 Server Error")
        client, _ = self._client(response)

        with pytest.raises(FolderTreeError) as exc_info:
            client.fetch("alice")
        assert exc_info.value.is_auth_error is False

    def test_network_error(self):
        client, _ = self._client(side_effect=requests.ConnectionError("down"))
        with pytest.raises(FolderTreeError):
            client.fetch("alice")

    def test_invalid_json(self):
        response = Mock(status_code=200)
        response.json.side_effect = ValueError("no json")
        client, _ = self._client(response)

        with pytest.raises(FolderTreeError):
            client.fetch("alice")


class TestResolveFolderMap:
    """Test the degrade-to-root policy"""

    def test_success(self):
        rootlist_client = Mock()
        rootlist_client.fetch.return_value = {"type": "folder", "children": [
            {"type": "folder", "name": "Rock", "children": [{"type": "playlist", "uri": URI_A}]},
        ]}

        folder_map = resolve_folder_map(rootlist_client, "alice")

        rootlist_client.fetch.assert_called_once_with("alice")
        assert folder_map[URI_A] == ("Rock",)

    def test_expired_token_degrades_to_empty_map(self, caplog):
        rootlist_client = Mock()
        rootlist_client.fetch.side_effect = FolderTreeError("Rootlist token rejected", is_auth_error=True)

        folder_map = resolve_folder_map(rootlist_client, "alice")

        assert folder_map is EMPTY_FOLDER_MAP
        assert "without folders" in caplog.text

    def test_unparseable_document_degrades_to_empty_map(self):
        rootlist_client = Mock()
        rootlist_client.fetch.return_value = {"unexpected": True}

        assert resolve_folder_map(rootlist_client, "alice") == {}

    @pytest.mark.parametrize("document", MALFORMED_DOCUMENTS)
    def test_malformed_document_degrades_to_empty_map(self, document, caplog):
        rootlist_client = Mock()
        rootlist_client.fetch.return_value = document

        folder_map = resolve_folder_map(rootlist_client, "alice")

        assert folder_map is EMPTY_FOLDER_MAP
        assert "without folders" in caplog.text
