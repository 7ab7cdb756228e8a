"""
Playlist folder reconstruction.

The public Web API lists playlists flat; the folders users arrange them
in only exist in the unofficial "rootlist" served by Spotify's own
clients. This module fetches that document, folds it into a tree of
Folder / PlaylistRef nodes, and flattens the tree into a FolderMap:

    {"spotify:playlist:abc": ("Rock", "Classic"), ...}

Two document shapes are understood:

    Nested tree (as produced by folder-export tools):
        {"type": "folder", "children": [
            {"type": "folder", "name": "Rock", "children": [
                {"type": "playlist", "uri": "spotify:playlist:abc"}]}]}

    Flat spclient rootlist (start/end markers around each folder):
        {"contents": {"items": [
            {"uri": "spotify:start-group:7f2a:Rock"},
            {"uri": "spotify:playlist:abc"},
            {"uri": "spotify:end-group:7f2a"}]}}

Failure Policy:
    The rootlist needs its own short-lived bearer token, obtained by hand.
    Any failure to fetch or parse it is logged as a warning and yields an
    empty FolderMap: playlists are then written at the root of Playlists/
    and the export carries on.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Sequence, Union
from urllib.parse import unquote_plus

import requests

from spot_exporter.core.exceptions import FolderTreeError
from spot_exporter.core.logger import get_logger
from spot_exporter.utils import safe_path_segment

logger = get_logger(__name__)


START_GROUP_PREFIX = "spotify:start-group:"
END_GROUP_PREFIX = "spotify:end-group:"

UNNAMED_FOLDER = "Unnamed Folder"

ROOTLIST_PARAMS = {"decorate": "revision,attributes"}


@dataclass(frozen=True)
class PlaylistRef:
    """A playlist leaf in the folder tree."""
    uri: str


@dataclass(frozen=True)
class Folder:
    """
    A folder node.

    Attributes:
        name: Display name. None marks the implicit root, which does not
              contribute a path segment.
        children: Sub-folders and playlists, in rootlist order.
    """
    name: str | None
    children: tuple["FolderNode", ...] = field(default_factory=tuple)


FolderNode = Union[Folder, PlaylistRef]

FolderMap = Mapping[str, tuple[str, ...]]

EMPTY_FOLDER_MAP: FolderMap = MappingProxyType({})


# =========================================================================
# Parsing
# =========================================================================

def parse_folder_tree(document: dict[str, Any]) -> Folder:
    """
    Parse a rootlist document into a root Folder.

    Args:
        document: Either a nested tree or a flat spclient rootlist.

    Returns:
        The root folder (name None).

    Raises:
        FolderTreeError: If the document matches neither shape, or a
                         node, entry, uri or name has the wrong type.
    """
    if not isinstance(document, dict):
        raise FolderTreeError("Rootlist document is not a JSON object")

    if "contents" in document:
        contents = document.get("contents")
        if not isinstance(contents, dict):
            raise FolderTreeError("Rootlist 'contents' is not a JSON object")
        items = contents.get("items")
        if not isinstance(items, list):
            raise FolderTreeError("Rootlist 'contents.items' is missing or not a list")
        return _fold_flat_rootlist(items)

    if document.get("type") == "folder":
        root = _parse_node(document)
        # The top-level node is the implicit root even if it carries a name
        return Folder(name=None, children=root.children)

    raise FolderTreeError(
        "Unrecognized rootlist document",
        details={"keys": sorted(document.keys())}
    )


def _parse_node(node: dict[str, Any]) -> FolderNode | None:
    """Recursively parse one node of the nested tree shape."""
    node_type = node.get("type")

    if node_type == "playlist":
        uri = node.get("uri")
        if uri is not None and not isinstance(uri, str):
            raise FolderTreeError(
                "Rootlist playlist node has a non-string 'uri'",
                details={"uri": repr(uri)}
            )
        return PlaylistRef(uri=uri) if uri else None

    if node_type == "folder":
        name = node.get("name")
        if name is not None and not isinstance(name, str):
            raise FolderTreeError(
                "Rootlist folder node has a non-string 'name'",
                details={"name": repr(name)}
            )

        raw_children = node.get("children") or []
        if not isinstance(raw_children, list):
            raise FolderTreeError(
                "Rootlist folder 'children' is not a list",
                details={"folder": name}
            )

        children = []
        for child in raw_children:
            if not isinstance(child, dict):
                raise FolderTreeError(
                    "Rootlist folder child is not a JSON object",
                    details={"folder": name, "child": repr(child)}
                )
            parsed = _parse_node(child)
            if parsed is not None:
                children.append(parsed)
        return Folder(name=name, children=tuple(children))

    logger.debug(f"Ignoring rootlist node of type {node_type!r}")
    return None


def _fold_flat_rootlist(items: list[dict[str, Any]]) -> Folder:
    """
    Turn start-group/end-group markers into nested folders.

    An end marker with no open group is ignored; groups still open at the
    end of the list are closed implicitly.

    Raises:
        FolderTreeError: If an entry is not an object or its uri is not a string.
    """
    # Each stack frame: (folder name, collected children)
    stack: list[tuple[str | None, list[FolderNode]]] = [(None, [])]

    for position, item in enumerate(items):
        if item is None:
            continue
        if not isinstance(item, dict):
            raise FolderTreeError(
                "Rootlist entry is not a JSON object",
                details={"position": position, "entry": repr(item)}
            )
        uri = item.get("uri") or ""
        if not isinstance(uri, str):
            raise FolderTreeError(
                "Rootlist entry has a non-string 'uri'",
                details={"position": position, "uri": repr(uri)}
            )

        if uri.startswith(START_GROUP_PREFIX):
            # spotify:start-group:<group id>:<url-encoded name>
            _, _, name = uri[len(START_GROUP_PREFIX):].partition(":")
            stack.append((unquote_plus(name), []))
        elif uri.startswith(END_GROUP_PREFIX):
            if len(stack) > 1:
                name, children = stack.pop()
                stack[-1][1].append(Folder(name=name, children=tuple(children)))
        elif uri:
            stack[-1][1].append(PlaylistRef(uri=uri))

    while len(stack) > 1:
        name, children = stack.pop()
        stack[-1][1].append(Folder(name=name, children=tuple(children)))

    return Folder(name=None, children=tuple(stack[0][1]))


# =========================================================================
# Flattening
# =========================================================================

def build_folder_map(node: FolderNode, path: Sequence[str] = ()) -> FolderMap:
    """
    Map every playlist URI in the tree to its sanitized folder path.

    Pre-order walk: a named Folder appends its sanitized name to the
    path and recurses into its children; a PlaylistRef records
    uri -> path. A URI listed twice keeps the last path seen.
    Folder names that sanitize to "", "." or ".." become UNNAMED_FOLDER.

    Args:
        node: Root of the (sub)tree to walk.
        path: Folder path leading to node.

    Returns:
        A read-only mapping.

    Example:
        tree = Folder("Rock", (PlaylistRef("a"), Folder("Classic", (PlaylistRef("b"),))))
        build_folder_map(tree)
        # {"a": ("Rock",), "b": ("Rock", "Classic")}
    """
    folder_map: dict[str, tuple[str, ...]] = {}
    _walk(node, tuple(path), folder_map)
    return MappingProxyType(folder_map)


def _walk(node: FolderNode, path: tuple[str, ...], out: dict[str, tuple[str, ...]]) -> None:
    if isinstance(node, PlaylistRef):
        out[node.uri] = path
        return

    if node.name is not None:
        path = path + (safe_path_segment(node.name, UNNAMED_FOLDER),)

    for child in node.children:
        _walk(child, path, out)


# =========================================================================
# Fetching
# =========================================================================

class RootlistClient:
    """
    HTTP client for the unofficial rootlist endpoint.

    Attributes:
        token: Bearer token copied from an authenticated web player session.
        url_template: Endpoint URL with a {user_id} placeholder.
    """

    def __init__(
        self,
        token: str,
        url_template: str,
        session: requests.Session | None = None
    ) -> None:
        self.token = token
        self.url_template = url_template
        self._session = session or requests.Session()

    def fetch(self, user_id: str) -> dict[str, Any]:
        """
        Fetch the raw rootlist document for a user.

        Raises:
            FolderTreeError: On network errors, non-2xx answers (401/403
                             flagged as auth errors) or a non-JSON body.
        """
        url = self.url_template.format(user_id=user_id)
        headers = {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/json",
        }

        try:
            response = self._session.get(url, headers=headers, params=ROOTLIST_PARAMS)
        except requests.RequestException as e:
            raise FolderTreeError(
                f"Failed to reach rootlist endpoint: {e}",
                details={"url": url, "original_error": str(e)}
            ) from e

        if response.status_code in (401, 403):
            raise FolderTreeError(
                "Rootlist token rejected (expired or invalid)",
                details={"url": url, "http_status": response.status_code},
                is_auth_error=True
            )

        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            raise FolderTreeError(
                f"Rootlist request failed: {e}",
                details={"url": url, "http_status": response.status_code}
            ) from e

        try:
            return response.json()
        except ValueError as e:
            raise FolderTreeError(
                "Rootlist response is not valid JSON",
                details={"url": url}
            ) from e


def resolve_folder_map(rootlist_client: RootlistClient, user_id: str) -> FolderMap:
    """
    Fetch, parse and flatten the user's folder hierarchy.

    Never raises FolderTreeError: on any rootlist failure a warning is
    logged and EMPTY_FOLDER_MAP is returned, so playlists fall back to
    the root of Playlists/.
    """
    logger.info("Fetching playlist folder structure...")

    try:
        document = rootlist_client.fetch(user_id)
        folder_map = build_folder_map(parse_folder_tree(document))
    except FolderTreeError as e:
        if e.is_auth_error:
            logger.warning(
                f"{e.message}. Refresh folders.token (or SPOTIFY_ROOTLIST_TOKEN); "
                "playlists will be written without folders"
            )
        else:
            logger.warning(f"{e.message}; playlists will be written without folders")
        logger.debug(f"Folder tree error details: {e.details}")
        return EMPTY_FOLDER_MAP

    nested = sum(1 for path in folder_map.values() if path)
    logger.info(f"Resolved folders for {nested} of {len(folder_map)} playlists")
    return folder_map
