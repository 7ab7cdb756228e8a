"""
Utility functions for spot-exporter.

This module provides common helpers used across the application:
    - Filename sanitization for display names and safe path segments
    - Directory creation
    - Canonical JSON document writing

Usage:
    from spot_exporter.utils import (
        sanitize_filename,
        safe_path_segment,
        ensure_directory,
        write_json
    )
"""

import json
import re
from pathlib import Path
from typing import Any


# Characters that are reserved in path segments on Windows and/or POSIX
_RESERVED_CHARS_PATTERN = re.compile(r'[\\/:*?"<>|]')

# Segments that Path would collapse or resolve upwards
_UNSAFE_SEGMENTS = frozenset({"", ".", ".."})

JSON_INDENT = 2


def sanitize_filename(name: str) -> str:
    """
    Make a display string safe for use as a single path segment.

    Args:
        name: Playlist, album, show, artist or folder name.

    Returns:
        The same string with each of  \\ / : * ? " < > |  replaced by one
        underscore.

    Sanitization Rules:
        - Every other character passes through untouched, including
          Unicode, emoji and leading/trailing whitespace
        - No truncation, no collapsing of repeated underscores
        - Idempotent: sanitize_filename(sanitize_filename(s)) == sanitize_filename(s)

    Note:
        Two names that differ only in reserved characters map to the same
        segment ("AC/DC" and "AC:DC" both become "AC_DC"). The later file
        silently overwrites the earlier one.

    Examples:
        sanitize_filename("AC/DC")         # "AC_DC"
        sanitize_filename("What?!")        # "What_!"
        sanitize_filename("  Café  ")      # "  Café  "
    """
    return _RESERVED_CHARS_PATTERN.sub("_", name)


def safe_path_segment(name: str, placeholder: str) -> str:
    """
    Sanitize a display name into one path component that stays in its parent.

    Empty results and the relative components "." and ".." are replaced by
    placeholder, so a segment can never be dropped by Path or climb out of
    the export root.

    Examples:
        safe_path_segment("AC/DC", "Unknown Artist")   # "AC_DC"
        safe_path_segment("..", "Unknown Show")        # "Unknown Show"
    """
    segment = sanitize_filename(name)
    if segment in _UNSAFE_SEGMENTS:
        return placeholder
    return segment


def ensure_directory(path: Path) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        path: Path to the directory.

    Returns:
        The same path (for chaining).

    Raises:
        OSError: If directory cannot be created (permissions, etc.)
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def write_json(path: Path, data: Any) -> Path:
    """
    Write a JSON document with stable two-space indentation.

    The file is UTF-8 with non-ASCII characters kept readable, ends with a
    newline, and is overwritten unconditionally if it exists. Key order
    follows the dict's insertion order so repeated exports diff cleanly.

    Args:
        path: Target file. Its parent directory must already exist.
        data: JSON-serializable document.

    Returns:
        The path written.
    """
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=JSON_INDENT, ensure_ascii=False)
        f.write("\n")
    return path
