"""
Export module for spot-exporter.

    - projector: raw items -> (relative path, JSON record), file writing
    - orchestrator: stage sequencing (LibraryExporter, export_library)
"""

from spot_exporter.export.orchestrator import (
    ALL_COLLECTIONS,
    STAGE_ORDER,
    CollectionType,
    ExportResult,
    LibraryExporter,
    export_library,
)
from spot_exporter.export.projector import (
    ProjectedEntity,
    project_album,
    project_artist,
    project_liked_songs,
    project_playlist,
    project_show,
    write_entity,
)

__all__ = [
    "CollectionType",
    "STAGE_ORDER",
    "ALL_COLLECTIONS",
    "ExportResult",
    "LibraryExporter",
    "export_library",
    "ProjectedEntity",
    "project_album",
    "project_playlist",
    "project_liked_songs",
    "project_show",
    "project_artist",
    "write_entity",
]
