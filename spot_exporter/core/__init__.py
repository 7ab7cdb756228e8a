"""
Core module for spot-exporter.

This module provides the foundational components used throughout the application:
    - exceptions: Custom exception classes for error handling
    - config: Configuration loading and validation
    - logger: Logging system with console and file outputs

Usage:
    from spot_exporter.core import (
        Config, load_config,
        setup_logging, get_logger,
        SpotExporterError, ConfigError, SpotifyError
    )
"""

from spot_exporter.core.config import (
    Config,
    ExportConfig,
    FoldersConfig,
    OutputConfig,
    SpotifyConfig,
    load_config,
)
from spot_exporter.core.exceptions import (
    AuthenticationError,
    ConfigError,
    ExportError,
    FolderTreeError,
    SpotExporterError,
    SpotifyError,
)
from spot_exporter.core.logger import (
    get_logger,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    # Config
    "Config",
    "SpotifyConfig",
    "OutputConfig",
    "ExportConfig",
    "FoldersConfig",
    "load_config",
    # Exceptions
    "SpotExporterError",
    "ConfigError",
    "AuthenticationError",
    "SpotifyError",
    "FolderTreeError",
    "ExportError",
    # Logger
    "setup_logging",
    "get_logger",
    "shutdown_logging",
]
