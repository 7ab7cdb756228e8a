"""
Exception classes for spot-exporter.

This module defines all custom exceptions used throughout the application.
Each exception carries a human-readable message plus an optional details
dictionary, so the CLI can print something actionable while the log file
keeps the full context.

Exception Hierarchy:
    SpotExporterError (base)
        ConfigError - Configuration file / environment issues
        AuthenticationError - OAuth consent or code exchange failed
        SpotifyError - Primary Spotify Web API issues
        FolderTreeError - Unofficial rootlist endpoint issues
        ExportError - Writing the export tree to disk failed
"""


class SpotExporterError(Exception):
    """
    Base exception for all spot-exporter errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (e.g., URLs, paths).

    Example:
        try:
            exporter.run()
        except SpotExporterError as e:
            logger.error(f"Export failed: {e.message}")
            if e.details:
                logger.debug(f"Details: {e.details}")
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigError(SpotExporterError):
    """
    Raised when the configuration is missing or invalid.

    This is a CRITICAL error that stops execution before any request is made.

    Common causes:
        - client_id / client_secret neither in config.yaml nor in the environment
        - config.yaml has invalid YAML syntax
        - Unknown collection type in export.collections
        - page_size outside 1..50
    """
    pass


class AuthenticationError(SpotExporterError):
    """
    Raised when the OAuth authorization flow fails.

    The local callback listener catches this, shows the error page and keeps
    waiting for another login attempt. It only reaches the CLI when the
    listener itself cannot start or an explicit access token is rejected.

    Common causes:
        - User denied consent (callback carries ?error=access_denied)
        - Authorization code expired or already used
        - Redirect URI mismatch with the Developer Dashboard settings
    """
    pass


class SpotifyError(SpotExporterError):
    """
    Raised when a primary Spotify Web API call fails.

    Any SpotifyError aborts the running export stage; the export is never
    resumed or retried by the exporter itself.

    Attributes:
        is_auth_error: True if the access token was rejected (401).
        is_rate_limit: True if Spotify answered 429 Too Many Requests.
        retry_after: Seconds Spotify asked us to wait, when it said so.

    Example:
        raise SpotifyError(
            "Rate limited while fetching saved albums",
            details={"http_status": 429},
            is_rate_limit=True,
            retry_after=30
        )
    """

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        is_auth_error: bool = False,
        is_rate_limit: bool = False,
        retry_after: int | None = None
    ) -> None:
        super().__init__(message, details)
        self.is_auth_error = is_auth_error
        self.is_rate_limit = is_rate_limit
        self.retry_after = retry_after


class FolderTreeError(SpotExporterError):
    """
    Raised when the playlist folder hierarchy cannot be retrieved.

    This is a NON-CRITICAL error: the folder resolver logs it and falls
    back to placing every playlist at the root of Playlists/.

    Attributes:
        is_auth_error: True if the rootlist bearer token was rejected.
                       These tokens are short-lived and supplied by hand,
                       so expiry is the most common cause.
    """

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        is_auth_error: bool = False
    ) -> None:
        super().__init__(message, details)
        self.is_auth_error = is_auth_error


class ExportError(SpotExporterError):
    """
    Raised when an exported document cannot be written.

    Common causes:
        - Permission denied on the output directory
        - Disk full
        - Path too long for the filesystem
    """
    pass
