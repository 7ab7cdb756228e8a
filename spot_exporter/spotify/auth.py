"""
OAuth2 authorization code flow for spot-exporter.

This module obtains a SpotifySession for the user whose library is
exported. It does not store or refresh tokens: one login serves one
export run.

Flow:
    1. wait_for_session() starts a local HTTP listener on the host and
       port of the configured redirect URI
    2. The user opens http://<host>:<port>/login, which redirects to
       Spotify's consent page
    3. Spotify redirects back to /callback?code=... (or ?error=...)
    4. The code is exchanged for tokens; the listener stops and the
       session is returned to the caller

A denied consent or a failed exchange shows an error page and the
listener keeps waiting, so the user can simply try again.

Usage:
    authenticator = SpotifyAuthenticator(config.spotify)
    session = wait_for_session(authenticator)
    client = SpotifyClient(session)
"""

import html
import urllib.parse
import webbrowser
from http.server import BaseHTTPRequestHandler, HTTPServer

import requests
from spotipy.cache_handler import MemoryCacheHandler
from spotipy.oauth2 import SpotifyOAuth, SpotifyOauthError

from spot_exporter.core.config import SpotifyConfig
from spot_exporter.core.exceptions import AuthenticationError
from spot_exporter.core.logger import get_logger
from spot_exporter.spotify.client import SpotifySession

logger = get_logger(__name__)


LOGIN_PATH = "/login"

SUCCESS_HTML = """
<html>
<head><title>Authorization Success</title></head>
<body style="font-family: Arial, sans-serif; text-align: center; margin-top: 50px;">
    <h1 style="color: #1DB954;">Authentication successful!</h1>
    <p>You can close this tab. The export is running, check your console.</p>
</body>
</html>
"""

ERROR_HTML = """
<html>
<head><title>Authorization Error</title></head>
<body style="font-family: Arial, sans-serif; text-align: center; margin-top: 50px;">
    <h1 style="color: #E22134;">Authorization Failed</h1>
    <p>Error: {error}</p>
    <p><a href="{login_path}">Try again</a></p>
</body>
</html>
"""


class SpotifyAuthenticator:
    """
    Builds the consent URL and exchanges authorization codes.

    Tokens are kept in memory only (spotipy MemoryCacheHandler), so no
    .cache file is written next to the export.
    """

    def __init__(self, spotify_config: SpotifyConfig) -> None:
        self.redirect_uri = spotify_config.redirect_uri
        self._cache = MemoryCacheHandler()
        self._oauth = SpotifyOAuth(
            client_id=spotify_config.client_id,
            client_secret=spotify_config.client_secret,
            redirect_uri=spotify_config.redirect_uri,
            scope=" ".join(spotify_config.scopes),
            cache_handler=self._cache,
            open_browser=False
        )

    def authorize_url(self) -> str:
        """Return the Spotify consent page URL to redirect the user to."""
        return self._oauth.get_authorize_url()

    def exchange_code(self, code: str) -> SpotifySession:
        """
        Exchange an authorization code for a session.

        Raises:
            AuthenticationError: If Spotify rejects the code or cannot be reached.
        """
        try:
            self._oauth.get_access_token(code, as_dict=False, check_cache=False)
        except (SpotifyOauthError, requests.RequestException) as e:
            raise AuthenticationError(
                f"Failed to exchange authorization code: {e}",
                details={"original_error": str(e)}
            ) from e

        token_info = self._cache.get_cached_token()
        if not token_info or not token_info.get("access_token"):
            raise AuthenticationError("Spotify returned no access token")

        return SpotifySession(
            access_token=token_info["access_token"],
            refresh_token=token_info.get("refresh_token"),
            expires_at=token_info.get("expires_at")
        )


class CallbackServer(HTTPServer):
    """
    Local listener holding the state of one login.

    Attributes:
        authenticator: Used to build the consent URL and exchange codes.
        callback_path: Path component of the redirect URI.
        session: Set once a code has been exchanged successfully.
    """

    def __init__(self, address: tuple[str, int], authenticator: SpotifyAuthenticator) -> None:
        super().__init__(address, CallbackHandler)
        self.authenticator = authenticator
        self.callback_path = urllib.parse.urlparse(authenticator.redirect_uri).path or "/"
        self.session: SpotifySession | None = None


class CallbackHandler(BaseHTTPRequestHandler):
    """Serves /login and the OAuth callback."""

    server: CallbackServer

    def do_GET(self) -> None:
        parsed_url = urllib.parse.urlparse(self.path)
        query_params = urllib.parse.parse_qs(parsed_url.query)

        if parsed_url.path == LOGIN_PATH:
            self.send_response(302)
            self.send_header("Location", self.server.authenticator.authorize_url())
            self.end_headers()
            return

        if parsed_url.path != self.server.callback_path:
            self.send_error(404)
            return

        if "error" in query_params:
            error = query_params["error"][0]
            logger.error(f"Callback error: {error}")
            self._send_html(400, ERROR_HTML.format(error=html.escape(error), login_path=LOGIN_PATH))
            return

        if "code" not in query_params:
            self._send_html(400, ERROR_HTML.format(error="missing code", login_path=LOGIN_PATH))
            return

        try:
            session = self.server.authenticator.exchange_code(query_params["code"][0])
        except AuthenticationError as e:
            logger.error(f"Error getting tokens: {e.message}")
            self._send_html(400, ERROR_HTML.format(error=html.escape(e.message), login_path=LOGIN_PATH))
            return

        self.server.session = session
        logger.info("Successfully authenticated with Spotify")
        self._send_html(200, SUCCESS_HTML)

    def log_message(self, format: str, *args) -> None:
        logger.debug(f"Callback server: {format % args}")

    def _send_html(self, status: int, body: str) -> None:
        self.send_response(status)
        self.send_header("Content-type", "text/html; charset=utf-8")
        self.end_headers()
        self.wfile.write(body.encode("utf-8"))


def wait_for_session(
    authenticator: SpotifyAuthenticator,
    open_browser: bool = True
) -> SpotifySession:
    """
    Run the local login listener until one login succeeds.

    Requests are handled one at a time on the calling thread. Failed
    attempts leave the listener running.

    Args:
        authenticator: Configured authenticator.
        open_browser: Open the login page in the default browser.

    Returns:
        The session of the first successful login.

    Raises:
        AuthenticationError: If the listener cannot bind to the redirect
                             URI's host and port.
    """
    parsed = urllib.parse.urlparse(authenticator.redirect_uri)
    host = parsed.hostname or "127.0.0.1"
    port = parsed.port or 80

    try:
        server = CallbackServer((host, port), authenticator)
    except OSError as e:
        raise AuthenticationError(
            f"Cannot listen on {host}:{port} for the OAuth callback: {e}",
            details={"redirect_uri": authenticator.redirect_uri}
        ) from e

    login_url = f"http://{host}:{port}{LOGIN_PATH}"
    logger.info(f"Open your browser and go to: {login_url}")
    logger.info("Waiting for you to authorize the application...")
    if open_browser:
        webbrowser.open(login_url)

    try:
        while server.session is None:
            server.handle_request()
    finally:
        server.server_close()

    return server.session
