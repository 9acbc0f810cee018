"""Google OAuth 2.0 installed-application flow using Authlib.

One :class:`OAuthFlow` instance performs at most one authorization:

    NOT_STARTED -> AWAITING_CODE -> EXCHANGED
                              \\-> FAILED

The flow produces a refresh/access token pair and never touches
:class:`~gdcli.google.storage.AccountStorage`; persisting the result is the
caller's job.
"""

from __future__ import annotations

import enum
import http.server
import logging
import re
import threading
import time
import webbrowser
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any
from urllib.parse import parse_qs, unquote, urlparse

import requests
from authlib.common.errors import AuthlibBaseError
from authlib.integrations.requests_client import OAuth2Session
from authlib.oauth2.rfc6749.parameters import prepare_grant_uri

from gdcli.config import get_redirect_port
from gdcli.google.exceptions import (
    AuthorizationCancelledError,
    AuthorizationDeniedError,
    AuthorizationTimeoutError,
    FlowStateError,
    InvalidRedirectError,
    MissingRefreshTokenError,
    TokenExchangeError,
)

logger = logging.getLogger(__name__)


DEFAULT_SCOPES = (
    "https://www.googleapis.com/auth/drive",
    "https://www.googleapis.com/auth/documents",
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/presentations",
)

# Seconds between checks of the cancel event while listening
_POLL_INTERVAL = 1.0

_CODE_FRAGMENT = re.compile(r"(?:^|[?&#])code=([^&#\s]*)")

_SUCCESS_PAGE = """<html>
<head><title>Authorization Successful</title></head>
<body style="font-family: sans-serif; padding: 40px; text-align: center;">
    <h1 style="color: #28a745;">Authorization Successful</h1>
    <p>You can close this window and return to your terminal.</p>
</body>
</html>
"""

_FAILURE_PAGE = """<html>
<head><title>Authorization Failed</title></head>
<body style="font-family: sans-serif; padding: 40px; text-align: center;">
    <h1 style="color: #dc3545;">Authorization Failed</h1>
    <p>Please close this window and check your terminal.</p>
</body>
</html>
"""


class FlowState(enum.Enum):
    NOT_STARTED = "not_started"
    AWAITING_CODE = "awaiting_code"
    EXCHANGED = "exchanged"
    FAILED = "failed"


@dataclass
class OAuthResult:
    """Tokens obtained by a completed authorization."""

    refresh_token: str
    access_token: str | None = None


class OAuthFlow:
    """OAuth 2.0 authorization-code flow for a single Google account.

    Example:
        >>> flow = OAuthFlow(client_id="...", client_secret="...")
        >>> result = flow.authorize()            # opens the browser
        >>> result = flow.authorize(manual=True)  # paste the redirect URL instead
        >>> result.refresh_token
    """

    AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        scopes: list[str] | None = None,
        redirect_port: int | None = None,
        *,
        prompt: Callable[[str], str] = input,
        output: Callable[[str], Any] = print,
        open_browser: Callable[[str], Any] = webbrowser.open,
    ) -> None:
        """Initialize the flow.

        Args:
            client_id: OAuth client ID.
            client_secret: OAuth client secret.
            scopes: Full scope URLs. Defaults to Drive, Docs, Sheets and Slides.
            redirect_port: Local port for the redirect listener.
                Defaults to ``GDCLI_REDIRECT_PORT`` or 3000.
            prompt: Reads the pasted redirect URL in manual mode.
            output: Displays messages to the user.
            open_browser: Opens the authorization URL.
        """
        self.client_id = client_id
        self.client_secret = client_secret
        self.scopes = list(scopes) if scopes else self.get_default_scopes()
        self.redirect_port = redirect_port if redirect_port is not None else get_redirect_port()
        self.redirect_uri = f"http://localhost:{self.redirect_port}"

        self._prompt = prompt
        self._output = output
        self._open_browser = open_browser
        self.state = FlowState.NOT_STARTED

        self.session = OAuth2Session(
            client_id=self.client_id,
            client_secret=self.client_secret,
            scope=" ".join(self.scopes),
            redirect_uri=self.redirect_uri,
            token_endpoint_auth_method="client_secret_post",
        )

    @staticmethod
    def get_default_scopes() -> list[str]:
        """Return a new list of the default scopes."""
        return list(DEFAULT_SCOPES)

    def get_auth_url(self) -> str:
        """Build the Google authorization URL.

        ``access_type=offline`` is required for a refresh token, and
        ``prompt=consent`` makes Google issue one again for returning users.
        """
        return prepare_grant_uri(
            self.AUTHORIZE_URL,
            client_id=self.client_id,
            response_type="code",
            redirect_uri=self.redirect_uri,
            scope=self.scopes,
            access_type="offline",
            prompt="consent",
        )

    def extract_code_from_url(self, redirect_url: str) -> str:
        """Extract the authorization code from a redirect URL.

        Args:
            redirect_url: The URL Google redirected to, or what the user pasted.

        Returns:
            The percent-decoded ``code`` parameter.

        Raises:
            AuthorizationDeniedError: URL parsed but has no code (e.g. ``error=access_denied``).
            InvalidRedirectError: Not a URL and no ``code=`` fragment to recover.
        """
        redirect_url = redirect_url.strip()
        parsed = urlparse(redirect_url)

        if parsed.scheme and parsed.netloc:
            params = parse_qs(parsed.query)
            if "code" in params:
                return params["code"][0]
            error = params.get("error")
            raise AuthorizationDeniedError(error[0] if error else None)

        # Not an absolute URL; recover a pasted fragment like "...?code=abc"
        match = _CODE_FRAGMENT.search(redirect_url)
        if match and match.group(1):
            return unquote(match.group(1))

        raise InvalidRedirectError(redirect_url)

    def exchange_code(self, code: str) -> OAuthResult:
        """Exchange an authorization code for tokens.

        Raises:
            TokenExchangeError: Google rejected the code (expired, reused, invalid).
            MissingRefreshTokenError: The response has no refresh token.
        """
        try:
            token = self.session.fetch_token(self.TOKEN_URL, code=code)
        except (AuthlibBaseError, requests.RequestException) as e:
            raise TokenExchangeError(f"Token exchange failed: {e}") from e

        refresh_token = token.get("refresh_token")
        if not refresh_token:
            raise MissingRefreshTokenError()

        logger.info("Authorization code exchanged for tokens")
        return OAuthResult(
            refresh_token=refresh_token,
            access_token=token.get("access_token") or None,
        )

    def authorize(
        self,
        manual: bool = False,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> OAuthResult:
        """Run the complete authorization flow.

        Args:
            manual: Prompt for the pasted redirect URL instead of listening
                on the local redirect port.
            timeout: Seconds to wait for the browser redirect. None waits
                until cancelled.
            cancel_event: Set from another thread to abort the wait.

        Returns:
            The refresh token and, if issued, the access token.

        Raises:
            FlowStateError: This instance has already been used.
            AuthorizationError: No usable code was captured.
            TokenExchangeError: The code could not be exchanged.
        """
        if self.state is not FlowState.NOT_STARTED:
            raise FlowStateError(
                "OAuthFlow instances authorize once; create a new flow to retry"
            )

        self.state = FlowState.AWAITING_CODE
        try:
            url = self.get_auth_url()
            if manual:
                redirect_url = self._prompt_for_redirect(url)
            else:
                redirect_url = self._wait_for_redirect(url, timeout, cancel_event)

            code = self.extract_code_from_url(redirect_url)
            result = self.exchange_code(code)
        except BaseException:
            self.state = FlowState.FAILED
            raise

        self.state = FlowState.EXCHANGED
        return result

    def _prompt_for_redirect(self, url: str) -> str:
        self._output(f"Open this URL in your browser:\n\n  {url}\n")
        self._output("After granting access, your browser is redirected to a page that")
        self._output("may fail to load. Copy the full URL from the address bar.\n")
        return self._prompt("Paste redirect URL: ").strip()

    def _wait_for_redirect(
        self,
        url: str,
        timeout: float | None,
        cancel_event: threading.Event | None,
    ) -> str:
        """Listen on the redirect port until one redirect with a code or error arrives."""
        captured: dict[str, str] = {}
        handler_class = _create_handler_class(captured, self.redirect_uri)

        server = http.server.HTTPServer(("127.0.0.1", self.redirect_port), handler_class)
        server.timeout = _POLL_INTERVAL
        logger.info(f"Listening for OAuth redirect on {self.redirect_uri}")

        try:
            self._output(f"Open this URL in your browser if it does not open automatically:\n\n  {url}\n")
            try:
                self._open_browser(url)
            except webbrowser.Error as e:
                logger.warning(f"Could not open browser: {e}")

            deadline = time.monotonic() + timeout if timeout is not None else None
            while "url" not in captured:
                if cancel_event is not None and cancel_event.is_set():
                    raise AuthorizationCancelledError("Authorization cancelled")
                if deadline is not None and time.monotonic() >= deadline:
                    raise AuthorizationTimeoutError(timeout)
                server.handle_request()
        finally:
            server.server_close()
            logger.info("Stopped OAuth redirect listener")

        return captured["url"]


def _create_handler_class(captured: dict[str, str], base_url: str) -> type:
    """Create the HTTP handler class that records the first redirect."""

    class RedirectHandler(http.server.BaseHTTPRequestHandler):
        """Receives Google's redirect carrying ``code`` or ``error``."""

        def log_message(self, format: str, *args: Any) -> None:
            logger.debug(f"Redirect listener: {format % args}")

        def do_GET(self) -> None:
            params = parse_qs(urlparse(self.path).query)

            if "url" in captured or ("code" not in params and "error" not in params):
                self._send_html("<html><body>Not found</body></html>", 404)
                return

            captured["url"] = f"{base_url}{self.path}"
            if "code" in params:
                self._send_html(_SUCCESS_PAGE)
            else:
                self._send_html(_FAILURE_PAGE, 400)

        def _send_html(self, content: str, status: int = 200) -> None:
            body = content.encode("utf-8")
            self.send_response(status)
            self.send_header("Content-Type", "text/html; charset=utf-8")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

    return RedirectHandler
