"""Google authentication and account exceptions."""


class GdcliError(Exception):
    """Base exception for all gdcli errors."""

    pass


class CredentialsNotConfiguredError(GdcliError):
    """Raised when no OAuth client credentials have been stored."""

    def __init__(self, message: str | None = None):
        super().__init__(
            message
            or "No credentials configured. Run: gdcli accounts credentials <credentials.json>"
        )


class AccountNotFoundError(GdcliError):
    """Raised when an operation names an account that is not stored."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Account '{email}' not found")


class AccountExistsError(GdcliError):
    """Raised when adding an account that is already stored."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Account '{email}' already exists")


class AuthorizationError(GdcliError):
    """Base exception for failures while capturing the authorization code."""

    pass


class AuthorizationDeniedError(AuthorizationError):
    """Raised when the redirect carries no code, e.g. the user declined consent."""

    def __init__(self, error: str | None = None):
        self.error = error
        if error:
            message = f"Authorization denied: {error}"
        else:
            message = "Authorization denied: no authorization code in redirect URL"
        super().__init__(message)


class InvalidRedirectError(AuthorizationError):
    """Raised when the captured redirect is neither a URL nor contains a code."""

    def __init__(self, redirect_url: str):
        self.redirect_url = redirect_url
        super().__init__(f"Invalid redirect URL: {redirect_url}")


class AuthorizationCancelledError(AuthorizationError):
    """Raised when the redirect listener is stopped before a redirect arrives."""

    pass


class AuthorizationTimeoutError(AuthorizationCancelledError):
    """Raised when no redirect arrives within the allowed time."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"No authorization redirect received within {timeout:g} seconds")


class TokenExchangeError(GdcliError):
    """Raised when the provider rejects the authorization code."""

    pass


class MissingRefreshTokenError(TokenExchangeError):
    """Raised when the token response carries no refresh token."""

    def __init__(self):
        super().__init__(
            "No refresh token received. Revoke the app's access in your Google account "
            "settings and try again."
        )


class FlowStateError(GdcliError):
    """Raised when an OAuthFlow instance is reused after it has run."""

    pass


class UnsupportedExportError(GdcliError):
    """Raised when a Google-native file type has no export format."""

    def __init__(self, mime_type: str):
        self.mime_type = mime_type
        super().__init__(f"Cannot export Google file type: {mime_type}")
