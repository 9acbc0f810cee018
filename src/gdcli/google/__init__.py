"""Google OAuth, account storage, and API client base."""

from gdcli.google.exceptions import (
    AccountExistsError,
    AccountNotFoundError,
    AuthorizationCancelledError,
    AuthorizationDeniedError,
    AuthorizationError,
    AuthorizationTimeoutError,
    CredentialsNotConfiguredError,
    FlowStateError,
    GdcliError,
    InvalidRedirectError,
    MissingRefreshTokenError,
    TokenExchangeError,
    UnsupportedExportError,
)
from gdcli.google.oauth import FlowState, OAuthFlow, OAuthResult
from gdcli.google.service import GoogleService
from gdcli.google.storage import Account, AccountStorage, OAuth2Credentials, StoredCredentials

__all__ = [
    "Account",
    "AccountStorage",
    "OAuth2Credentials",
    "StoredCredentials",
    "OAuthFlow",
    "OAuthResult",
    "FlowState",
    "GoogleService",
    "GdcliError",
    "CredentialsNotConfiguredError",
    "AccountNotFoundError",
    "AccountExistsError",
    "AuthorizationError",
    "AuthorizationDeniedError",
    "InvalidRedirectError",
    "AuthorizationCancelledError",
    "AuthorizationTimeoutError",
    "TokenExchangeError",
    "MissingRefreshTokenError",
    "FlowStateError",
    "UnsupportedExportError",
]
