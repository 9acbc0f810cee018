"""Base class for per-account Google API clients.

Each subclass targets one API surface (``api_name``/``api_version``) and keeps
its own cache of one authenticated handle per account email. Handles are
built on first use and reused until :meth:`GoogleService.clear_client_cache`
evicts them, e.g. after an account's tokens were replaced.
"""

from __future__ import annotations

import logging
from typing import Any

from google.oauth2.credentials import Credentials as GoogleCredentials
from googleapiclient.discovery import build

from gdcli.google.exceptions import AccountNotFoundError
from gdcli.google.storage import Account, AccountStorage

logger = logging.getLogger(__name__)

TOKEN_URI = "https://oauth2.googleapis.com/token"


class GoogleService:
    """Shared credential and API-handle caching for the service clients."""

    api_name: str = ""
    api_version: str = ""

    def __init__(self, storage: AccountStorage | None = None) -> None:
        """Initialize the service.

        Args:
            storage: Account storage to read tokens from. Defaults to storage
                over the default configuration directory.
        """
        self.account_storage = storage if storage is not None else AccountStorage()
        self._credentials: dict[str, GoogleCredentials] = {}
        self._services: dict[str, Any] = {}

    def get_account_storage(self) -> AccountStorage:
        return self.account_storage

    def _get_credentials(self, email: str) -> GoogleCredentials:
        """Get or create the credentials for an account.

        Raises:
            AccountNotFoundError: No account is stored under ``email``.
        """
        if email not in self._credentials:
            account = self.account_storage.get_account(email)
            if account is None:
                raise AccountNotFoundError(email)
            self._credentials[email] = self._create_credentials(account)
        return self._credentials[email]

    def _create_credentials(self, account: Account) -> GoogleCredentials:
        """Build google-auth credentials; the access token is refreshed on demand."""
        oauth2 = account.oauth2
        return GoogleCredentials(
            token=oauth2.access_token,
            refresh_token=oauth2.refresh_token,
            token_uri=TOKEN_URI,
            client_id=oauth2.client_id,
            client_secret=oauth2.client_secret,
        )

    def _get_service(self, email: str) -> Any:
        """Get or create the API service for an account."""
        if email in self._services:
            logger.debug(f"Reusing {self.api_name} client for {email}")
            return self._services[email]

        credentials = self._get_credentials(email)
        logger.debug(f"Building {self.api_name} {self.api_version} client for {email}")
        service = build(
            self.api_name, self.api_version, credentials=credentials, cache_discovery=False
        )
        self._services[email] = service
        return service

    def clear_client_cache(self, email: str | None = None) -> None:
        """Evict cached handles.

        Args:
            email: Evict only this account's handles. If None, evict all.
        """
        if email is None:
            self._credentials.clear()
            self._services.clear()
        else:
            self._credentials.pop(email, None)
            self._services.pop(email, None)
