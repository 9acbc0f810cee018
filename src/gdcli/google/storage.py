"""Persistent storage for the OAuth client registration and authorized accounts.

Layout inside the configuration directory:
    credentials.json - {"clientId": ..., "clientSecret": ...}
    accounts.json    - [{"email": ..., "oauth2": {"clientId": ..., "clientSecret": ...,
                         "refreshToken": ..., "accessToken"?: ...}}, ...]
    downloads/       - default download destination

A corrupt or malformed accounts file is treated as empty, and malformed
entries are skipped individually, so a damaged file never locks the user out.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from gdcli.config import ACCOUNTS_FILE, CREDENTIALS_FILE, DOWNLOADS_DIR, get_config_dir

logger = logging.getLogger(__name__)


def _is_nonempty_str(value: Any) -> bool:
    return isinstance(value, str) and value != ""


@dataclass
class OAuth2Credentials:
    """OAuth2 material for a single account."""

    client_id: str
    client_secret: str
    refresh_token: str
    access_token: str | None = None

    def to_dict(self) -> dict[str, str]:
        data = {
            "clientId": self.client_id,
            "clientSecret": self.client_secret,
            "refreshToken": self.refresh_token,
        }
        if self.access_token:
            data["accessToken"] = self.access_token
        return data


@dataclass
class Account:
    """An authorized Google account, keyed by email."""

    email: str
    oauth2: OAuth2Credentials

    def to_dict(self) -> dict[str, Any]:
        return {"email": self.email, "oauth2": self.oauth2.to_dict()}

    @classmethod
    def from_dict(cls, data: Any) -> Account | None:
        """Build an account from its stored form.

        Returns:
            The account, or None if ``data`` is not a well-formed account
            (non-empty email, clientId, clientSecret and refreshToken).
        """
        if not isinstance(data, dict):
            return None

        email = data.get("email")
        oauth2 = data.get("oauth2")
        if not _is_nonempty_str(email) or not isinstance(oauth2, dict):
            return None

        client_id = oauth2.get("clientId")
        client_secret = oauth2.get("clientSecret")
        refresh_token = oauth2.get("refreshToken")
        if not all(_is_nonempty_str(v) for v in (client_id, client_secret, refresh_token)):
            return None

        access_token = oauth2.get("accessToken")
        return cls(
            email=email,
            oauth2=OAuth2Credentials(
                client_id=client_id,
                client_secret=client_secret,
                refresh_token=refresh_token,
                access_token=access_token if _is_nonempty_str(access_token) else None,
            ),
        )


@dataclass
class StoredCredentials:
    """The OAuth2 application registration shared by all accounts."""

    client_id: str
    client_secret: str

    def to_dict(self) -> dict[str, str]:
        return {"clientId": self.client_id, "clientSecret": self.client_secret}

    @classmethod
    def from_dict(cls, data: Any) -> StoredCredentials | None:
        if not isinstance(data, dict):
            return None
        client_id = data.get("clientId")
        client_secret = data.get("clientSecret")
        if not _is_nonempty_str(client_id) or not _is_nonempty_str(client_secret):
            return None
        return cls(client_id=client_id, client_secret=client_secret)


class AccountStorage:
    """Durable store for the client registration and the set of accounts.

    This class is the only writer of ``credentials.json`` and ``accounts.json``.
    Accounts are loaded once at construction and mirrored in memory; every
    mutation rewrites the whole file.

    Example:
        >>> storage = AccountStorage()
        >>> storage.set_credentials("id.apps.googleusercontent.com", "secret")
        >>> storage.add_account(account)
        >>> storage.get_account("me@example.com")
    """

    def __init__(self, config_dir: str | Path | None = None) -> None:
        """Initialize storage.

        Args:
            config_dir: Configuration directory. Defaults to ``$GDCLI_HOME``
                or ``~/.gdcli``. Created if it does not exist.
        """
        self._config_dir = Path(config_dir) if config_dir else get_config_dir()
        self._config_dir.mkdir(parents=True, exist_ok=True)
        self._accounts: dict[str, Account] = {}
        self._load_accounts()

    @property
    def config_dir(self) -> Path:
        return self._config_dir

    @property
    def credentials_path(self) -> Path:
        return self._config_dir / CREDENTIALS_FILE

    @property
    def accounts_path(self) -> Path:
        return self._config_dir / ACCOUNTS_FILE

    def get_config_dir(self) -> Path:
        """Return the configuration directory."""
        return self._config_dir

    def get_downloads_dir(self) -> Path:
        """Return the downloads directory, creating it if needed."""
        downloads = self._config_dir / DOWNLOADS_DIR
        downloads.mkdir(parents=True, exist_ok=True)
        return downloads

    # =========================================================================
    # Client credentials
    # =========================================================================

    def set_credentials(self, client_id: str, client_secret: str) -> None:
        """Store the OAuth client registration, replacing any previous one."""
        credentials = StoredCredentials(client_id=client_id, client_secret=client_secret)
        self._write_json(self.credentials_path, credentials.to_dict())
        logger.info(f"Client credentials saved to {self.credentials_path}")

    def get_credentials(self) -> StoredCredentials | None:
        """Load the OAuth client registration.

        Returns:
            Stored credentials, or None if the file is missing, unreadable,
            or lacks either field.
        """
        data = self._read_json(self.credentials_path)
        return StoredCredentials.from_dict(data)

    # =========================================================================
    # Accounts
    # =========================================================================

    def add_account(self, account: Account) -> None:
        """Insert or replace an account and persist the full set."""
        self._accounts[account.email] = copy.deepcopy(account)
        self._save_accounts()
        logger.info(f"Account saved: {account.email}")

    def get_account(self, email: str) -> Account | None:
        account = self._accounts.get(email)
        return copy.deepcopy(account) if account else None

    def has_account(self, email: str) -> bool:
        return email in self._accounts

    def get_all_accounts(self) -> list[Account]:
        return [copy.deepcopy(a) for a in self._accounts.values()]

    def delete_account(self, email: str) -> bool:
        """Remove an account.

        Returns:
            True if the account existed.
        """
        if email not in self._accounts:
            return False
        del self._accounts[email]
        self._save_accounts()
        logger.info(f"Account removed: {email}")
        return True

    # =========================================================================
    # Persistence
    # =========================================================================

    def _load_accounts(self) -> None:
        data = self._read_json(self.accounts_path)
        if data is None:
            return
        if not isinstance(data, list):
            logger.warning(f"Ignoring {self.accounts_path}: expected a list of accounts")
            return

        for index, entry in enumerate(data):
            account = Account.from_dict(entry)
            if account is None:
                logger.warning(f"Skipping malformed account entry #{index} in {self.accounts_path}")
                continue
            self._accounts[account.email] = account

        logger.debug(f"Loaded {len(self._accounts)} account(s)")

    def _save_accounts(self) -> None:
        self._write_json(self.accounts_path, [a.to_dict() for a in self._accounts.values()])

    def _read_json(self, path: Path) -> Any:
        """Read a JSON file, returning None when absent or unparseable."""
        if not path.exists():
            return None
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to read {path}: {e}")
            return None

    def _write_json(self, path: Path, data: Any) -> None:
        """Atomically replace ``path`` with ``data`` serialized as JSON."""
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
                f.write("\n")
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
