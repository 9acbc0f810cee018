"""Shared fixtures for gdcli tests."""

import pytest

from gdcli.google import Account, AccountStorage, OAuth2Credentials


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the default configuration directory at a temp dir."""
    config_dir = tmp_path / "gdcli-home"
    monkeypatch.setenv("GDCLI_HOME", str(config_dir))
    monkeypatch.delenv("GDCLI_REDIRECT_PORT", raising=False)
    return config_dir


@pytest.fixture
def storage(tmp_path):
    """Account storage over a fresh directory."""
    return AccountStorage(tmp_path / "config")


def _make_account(email="alice@example.com", refresh_token="refresh-1", access_token=None):
    return Account(
        email=email,
        oauth2=OAuth2Credentials(
            client_id="client-id.apps.googleusercontent.com",
            client_secret="client-secret",
            refresh_token=refresh_token,
            access_token=access_token,
        ),
    )


@pytest.fixture
def make_account():
    """Factory building an Account with test client credentials."""
    return _make_account


@pytest.fixture
def account_storage(storage):
    """Storage holding one account, alice@example.com."""
    storage.add_account(_make_account())
    return storage
