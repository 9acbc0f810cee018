"""Tests for the credential and account store."""

import json
import os
import stat

import pytest

from gdcli.google import AccountStorage, StoredCredentials


class TestClientCredentials:
    """Test the OAuth client registration."""

    def test_missing_credentials(self, storage):
        """Should return None when nothing is configured."""
        assert storage.get_credentials() is None

    def test_set_and_get(self, storage):
        """Should round-trip the client registration."""
        storage.set_credentials("id-1", "secret-1")
        assert storage.get_credentials() == StoredCredentials("id-1", "secret-1")

    def test_camel_case_on_disk(self, storage):
        """Should write clientId/clientSecret keys."""
        storage.set_credentials("id-1", "secret-1")
        data = json.loads(storage.credentials_path.read_text())
        assert data == {"clientId": "id-1", "clientSecret": "secret-1"}

    def test_replaces_previous(self, storage):
        """Should overwrite an earlier registration."""
        storage.set_credentials("id-1", "secret-1")
        storage.set_credentials("id-2", "secret-2")
        assert storage.get_credentials().client_id == "id-2"

    def test_missing_field(self, storage):
        """Should treat a registration without a secret as unconfigured."""
        storage.credentials_path.write_text(json.dumps({"clientId": "id-1"}))
        assert storage.get_credentials() is None

    def test_corrupt_file(self, storage):
        """Should treat unparseable JSON as unconfigured."""
        storage.credentials_path.write_text("{not json")
        assert storage.get_credentials() is None

    @pytest.mark.skipif(os.name != "posix", reason="POSIX permissions")
    def test_owner_only_permissions(self, storage):
        """Should restrict the secrets file to its owner."""
        storage.set_credentials("id-1", "secret-1")
        mode = stat.S_IMODE(storage.credentials_path.stat().st_mode)
        assert mode == 0o600


class TestAccounts:
    """Test account CRUD."""

    def test_add_and_get(self, storage, make_account):
        """Should return a stored account by email."""
        storage.add_account(make_account())
        account = storage.get_account("alice@example.com")
        assert account.oauth2.refresh_token == "refresh-1"

    def test_get_missing(self, storage):
        """Should return None for an unknown email."""
        assert storage.get_account("nobody@example.com") is None
        assert storage.has_account("nobody@example.com") is False

    def test_add_replaces_same_email(self, storage, make_account):
        """Should keep one account per email, last write wins."""
        storage.add_account(make_account(refresh_token="old"))
        storage.add_account(make_account(refresh_token="new"))
        accounts = storage.get_all_accounts()
        assert len(accounts) == 1
        assert accounts[0].oauth2.refresh_token == "new"

    def test_returned_account_is_a_copy(self, storage, make_account):
        """Mutating a returned account should not change the store."""
        storage.add_account(make_account())
        account = storage.get_account("alice@example.com")
        account.oauth2.refresh_token = "tampered"
        assert storage.get_account("alice@example.com").oauth2.refresh_token == "refresh-1"

    def test_stored_account_is_a_copy(self, storage, make_account):
        """Mutating the added account afterwards should not change the store."""
        account = make_account()
        storage.add_account(account)
        account.oauth2.refresh_token = "tampered"
        assert storage.get_account("alice@example.com").oauth2.refresh_token == "refresh-1"

    def test_delete(self, storage, make_account):
        """Should remove the account and report whether it existed."""
        storage.add_account(make_account())
        assert storage.delete_account("alice@example.com") is True
        assert storage.delete_account("alice@example.com") is False
        assert storage.get_all_accounts() == []

    def test_insertion_order(self, storage, make_account):
        """Should list accounts in insertion order."""
        storage.add_account(make_account("b@example.com"))
        storage.add_account(make_account("a@example.com"))
        assert [a.email for a in storage.get_all_accounts()] == ["b@example.com", "a@example.com"]


class TestPersistence:
    """Test the on-disk accounts file."""

    def test_reload_from_disk(self, tmp_path, make_account):
        """Should see accounts written by an earlier instance."""
        AccountStorage(tmp_path).add_account(make_account(access_token="access-1"))
        account = AccountStorage(tmp_path).get_account("alice@example.com")
        assert account.oauth2.access_token == "access-1"

    def test_round_trip_equal(self, tmp_path, make_account):
        """Should reload an account equal to the one added, and forget deletions."""
        account = make_account(access_token="access-1")
        AccountStorage(tmp_path).add_account(account)
        assert AccountStorage(tmp_path).get_account(account.email) == account

        AccountStorage(tmp_path).delete_account(account.email)
        assert AccountStorage(tmp_path).has_account(account.email) is False

    def test_access_token_omitted_when_absent(self, storage, make_account):
        """Should not write accessToken when there is none."""
        storage.add_account(make_account())
        data = json.loads(storage.accounts_path.read_text())
        assert data == [
            {
                "email": "alice@example.com",
                "oauth2": {
                    "clientId": "client-id.apps.googleusercontent.com",
                    "clientSecret": "client-secret",
                    "refreshToken": "refresh-1",
                },
            }
        ]

    def test_corrupt_accounts_file(self, tmp_path):
        """Should start empty when accounts.json is not JSON."""
        (tmp_path / "accounts.json").write_text("[{broken")
        storage = AccountStorage(tmp_path)
        assert storage.get_all_accounts() == []

    def test_non_list_accounts_file(self, tmp_path):
        """Should start empty when accounts.json is not a list."""
        (tmp_path / "accounts.json").write_text(json.dumps({"email": "a@example.com"}))
        assert AccountStorage(tmp_path).get_all_accounts() == []

    def test_malformed_entries_skipped(self, tmp_path, make_account):
        """Should keep valid entries and skip the rest."""
        entries = [
            make_account("good@example.com").to_dict(),
            {"email": "no-oauth@example.com"},
            {"email": "", "oauth2": make_account().oauth2.to_dict()},
            {"email": "no-token@example.com", "oauth2": {"clientId": "x", "clientSecret": "y"}},
            "not an object",
            {"email": 42, "oauth2": make_account().oauth2.to_dict()},
            None,
        ]
        (tmp_path / "accounts.json").write_text(json.dumps(entries))
        storage = AccountStorage(tmp_path)
        assert [a.email for a in storage.get_all_accounts()] == ["good@example.com"]

    def test_recovers_on_next_write(self, tmp_path, make_account):
        """Should replace a corrupt file on the next mutation."""
        (tmp_path / "accounts.json").write_text("garbage")
        storage = AccountStorage(tmp_path)
        storage.add_account(make_account())
        data = json.loads((tmp_path / "accounts.json").read_text())
        assert data[0]["email"] == "alice@example.com"

    def test_no_temp_files_left(self, storage, make_account):
        """Should leave only the target files after writing."""
        storage.set_credentials("id", "secret")
        storage.add_account(make_account())
        names = sorted(p.name for p in storage.config_dir.iterdir())
        assert names == ["accounts.json", "credentials.json"]


class TestDirectories:
    """Test directory resolution."""

    def test_creates_config_dir(self, tmp_path):
        """Should create a missing configuration directory."""
        target = tmp_path / "nested" / "config"
        AccountStorage(target)
        assert target.is_dir()

    def test_default_dir_from_env(self, isolated_config):
        """Should use GDCLI_HOME when no directory is given."""
        assert AccountStorage().get_config_dir() == isolated_config

    def test_downloads_dir_created(self, storage):
        """Should create downloads/ on demand."""
        downloads = storage.get_downloads_dir()
        assert downloads == storage.config_dir / "downloads"
        assert downloads.is_dir()
