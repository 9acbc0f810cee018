"""Tests for configuration resolution."""

import os

import pytest

from gdcli.config import (
    DEFAULT_CONFIG_DIR,
    DEFAULT_REDIRECT_PORT,
    _load_env_file,
    _parse_env_line,
    get_config_dir,
    get_config_status,
    get_redirect_port,
)


class TestConfigDir:
    """Test configuration directory resolution."""

    def test_env_override(self, isolated_config):
        """Should honor GDCLI_HOME."""
        assert get_config_dir() == isolated_config

    def test_default(self, monkeypatch):
        """Should fall back to ~/.gdcli."""
        monkeypatch.delenv("GDCLI_HOME")
        assert get_config_dir() == DEFAULT_CONFIG_DIR
        assert DEFAULT_CONFIG_DIR.name == ".gdcli"


class TestRedirectPort:
    """Test redirect port resolution."""

    def test_default(self):
        assert get_redirect_port() == DEFAULT_REDIRECT_PORT == 3000

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("GDCLI_REDIRECT_PORT", "8085")
        assert get_redirect_port() == 8085

    def test_invalid(self, monkeypatch):
        """Should reject a non-numeric port."""
        monkeypatch.setenv("GDCLI_REDIRECT_PORT", "http")
        with pytest.raises(ValueError, match="GDCLI_REDIRECT_PORT"):
            get_redirect_port()


class TestEnvFile:
    """Test .env loading."""

    def test_missing_file(self, tmp_path):
        assert _load_env_file(tmp_path / ".env") == {}

    def test_loads_values(self, tmp_path, monkeypatch):
        """Should parse key=value lines, quotes and comments."""
        monkeypatch.delenv("GDCLI_TEST_A", raising=False)
        monkeypatch.delenv("GDCLI_TEST_B", raising=False)
        env = tmp_path / ".env"
        env.write_text('# comment\nGDCLI_TEST_A=one\n\nGDCLI_TEST_B="two words"\nnot-a-pair\n')

        loaded = _load_env_file(env)

        assert loaded == {"GDCLI_TEST_A": "one", "GDCLI_TEST_B": "two words"}
        assert os.environ["GDCLI_TEST_B"] == "two words"

    def test_environment_wins(self, tmp_path, monkeypatch):
        """Should not override variables already set."""
        monkeypatch.setenv("GDCLI_TEST_A", "from-env")
        env = tmp_path / ".env"
        env.write_text("GDCLI_TEST_A=from-file\n")

        assert _load_env_file(env) == {}
        assert os.environ["GDCLI_TEST_A"] == "from-env"


    def test_export_prefix_and_single_quotes(self, tmp_path, monkeypatch):
        """Should accept shell-style export lines and single-quoted values."""
        monkeypatch.setenv("GDCLI_TEST_C", "placeholder")
        monkeypatch.delenv("GDCLI_TEST_C")
        env = tmp_path / ".env"
        env.write_text("export GDCLI_TEST_C='quoted value'\n=orphan\n")

        assert _load_env_file(env) == {"GDCLI_TEST_C": "quoted value"}

    def test_parse_line(self):
        assert _parse_env_line("  KEY = value ") == ("KEY", "value")
        assert _parse_env_line("URL=http://x?a=b") == ("URL", "http://x?a=b")
        assert _parse_env_line("# KEY=value") is None
        assert _parse_env_line('KEY="') == ("KEY", '"')


class TestConfigStatus:
    """Test the status report."""

    def test_empty_dir(self, tmp_path):
        status = get_config_status(tmp_path)
        assert status["config_dir"] == str(tmp_path)
        assert status["credentials"] is False
        assert status["accounts"] is False
        assert status["downloads"] is False
        assert status["redirect_port"] == 3000

    def test_populated_dir(self, storage):
        """Should report files written by the store."""
        storage.set_credentials("id", "secret")
        storage.get_downloads_dir()

        status = get_config_status(storage.config_dir)

        assert status["credentials"] is True
        assert status["downloads"] is True
        assert status["accounts"] is False
