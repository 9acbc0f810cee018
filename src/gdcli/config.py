"""Centralized gdcli configuration.

All state lives in a single configuration directory (``~/.gdcli`` by default,
or ``$GDCLI_HOME`` when set):
    .env              - optional overrides (GDCLI_REDIRECT_PORT, ...)
    credentials.json  - OAuth client registration (clientId/clientSecret)
    accounts.json     - authorized accounts and their tokens
    downloads/        - default destination for downloaded files

This module loads the .env file on import, so overrides placed there are
visible to every gdcli module. The .env path is resolved from ``GDCLI_HOME``
before the file is read, so ``GDCLI_HOME`` itself cannot be set from .env.
"""

import os
from pathlib import Path

DEFAULT_CONFIG_DIR = Path.home() / ".gdcli"

CREDENTIALS_FILE = "credentials.json"
ACCOUNTS_FILE = "accounts.json"
DOWNLOADS_DIR = "downloads"
ENV_FILE = ".env"

# Local port Google redirects the browser to after consent
DEFAULT_REDIRECT_PORT = 3000


def get_config_dir() -> Path:
    """Resolve the configuration directory.

    Returns:
        ``$GDCLI_HOME`` if set, otherwise ``~/.gdcli``.
    """
    override = os.environ.get("GDCLI_HOME")
    if override:
        return Path(override).expanduser()
    return DEFAULT_CONFIG_DIR


def get_redirect_port() -> int:
    """Resolve the local redirect port for the browser flow."""
    value = os.environ.get("GDCLI_REDIRECT_PORT")
    if not value:
        return DEFAULT_REDIRECT_PORT
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"GDCLI_REDIRECT_PORT must be an integer, got {value!r}") from None


def _parse_env_line(line: str) -> tuple[str, str] | None:
    """Split one ``KEY=value`` line, or return None for blanks and comments."""
    line = line.strip()
    if line.startswith("export "):
        line = line[len("export "):].lstrip()
    if not line or line[0] == "#" or "=" not in line:
        return None

    key, value = (part.strip() for part in line.split("=", 1))
    if not key:
        return None
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        value = value[1:-1]
    return key, value


def _load_env_file(env_path: Path) -> dict[str, str]:
    """Export the pairs in ``env_path`` that the environment does not already set.

    Returns:
        The variables that were actually exported.
    """
    if not env_path.is_file():
        return {}

    pairs = filter(None, map(_parse_env_line, env_path.read_text().splitlines()))
    loaded = {key: value for key, value in pairs if key not in os.environ}
    os.environ.update(loaded)
    return loaded


def get_config_status(config_dir: Path | None = None) -> dict:
    """Get status of the configuration directory.

    Args:
        config_dir: Directory to inspect. Defaults to :func:`get_config_dir`.

    Returns:
        Dictionary with the resolved paths and which files exist.
    """
    config_dir = Path(config_dir) if config_dir else get_config_dir()
    return {
        "config_dir": str(config_dir),
        "env_file": (config_dir / ENV_FILE).exists(),
        "credentials": (config_dir / CREDENTIALS_FILE).exists(),
        "accounts": (config_dir / ACCOUNTS_FILE).exists(),
        "downloads": (config_dir / DOWNLOADS_DIR).is_dir(),
        "redirect_port": get_redirect_port(),
    }


# Auto-load .env from the config directory on import
_loaded = _load_env_file(get_config_dir() / ENV_FILE)
