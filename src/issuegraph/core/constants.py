"""issuegraph constants: filesystem layout, timeouts, and limits."""

from __future__ import annotations

import os
import sys
from enum import IntEnum
from pathlib import Path

# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------


class ExitCode(IntEnum):
    SUCCESS = 0
    ERROR = 1
    CONFIG_ERROR = 2
    NETWORK_ERROR = 4


# ---------------------------------------------------------------------------
# Platform-specific config directory
# ---------------------------------------------------------------------------


def _default_config_dir() -> Path:
    """
    Return the platform-appropriate issuegraph config directory.

    macOS : ~/Library/Application Support/issuegraph
    Linux : ~/.config/issuegraph
    Other : ~/.issuegraph
    """
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "issuegraph"
    if sys.platform.startswith("linux"):
        xdg = Path(os.environ.get("XDG_CONFIG_HOME", str(Path.home() / ".config")))
        return xdg / "issuegraph"
    return Path.home() / ".issuegraph"


CONFIG_FILENAME = "config.toml"

# ---------------------------------------------------------------------------
# Graph assembly
# ---------------------------------------------------------------------------

DEFAULT_DEPENDENCIES_DEEPNESS = 1  # expansion rounds past the seed set

# ---------------------------------------------------------------------------
# Network
# ---------------------------------------------------------------------------

DEFAULT_HTTP_TIMEOUT_SECONDS = 30.0  # per remote call
SEARCH_PAGE_SIZE = 1000  # maxResults requested per search page
BATCH_KEYS_PER_QUERY = 100  # keys per OR-of-keys query, keeps request URLs short
SECRET_COMMAND_TIMEOUT_SECONDS = 30.0  # budget for a credential command
