"""Default configuration values and paths."""

from __future__ import annotations

from pathlib import Path

CONFIG_FILE_NAMES = [
    "fwledger.yaml",
    "fwledger.yml",
    ".fwledger.yaml",
    ".fwledger.yml",
]

CONFIG_SEARCH_PATHS = [
    Path.cwd(),
    Path.home() / ".config" / "fwledger",
    Path.home(),
]

# Overrides the search paths when set.
CONFIG_ENV = "FWLEDGER_CONFIG"

DEFAULT_SETTINGS_PATH = Path.home() / ".config" / "fwledger" / "settings.yaml"

# Build-time default for the ledger contract; user settings take precedence.
CONTRACT_ADDRESS_ENV = "FWLEDGER_CONTRACT_ADDRESS"

DEFAULT_RPC_URL = "http://127.0.0.1:8545"
DEFAULT_EXISTENCE_TIMEOUT = 10.0
DEFAULT_CONFIRMATION_TIMEOUT = 120.0
DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_RETRY_ATTEMPTS = 3
