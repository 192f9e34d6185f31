"""Locally persisted user settings and contract address resolution.

The ledger contract address is resolved with a fixed precedence: a value the
user saved through ``fwledger contract set`` wins over the configured
(build-time) default. When neither exists, ledger writes are disabled.
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel

from fwledger.address import is_valid_address
from fwledger.config.models import FwLedgerConfig
from fwledger.utils.logging import get_logger

log = get_logger(__name__)


class UserSettings(BaseModel):
    contract_address: str | None = None


class SettingsStore:
    """Reads and writes ``UserSettings`` as a small YAML document."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> UserSettings:
        if not self._path.is_file():
            return UserSettings()
        raw = yaml.safe_load(self._path.read_text()) or {}
        return UserSettings.model_validate(raw)

    def _write(self, settings: UserSettings) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(yaml.safe_dump(settings.model_dump(exclude_none=True)))

    def save_contract_address(self, address: str) -> None:
        if not is_valid_address(address):
            raise ValueError(f"Invalid contract address: {address!r}")
        settings = self.load()
        settings.contract_address = address
        self._write(settings)
        log.info("contract_address_saved", address=address, path=str(self._path))

    def clear_contract_address(self) -> None:
        settings = self.load()
        settings.contract_address = None
        self._write(settings)
        log.info("contract_address_cleared", path=str(self._path))


def resolve_contract_address(
    config: FwLedgerConfig, settings: UserSettings | None = None
) -> str | None:
    """User-set address, else the configured default, else None."""
    if settings is not None and settings.contract_address:
        return settings.contract_address
    return config.ledger.contract_address or None
