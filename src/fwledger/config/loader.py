"""YAML configuration loader with env var interpolation."""

from __future__ import annotations

import os
import re
from pathlib import Path

import yaml

from fwledger.config.defaults import CONFIG_ENV, CONFIG_FILE_NAMES, CONFIG_SEARCH_PATHS
from fwledger.config.models import FwLedgerConfig
from fwledger.utils.logging import get_logger

log = get_logger(__name__)

_ENV_VAR_PATTERN = re.compile(r"\$\{(\w+)(?::([^}]*))?\}")


def _interpolate_env(value: str) -> str:
    """Replace ${VAR} or ${VAR:default} with environment variable values."""

    def _replace(match: re.Match[str]) -> str:
        default = match.group(2)
        return os.environ.get(match.group(1), default if default is not None else "")

    return _ENV_VAR_PATTERN.sub(_replace, value)


def _resolve(obj: object) -> object:
    """Interpolate every string and drop mapping keys that end up empty.

    ``contract_address: ${FWLEDGER_CONTRACT_ADDRESS:}`` with the variable
    unset then falls back to the model default instead of validating "".
    """
    if isinstance(obj, str):
        return _interpolate_env(obj)
    if isinstance(obj, dict):
        resolved = {key: _resolve(value) for key, value in obj.items()}
        return {key: value for key, value in resolved.items() if value != ""}
    if isinstance(obj, list):
        return [_resolve(item) for item in obj]
    return obj


def find_config_file(explicit_path: str | Path | None = None) -> Path | None:
    """Locate a fwledger config file: explicit path, then $FWLEDGER_CONFIG, then search dirs."""
    if explicit_path is None:
        explicit_path = os.environ.get(CONFIG_ENV) or None
    if explicit_path is not None:
        p = Path(explicit_path).expanduser()
        return p if p.is_file() else None

    for search_dir in CONFIG_SEARCH_PATHS:
        for name in CONFIG_FILE_NAMES:
            candidate = search_dir / name
            if candidate.is_file():
                return candidate
    return None


def load_config(path: str | Path | None = None) -> FwLedgerConfig:
    """Load and validate configuration, falling back to defaults."""
    config_path = find_config_file(path)
    if config_path is None:
        log.debug("config_defaults_used", requested=str(path) if path else None)
        return FwLedgerConfig()

    raw = yaml.safe_load(config_path.read_text()) or {}
    config = FwLedgerConfig.model_validate(_resolve(raw))
    log.debug("config_loaded", path=str(config_path))
    return config
