"""Pydantic configuration models with env var support."""

from __future__ import annotations

import os

from pydantic import BaseModel, Field

from fwledger.config.defaults import (
    CONTRACT_ADDRESS_ENV,
    DEFAULT_CONFIRMATION_TIMEOUT,
    DEFAULT_EXISTENCE_TIMEOUT,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_RETRY_ATTEMPTS,
    DEFAULT_RPC_URL,
    DEFAULT_SETTINGS_PATH,
)


def _contract_address_from_env() -> str | None:
    return os.environ.get(CONTRACT_ADDRESS_ENV) or None


class ChainConfig(BaseModel):
    rpc_url: str = DEFAULT_RPC_URL
    # Preferred node-managed account; first available account otherwise.
    account: str | None = None


class LedgerConfig(BaseModel):
    contract_address: str | None = Field(default_factory=_contract_address_from_env)
    existence_timeout: float = Field(default=DEFAULT_EXISTENCE_TIMEOUT, gt=0)
    confirmation_timeout: float = Field(default=DEFAULT_CONFIRMATION_TIMEOUT, gt=0)
    poll_interval: float = Field(default=DEFAULT_POLL_INTERVAL, gt=0)


class RetryConfig(BaseModel):
    max_attempts: int = Field(default=DEFAULT_RETRY_ATTEMPTS, ge=1)
    multiplier: float = 1.0
    wait_min: float = 1.0
    wait_max: float = 10.0


class Neo4jConfig(BaseModel):
    uri: str = "bolt://localhost:7687"
    username: str = "neo4j"
    password: str = "changeme"
    database: str = "neo4j"
    max_connection_pool_size: int = 50


class FwLedgerConfig(BaseModel):
    chain: ChainConfig = Field(default_factory=ChainConfig)
    ledger: LedgerConfig = Field(default_factory=LedgerConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    neo4j: Neo4jConfig = Field(default_factory=Neo4jConfig)
    settings_path: str = str(DEFAULT_SETTINGS_PATH)
